from typing import Optional
from jose import jwt, JWTError
from fastapi import Header, HTTPException
import logging
from .settings import settings

logger = logging.getLogger("auth")

BEARER_PREFIX = "bearer "


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Token part of an `Authorization: Bearer <token>` header, if any"""
    if not authorization or not authorization.lower().startswith(BEARER_PREFIX):
        return None
    return authorization[len(BEARER_PREFIX):].strip() or None


def user_id_from_auth_header(authorization: Optional[str] = Header(None)) -> Optional[str]:
    """Supabase access token (HS256) -> user id, None when absent or not verifiable"""
    token = bearer_token(authorization)
    if token is None:
        return None

    secret = settings.SUPABASE_JWT_SECRET.strip()
    if not secret:
        logger.warning("SUPABASE_JWT_SECRET is not set; every bearer token is refused")
        return None

    try:
        claims = jwt.decode(token, secret, algorithms=["HS256"], options={"verify_aud": False})
    except JWTError as e:
        logger.info(f"bearer token refused: {e}")
        return None
    return claims.get("sub") or claims.get("user_id")


def require_user(authorization: Optional[str] = Header(None)) -> str:
    """Route dependency: the caller's user id, 401 for anonymous callers"""
    user_id = user_id_from_auth_header(authorization)
    if not user_id:
        raise HTTPException(status_code=401, detail="Login required.")
    return str(user_id)
