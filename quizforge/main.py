from __future__ import annotations

import sys

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi import _rate_limit_exceeded_handler

from .errors import PipelineError
from .settings import settings
from .routers import games, levels, questions, sources

# ---------- logging ----------
logger.remove()
logger.add(
    sys.stderr,
    format="{time:YYYY-MM-DD HH:mm:ss} | {level:<8} | {message}",
    level=settings.LOG_LEVEL,
)


# ---------- app / limiter ----------
limiter = Limiter(key_func=get_remote_address, default_limits=[settings.RATE_LIMIT])
app = FastAPI(title="QuizForge API", version="1.0.0")
app.state.limiter = limiter


# ---------- CORS ----------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*", "Authorization", "Content-Type", "X-Requested-With"],
    expose_headers=["Authorization"],
)


# SlowAPI middleware + handler
app.add_middleware(SlowAPIMiddleware)
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# ---------- error shapes ----------
@app.exception_handler(PipelineError)
async def pipeline_error_handler(request: Request, exc: PipelineError):
    logger.warning(f"{request.url.path} -> {exc.status_code} {type(exc).__name__}: {exc.message}")
    body = {"success": False, "message": exc.message}
    if exc.upstream_status is not None:
        body["status"] = exc.upstream_status
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query")]
        field = ".".join(loc) or "request"
        msg = str(err.get("msg", "invalid value")).removeprefix("Value error, ")
        errors.setdefault(field, []).append(msg)
    logger.warning(f"{request.url.path} -> validation failed: {errors}")
    return JSONResponse(
        status_code=422,
        content={"success": False, "message": "Validation error", "errors": errors},
    )


# ---------- routes ----------
app.include_router(questions.router)
app.include_router(levels.router)
app.include_router(sources.router)
app.include_router(games.router)


@app.get("/info")
def info():
    return {
        "status": "ok",
        "llm_configured": bool(settings.LLM_API_KEY),
        "models": settings.LLM_MODELS,
    }
