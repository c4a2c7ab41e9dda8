from typing import BinaryIO

from fastapi import APIRouter, Depends, File, UploadFile
from loguru import logger

from ..auth import require_user
from ..schemas import UrlRequest
from ..services.files import extract_from_file, file_extension
from ..services.webpage import extract_from_url
from ..settings import settings

router = APIRouter(tags=["sources"])


def read_upload(stream: BinaryIO) -> bytes:
    """At most one byte past the size limit, enough for the size gate to reject it."""
    return stream.read(settings.MAX_UPLOAD_KB * 1024 + 1)


@router.post("/extract-file")
def extract_file(file: UploadFile = File(...), user_id: str = Depends(require_user)):
    raw = read_upload(file.file)
    ext = file_extension(file.filename)
    logger.info(f"[files] extract-file user={user_id} name={file.filename} ext={ext}")

    extracted = extract_from_file(raw, ext)
    return {"success": True, "text": extracted.text, "length": extracted.length}


@router.post("/extract-url")
def extract_url(req: UrlRequest, user_id: str = Depends(require_user)):
    logger.info(f"[webpage] extract-url user={user_id}")

    extracted = extract_from_url(req.url)
    body = {
        "success": True,
        "text": extracted.text,
        "length": extracted.length,
        "source": extracted.origin_kind,
    }
    if extracted.notice:
        body["notice"] = extracted.notice
    return body
