from __future__ import annotations

import io
import os
import re

import fitz  # PyMuPDF
import PyPDF2
from docx import Document as DocxDocument
from docx.table import Table
from loguru import logger

from ..errors import ExtractionFailed, FileTooLarge, InputRejected, NoExtractableText, UnsupportedFileType
from ..settings import settings
from .text import ExtractedText

SUPPORTED_EXTENSIONS = ("txt", "pdf", "docx", "doc")

TOO_LARGE_MESSAGE = "File is too large. Maximum size is 5 MB."
UNSUPPORTED_MESSAGE = "Unsupported file type. Please upload a PDF, TXT, or DOCX file."
NO_TEXT_MESSAGE = "Could not extract any text from this file. The file may be empty or image-only."


def file_extension(filename: str | None) -> str:
    return os.path.splitext(filename or "")[1].lstrip(".").lower()


def validate_upload(raw: bytes, extension: str) -> None:
    """Size and type gate. Runs before any parser sees the bytes."""
    if len(raw) > settings.MAX_UPLOAD_KB * 1024:
        raise FileTooLarge(TOO_LARGE_MESSAGE)
    if extension not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFileType(UNSUPPORTED_MESSAGE)
    if not raw:
        raise InputRejected("Empty file.")


def extract_from_file(raw: bytes, extension: str) -> ExtractedText:
    extension = (extension or "").lower().lstrip(".")
    validate_upload(raw, extension)

    logger.info(f"[files] extracting .{extension} ({len(raw)} bytes)")
    try:
        if extension == "txt":
            text = extract_txt(raw)
        elif extension == "pdf":
            text = extract_pdf(raw)
        else:
            text = extract_docx(raw)
    except Exception as e:
        logger.error(f"[files] parse error for .{extension}: {e}")
        raise ExtractionFailed(f"Failed to parse the file: {e}") from e

    extracted = ExtractedText.build(text, "file")
    if not extracted.text:
        raise NoExtractableText(NO_TEXT_MESSAGE)

    logger.info(f"[files] extracted {extracted.length} chars (truncated={extracted.truncated})")
    return extracted


def extract_txt(raw: bytes) -> str:
    return raw.decode("utf-8-sig", errors="replace")


def extract_pdf(raw: bytes) -> str:
    """All page text, PyMuPDF first, PyPDF2 if PyMuPDF cannot open the document."""
    try:
        doc = fitz.open(stream=raw, filetype="pdf")
    except Exception as e:
        logger.warning(f"[files] PyMuPDF could not open PDF ({e}); trying PyPDF2")
        reader = PyPDF2.PdfReader(io.BytesIO(raw))
        return "\n".join((page.extract_text() or "") for page in reader.pages)

    try:
        parts = []
        for page in doc:
            t = page.get_text() or ""
            t = re.sub(r"[ \t]+", " ", t).strip()
            if t:
                parts.append(t)
        return "\n\n".join(parts)
    finally:
        doc.close()


def extract_docx(raw: bytes) -> str:
    """Body paragraphs and tables in document order, one line per paragraph/row."""
    document = DocxDocument(io.BytesIO(raw))
    lines = []
    for block in document.iter_inner_content():
        if isinstance(block, Table):
            for row in block.rows:
                cells = [" ".join(_runs_text(p) for p in cell.paragraphs).strip() for cell in row.cells]
                lines.append(" ".join(c for c in cells if c))
        else:
            lines.append(_runs_text(block))
    return "\n".join(lines)


def _runs_text(paragraph) -> str:
    runs = "".join(run.text for run in paragraph.runs)
    # hyperlinks keep their text outside paragraph.runs
    return runs if runs.strip() else paragraph.text
