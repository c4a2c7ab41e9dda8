from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal, Optional

from ..settings import settings

OriginKind = Literal["file", "webpage", "youtube_transcript", "youtube_description"]

TRUNCATION_MARKER = "... [text truncated for AI processing]"

_LINE_ENDINGS_RE = re.compile(r"\r\n|\r")
_BLANK_RUN_RE = re.compile(r"\n{3,}")


def normalize_text(text: str) -> str:
    text = _LINE_ENDINGS_RE.sub("\n", text or "")
    text = _BLANK_RUN_RE.sub("\n\n", text)
    return text.strip()


def clean_and_truncate(text: str, limit: Optional[int] = None) -> str:
    """Normalize newlines, trim, and cap at `limit` chars (marker appended when cut).

    Idempotent: a result that was already cut is exactly `limit + marker` long and
    cutting it again yields the same string.
    """
    limit = settings.MAX_TEXT_LENGTH if limit is None else limit
    text = normalize_text(text)
    if len(text) > limit:
        text = text[:limit] + TRUNCATION_MARKER
    return text


@dataclass(frozen=True)
class ExtractedText:
    text: str
    origin_kind: OriginKind
    truncated: bool = False
    notice: Optional[str] = None

    @classmethod
    def build(cls, raw: str, origin_kind: OriginKind, *, notice: Optional[str] = None) -> "ExtractedText":
        limit = settings.MAX_TEXT_LENGTH
        return cls(
            text=clean_and_truncate(raw, limit),
            origin_kind=origin_kind,
            truncated=len(normalize_text(raw)) > limit,
            notice=notice,
        )

    @property
    def length(self) -> int:
        return len(self.text)
