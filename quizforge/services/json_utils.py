"""quizforge/services/json_utils.py

JSON recovery for raw model output.

Models wrap JSON in ``` / ```json fences or add a sentence before/after it.
We strip the fences, try a direct parse, then fall back to the outermost
object/array substring. Anything still unparseable is reported as None so the
caller can decide between "next model" and "explicit error".
"""

from __future__ import annotations

import json
import re
from typing import Any, Optional


_LEADING_FENCE_RE = re.compile(r"^\s*```[A-Za-z]*[ \t]*\n?")
_TRAILING_FENCE_RE = re.compile(r"\n?```\s*$")


def strip_code_fences(s: str) -> str:
    """Remove a leading ``` / ```json fence and a trailing ``` fence, then trim."""
    t = (s or "").strip()
    t = _LEADING_FENCE_RE.sub("", t)
    t = _TRAILING_FENCE_RE.sub("", t)
    return t.strip()


def parse_model_json(raw: Optional[str]) -> Any:
    """Best-effort parse of model output. Returns None when nothing parses."""
    text = strip_code_fences(raw or "")
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    # prose around the payload: keep the outermost object or array
    openers = [i for i in (text.find("{"), text.find("[")) if i != -1]
    if not openers:
        return None
    start = min(openers)
    end = text.rfind("}" if text[start] == "{" else "]")
    if end <= start:
        return None
    try:
        return json.loads(text[start : end + 1])
    except json.JSONDecodeError:
        return None
