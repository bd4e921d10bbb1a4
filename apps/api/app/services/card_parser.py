from __future__ import annotations

import json
import re
from typing import Any

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*|```")


class CardParseError(ValueError):
    """Model output did not contain a usable JSON object."""


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text or "").strip()


def _balanced_end(text: str, start: int) -> int:
    """
    Index of the brace closing the object opened at text[start], or -1.
    Braces inside JSON strings are ignored.
    """
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
    return -1


def extract_json_object(raw: str) -> dict[str, Any]:
    """
    Best-effort extraction of the first balanced {...} JSON object in raw model output.
    Tolerates surrounding prose and ``` fences.
    """
    text = strip_code_fences(raw)
    if not text:
        raise CardParseError("Empty model response")

    # Fast path
    try:
        obj = json.loads(text)
        if isinstance(obj, dict):
            return obj
    except ValueError:
        pass

    start = text.find("{")
    while start >= 0:
        end = _balanced_end(text, start)
        if end < 0:
            break
        try:
            obj = json.loads(text[start : end + 1])
            if isinstance(obj, dict):
                return obj
        except ValueError:
            pass
        start = text.find("{", start + 1)

    raise CardParseError(f"No JSON object in model output. First 200 chars: {text[:200]!r}")


def parse_json_payload(raw: str) -> Any:
    """
    Parse a whole JSON document (object or array); falls back to object extraction.
    """
    text = strip_code_fences(raw)
    try:
        return json.loads(text)
    except ValueError:
        return extract_json_object(text)
