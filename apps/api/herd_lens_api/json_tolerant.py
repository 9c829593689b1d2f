from __future__ import annotations

import json
import re
from typing import Any


_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", flags=re.IGNORECASE)


class NoJsonFound(ValueError):
    pass


def _is_json(candidate: str) -> bool:
    try:
        json.loads(candidate)
    except ValueError:
        return False
    return True


def _scan_balanced(text: str, open_ch: str, close_ch: str) -> str | None:
    """
    Walk forward from the first `open_ch` keeping a depth counter. Every time
    the depth returns to zero, try the span from the first opener to the
    current closer; the first span that parses wins. A failed span does not
    stop the scan.

    Brackets inside JSON string literals (including escaped quotes) are not
    counted.
    """

    start = text.find(open_ch)
    if start == -1:
        return None

    depth = 0
    in_string = False
    escape = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == open_ch:
            depth += 1
        elif ch == close_ch:
            depth -= 1
            if depth == 0:
                candidate = text[start : i + 1]
                if _is_json(candidate):
                    return candidate
    return None


def extract_json_string(text: object) -> str | None:
    """
    Locate a JSON payload embedded in free-form model output.

    Order:
    1) interior of the first ``` / ```json fence (trimmed, not re-validated)
    2) first balanced {...} span that parses
    3) first balanced [...] span that parses
    """

    if not isinstance(text, str) or not text:
        return None

    m = _FENCE_RE.search(text)
    if m and m.group(1):
        return m.group(1).strip()

    obj = _scan_balanced(text, "{", "}")
    if obj is not None:
        return obj
    return _scan_balanced(text, "[", "]")


def parse_json_tolerant(text: object) -> Any:
    """
    Parse JSON from model output:
    - already-decoded values are returned unchanged
    - direct json.loads first
    - then the extracted candidate (a decode error there propagates)
    - NoJsonFound when the text holds no JSON at all
    """

    if not isinstance(text, str):
        return text
    if not text.strip():
        raise NoJsonFound("empty_text")
    try:
        return json.loads(text)
    except ValueError:
        pass
    candidate = extract_json_string(text)
    if candidate is None:
        raise NoJsonFound("no_json_found")
    return json.loads(candidate)
