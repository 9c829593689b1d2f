"""
Text extraction from raw Gemini responses.

A raw response is usually the decoded JSON body of a generateContent call,
but SDK-style objects (attributes instead of keys, a callable `text`) are
accepted too. Each strategy returns the text or None; `response_text` applies
them in priority order.
"""

from __future__ import annotations

from typing import Any, Callable


def _get(obj: Any, key: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


def _first(seq: Any) -> Any:
    if isinstance(seq, (list, tuple)) and seq:
        return seq[0]
    return None


def _non_empty(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _first_candidate(raw: Any) -> Any:
    return _first(_get(raw, "candidates"))


def text_from_accessor(raw: Any) -> str | None:
    accessor = _get(raw, "text")
    if not callable(accessor):
        return None
    return _non_empty(accessor())


def text_from_candidates(raw: Any) -> str | None:
    # Some clients wrap the payload as {"response": {...}}.
    for root in (_get(raw, "response"), raw):
        content = _get(_first_candidate(root), "content")
        part = _first(_get(content, "parts"))
        text = _non_empty(_get(part, "text"))
        if text is not None:
            return text
    return None


def text_from_field(raw: Any) -> str | None:
    return _non_empty(_get(raw, "text"))


TEXT_STRATEGIES: tuple[Callable[[Any], str | None], ...] = (
    text_from_accessor,
    text_from_candidates,
    text_from_field,
)


def response_text(raw: Any) -> str | None:
    for strategy in TEXT_STRATEGIES:
        text = strategy(raw)
        if text is not None:
            return text
    return None


def grounding_sources(raw: Any) -> list[dict[str, str]]:
    """Web sources cited by the googleSearch tool, as [{title, uri}]."""

    out: list[dict[str, str]] = []
    for root in (_get(raw, "response"), raw):
        meta = _get(_first_candidate(root), "groundingMetadata")
        chunks = _get(meta, "groundingChunks")
        if not isinstance(chunks, list):
            continue
        for chunk in chunks:
            web = _get(chunk, "web")
            uri = _get(web, "uri")
            if not isinstance(uri, str) or not uri.strip():
                continue
            title = _get(web, "title")
            out.append({"title": title if isinstance(title, str) else "", "uri": uri})
        if out:
            break
    return out
