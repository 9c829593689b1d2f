from __future__ import annotations

from typing import Iterable, Sequence


IMAGE_FALLBACK_KEYWORDS = ("flash", "image")
TEXT_FALLBACK_KEYWORDS = ("pro", "latest")


def _model_key(model_id: str) -> str:
    m = (model_id or "").strip().lower()
    if m.startswith("models/"):
        m = m[len("models/") :]
    return m


def resolve_fallback(
    catalog: Sequence[str],
    failed_model: str,
    keywords: Iterable[str] = (),
) -> str | None:
    """
    Pick a substitute model id:
    - first catalog entry mentioning any keyword
    - else the first catalog entry
    Entries naming the failed model (with or without "models/") are skipped.
    """

    failed_key = _model_key(failed_model)
    candidates = [m for m in catalog if m and _model_key(m) != failed_key]
    if not candidates:
        return None

    kws = [k.lower() for k in keywords if k]
    for m in candidates:
        low = m.lower()
        if any(k in low for k in kws):
            return m
    return candidates[0]
