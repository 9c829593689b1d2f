from __future__ import annotations

from herd_lens_api.fallback import (
    IMAGE_FALLBACK_KEYWORDS,
    TEXT_FALLBACK_KEYWORDS,
    resolve_fallback,
)


def test_keyword_match_selects_substitute() -> None:
    assert resolve_fallback(["text-pro-v1", "text-flash-v1"], "text-pro-v2", ["flash"]) == "text-flash-v1"


def test_first_entry_when_no_keyword_matches() -> None:
    assert resolve_fallback(["alpha", "beta"], "gamma", ["flash"]) == "alpha"
    assert resolve_fallback(["alpha", "beta"], "gamma") == "alpha"


def test_empty_catalog() -> None:
    assert resolve_fallback([], "models/gemini-flash-latest", IMAGE_FALLBACK_KEYWORDS) is None


def test_failed_model_is_never_chosen() -> None:
    catalog = ["models/gemini-flash-latest", "models/gemini-2.0-pro"]
    # Matches the keyword but is the model that just failed (prefix-insensitive).
    assert resolve_fallback(catalog, "gemini-flash-latest", IMAGE_FALLBACK_KEYWORDS) == "models/gemini-2.0-pro"
    assert resolve_fallback(["models/gemini-flash-latest"], "models/gemini-flash-latest") is None


def test_image_and_text_keyword_sets() -> None:
    catalog = [
        "models/embedding-001",
        "models/gemini-2.5-pro",
        "models/gemini-2.5-flash",
    ]
    assert resolve_fallback(catalog, "models/gemini-flash-latest", IMAGE_FALLBACK_KEYWORDS) == (
        "models/gemini-2.5-flash"
    )
    assert resolve_fallback(catalog, "models/gemini-pro-latest", TEXT_FALLBACK_KEYWORDS) == (
        "models/gemini-2.5-pro"
    )


def test_keyword_match_is_case_insensitive() -> None:
    assert resolve_fallback(["A", "Gemini-FLASH"], "x", ["flash"]) == "Gemini-FLASH"
