from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest

# Ensure `herd_lens_api` is importable when running pytest via the venv entrypoint.
API_ROOT = Path(__file__).resolve().parent
if str(API_ROOT) not in sys.path:
    sys.path.insert(0, str(API_ROOT))

from herd_lens_api.failures import UpstreamError  # noqa: E402


NOT_FOUND_MESSAGE = (
    "gemini_http_404:NOT_FOUND: models/{model} is not found for API version v1beta, "
    "or is not supported for generateContent."
)


def gemini_text_response(text: str, **extra: Any) -> dict[str, Any]:
    cand: dict[str, Any] = {"content": {"role": "model", "parts": [{"text": text}]}}
    cand.update(extra)
    return {"candidates": [cand]}


class FakeBackend:
    """
    In-memory stand-in for GeminiClient.

    `responses` maps model id -> response dict (returned) or exception (raised).
    Models not in the map fail with a Gemini-style "not found" error.
    """

    def __init__(
        self,
        responses: dict[str, Any] | None = None,
        catalog: list[str] | None = None,
        catalog_error: Exception | None = None,
    ) -> None:
        self.responses = dict(responses or {})
        self.catalog = list(catalog or [])
        self.catalog_error = catalog_error
        self.generate_calls: list[tuple[str, dict[str, Any]]] = []
        self.list_calls = 0

    async def generate(self, model: str, payload: dict[str, Any]) -> Any:
        self.generate_calls.append((model, payload))
        out = self.responses.get(model)
        if out is None:
            raise UpstreamError(NOT_FOUND_MESSAGE.format(model=model), status=404)
        if isinstance(out, BaseException):
            raise out
        return out

    async def list_models(self) -> list[str]:
        self.list_calls += 1
        if self.catalog_error is not None:
            raise self.catalog_error
        return list(self.catalog)


@pytest.fixture
def make_backend():
    return FakeBackend


@pytest.fixture
def text_response():
    return gemini_text_response
