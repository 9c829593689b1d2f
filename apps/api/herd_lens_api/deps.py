from __future__ import annotations

from fastapi import Depends, HTTPException, Request

from .failures import HTTP_STATUS_BY_KIND, LLMError
from .gemini import GeminiClient, ModelBackend
from .secrets import Secrets, load_secrets


def get_secrets(request: Request) -> Secrets:
    # Loaded once in the app lifespan; fall back for apps built without it.
    s = getattr(request.app.state, "secrets", None)
    if s is None:
        s = load_secrets()
        request.app.state.secrets = s
    return s


def get_model_backend(secrets: Secrets = Depends(get_secrets)) -> ModelBackend:
    if not secrets.api_key:
        raise HTTPException(
            status_code=500,
            detail=(
                "Server is not configured with API key. "
                "Set API_KEY or GEMINI_API_KEY in .env.local"
            ),
        )
    return GeminiClient(api_key=secrets.api_key, base_url=secrets.resolved_base_url)


def to_http_exception(e: LLMError) -> HTTPException:
    return HTTPException(status_code=HTTP_STATUS_BY_KIND[e.kind], detail=e.message)
