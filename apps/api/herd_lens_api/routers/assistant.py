from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from ..analysis import chat_reply, search_web
from ..deps import get_model_backend, get_secrets, to_http_exception
from ..failures import LLMError
from ..gemini import ModelBackend
from ..models import ChatRequest, SearchRequest
from ..secrets import Secrets


router = APIRouter(prefix="/api", tags=["assistant"])


@router.post("/search")
async def search(
    req: SearchRequest,
    backend: ModelBackend = Depends(get_model_backend),
    secrets: Secrets = Depends(get_secrets),
) -> dict[str, Any]:
    # Response shape is stable: {text, sources: [{title, uri}]}.
    try:
        result = await search_web(backend, model=secrets.resolved_text_model, query=req.query)
    except LLMError as e:
        raise to_http_exception(e) from e
    return result.value


@router.post("/chat")
async def chat(
    req: ChatRequest,
    backend: ModelBackend = Depends(get_model_backend),
    secrets: Secrets = Depends(get_secrets),
) -> dict[str, Any]:
    try:
        result = await chat_reply(
            backend,
            model=secrets.resolved_text_model,
            history=req.history,
            new_message=req.newMessage,
        )
    except LLMError as e:
        raise to_http_exception(e) from e
    return result.value
