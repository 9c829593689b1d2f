from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from ..analysis import classify_image
from ..deps import get_model_backend, get_secrets, to_http_exception
from ..failures import LLMError
from ..gemini import ModelBackend
from ..models import ClassifyRequest
from ..secrets import Secrets


router = APIRouter(prefix="/api", tags=["classify"])


@router.post("/classify")
async def classify(
    req: ClassifyRequest,
    backend: ModelBackend = Depends(get_model_backend),
    secrets: Secrets = Depends(get_secrets),
) -> dict[str, Any]:
    """
    Classify a cattle/buffalo photo.

    The body carries the base64 image (plain or as a data: URL). The response
    is always a complete ClassificationResult; anything the model gets wrong
    becomes an error status instead of a partial result.
    """
    try:
        result = await classify_image(
            backend,
            model=secrets.resolved_image_model,
            image=req.image or req.base64Image,
            mime_type=req.mimeType,
        )
    except LLMError as e:
        raise to_http_exception(e) from e
    return result.value.as_dict()
