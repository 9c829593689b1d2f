from __future__ import annotations

from typing import Any, Iterable

from .failures import ErrorKind, LLMError
from .fallback import IMAGE_FALLBACK_KEYWORDS, TEXT_FALLBACK_KEYWORDS
from .gemini import ModelBackend
from .json_tolerant import NoJsonFound, parse_json_tolerant
from .models import ChatTurn, ClassificationResult
from .orchestrator import ModelCallResult, run_model_call
from .responses import grounding_sources


CLASSIFY_PROMPT = (
    "Analyze this image of a farm animal (specifically looking for cattle or buffalo). "
    "Provide a detailed analysis in JSON with keys: classification (Cattle|Buffalo|Unknown), "
    "breed, confidence (0-100), healthStatus, estimatedAge, careTips (array), "
    "dietaryRecommendations (array), marketValueEstimate."
)

CHAT_SYSTEM_PROMPT = (
    "You are a livestock expert helping farmers with cattle and buffalo: breeds, "
    "health, nutrition, husbandry and market questions. Answer clearly and practically."
)

DEFAULT_MIME_TYPE = "image/jpeg"

CLASSIFICATION_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "classification": {"type": "STRING", "enum": ["Cattle", "Buffalo", "Unknown"]},
        "breed": {"type": "STRING"},
        "confidence": {"type": "NUMBER"},
        "healthStatus": {"type": "STRING"},
        "estimatedAge": {"type": "STRING"},
        "careTips": {"type": "ARRAY", "items": {"type": "STRING"}},
        "dietaryRecommendations": {"type": "ARRAY", "items": {"type": "STRING"}},
        "marketValueEstimate": {"type": "STRING"},
    },
}


def _strip_data_url(image: str) -> tuple[str, str | None]:
    # "data:image/png;base64,AAAA" -> ("AAAA", "image/png")
    t = image.strip()
    if t.startswith("data:") and "," in t:
        header, data = t.split(",", 1)
        mime = header[len("data:") :].split(";", 1)[0].strip()
        return data.strip(), (mime or None)
    return t, None


def classification_payload(image_b64: str, mime_type: str, *, with_schema: bool = True) -> dict[str, Any]:
    generation_config: dict[str, Any] = {"responseMimeType": "application/json"}
    if with_schema:
        generation_config["responseSchema"] = CLASSIFICATION_SCHEMA
    return {
        "contents": [
            {
                "role": "user",
                "parts": [
                    {"inlineData": {"mimeType": mime_type, "data": image_b64}},
                    {"text": CLASSIFY_PROMPT},
                ],
            }
        ],
        "generationConfig": generation_config,
    }


def parse_classification(raw: Any, text: str | None) -> ClassificationResult:
    if text is None:
        raise ValueError("No content returned from model")
    try:
        parsed = parse_json_tolerant(text)
    except NoJsonFound as e:
        raise ValueError("Model returned non-JSON response") from e
    except ValueError as e:
        raise ValueError("Model returned invalid JSON") from e

    if isinstance(parsed, list) and parsed and isinstance(parsed[0], dict):
        parsed = parsed[0]
    if not isinstance(parsed, dict):
        raise ValueError("Model returned JSON that is not an object")
    return ClassificationResult.model_validate(parsed)


def parse_search(raw: Any, text: str | None) -> dict[str, Any]:
    return {"text": text or "", "sources": grounding_sources(raw)}


def parse_chat(raw: Any, text: str | None) -> dict[str, Any]:
    return {"text": text or ""}


async def classify_image(
    client: ModelBackend,
    *,
    model: str,
    image: str | None,
    mime_type: str | None = None,
) -> ModelCallResult[ClassificationResult]:
    if not isinstance(image, str) or not image.strip():
        raise LLMError(ErrorKind.MISSING_INPUT, "Missing image in request body")

    data, data_url_mime = _strip_data_url(image)
    mime = (mime_type or "").strip() or data_url_mime or DEFAULT_MIME_TYPE

    # Substitute models may reject responseSchema; the retry only asks for JSON.
    return await run_model_call(
        client,
        model=model,
        payload=classification_payload(data, mime),
        retry_payload=classification_payload(data, mime, with_schema=False),
        parse=parse_classification,
        fallback_keywords=IMAGE_FALLBACK_KEYWORDS,
        model_setting="IMAGE_MODEL",
    )


async def search_web(
    client: ModelBackend,
    *,
    model: str,
    query: str | None,
) -> ModelCallResult[dict[str, Any]]:
    if not isinstance(query, str) or not query.strip():
        raise LLMError(ErrorKind.MISSING_INPUT, "Missing query")

    contents = [{"role": "user", "parts": [{"text": query.strip()}]}]
    return await run_model_call(
        client,
        model=model,
        payload={"contents": contents, "tools": [{"googleSearch": {}}]},
        # Grounding is not available on every model; the fallback answers without it.
        retry_payload={"contents": contents},
        parse=parse_search,
        fallback_keywords=TEXT_FALLBACK_KEYWORDS,
        model_setting="TEXT_MODEL",
    )


def chat_contents(history: Iterable[ChatTurn], new_message: str) -> list[dict[str, Any]]:
    contents: list[dict[str, Any]] = []
    for turn in history:
        role = "user" if (turn.role or "").strip().lower() == "user" else "model"
        contents.append({"role": role, "parts": [{"text": turn.text or ""}]})
    contents.append({"role": "user", "parts": [{"text": new_message}]})
    return contents


async def chat_reply(
    client: ModelBackend,
    *,
    model: str,
    history: Iterable[ChatTurn] | None,
    new_message: str | None,
) -> ModelCallResult[dict[str, Any]]:
    if not isinstance(new_message, str) or not new_message.strip():
        raise LLMError(ErrorKind.MISSING_INPUT, "Missing newMessage")

    payload = {
        "systemInstruction": {"parts": [{"text": CHAT_SYSTEM_PROMPT}]},
        "contents": chat_contents(history or [], new_message),
    }
    return await run_model_call(
        client,
        model=model,
        payload=payload,
        parse=parse_chat,
        fallback_keywords=TEXT_FALLBACK_KEYWORDS,
        model_setting="TEXT_MODEL",
    )
