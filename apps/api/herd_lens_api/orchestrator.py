from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, Iterable, TypeVar

from .failures import ErrorKind, FailureCategory, LLMError, RetryAttempt, classify_failure
from .fallback import resolve_fallback
from .gemini import ModelBackend
from .responses import response_text


logger = logging.getLogger(__name__)

T = TypeVar("T")


class Stage(str, Enum):
    INVOKING = "invoking"
    NORMALIZING = "normalizing"
    PARSING = "parsing"
    CLASSIFYING = "classifying"
    RETRYING = "retrying"
    DONE = "done"


# RETRYING is only reachable from CLASSIFYING and never leads back to it.
TRANSITIONS: dict[Stage, frozenset[Stage]] = {
    Stage.INVOKING: frozenset({Stage.NORMALIZING, Stage.CLASSIFYING}),
    Stage.CLASSIFYING: frozenset({Stage.RETRYING, Stage.DONE}),
    Stage.RETRYING: frozenset({Stage.NORMALIZING, Stage.DONE}),
    Stage.NORMALIZING: frozenset({Stage.PARSING}),
    Stage.PARSING: frozenset({Stage.DONE}),
    Stage.DONE: frozenset(),
}


def _advance(current: Stage, nxt: Stage) -> Stage:
    if nxt not in TRANSITIONS[current]:
        raise RuntimeError(f"illegal_stage_transition:{current.value}->{nxt.value}")
    return nxt


@dataclass(frozen=True)
class ModelCallResult(Generic[T]):
    value: T
    model: str
    retry: RetryAttempt | None = None


_TERMINAL: dict[FailureCategory, tuple[ErrorKind, str]] = {
    FailureCategory.INVALID_CREDENTIALS: (
        ErrorKind.INVALID_CREDENTIALS,
        "Server misconfigured: API key missing or invalid. Set API_KEY in .env.local",
    ),
    FailureCategory.QUOTA_EXHAUSTED: (
        ErrorKind.QUOTA_EXHAUSTED,
        "Server quota exhausted: check billing/quotas and retry later",
    ),
}


def _terminal_error(category: FailureCategory, error: BaseException) -> LLMError:
    if category in _TERMINAL:
        kind, message = _TERMINAL[category]
        return LLMError(kind, message)
    return LLMError(ErrorKind.UNKNOWN, str(error) or type(error).__name__)


def _not_found_error(model: str, model_setting: str, retry: RetryAttempt | None = None) -> LLMError:
    return LLMError(
        ErrorKind.RESOURCE_NOT_FOUND,
        f"Model {model} not available for this API/version. "
        "Run 'python scripts/list_models.py' to see available models "
        f"and set {model_setting} in .env.local.",
        retry=retry,
    )


async def _find_substitute(
    client: ModelBackend,
    model: str,
    keywords: Iterable[str],
) -> str | None:
    try:
        catalog = await client.list_models()
    except Exception as e:
        logger.warning("model catalog lookup failed: %s", e)
        return None
    return resolve_fallback(catalog, model, keywords)


async def run_model_call(
    client: ModelBackend,
    *,
    model: str,
    payload: dict[str, Any],
    parse: Callable[[Any, str | None], T],
    fallback_keywords: Iterable[str] = (),
    retry_payload: dict[str, Any] | None = None,
    model_setting: str = "TEXT_MODEL",
) -> ModelCallResult[T]:
    """
    One model call with tolerant output handling and at most one fallback.

    `parse(raw, text)` receives the raw response and its normalized text and
    must raise ValueError for unusable output. Every failure leaves as an
    LLMError tagged with an ErrorKind.
    """

    stage = Stage.INVOKING
    current_model = model
    current_payload = payload
    retry: RetryAttempt | None = None
    failure: Exception | None = None
    raw: Any = None
    text: str | None = None
    value: Any = None

    while stage is not Stage.DONE:
        if stage in (Stage.INVOKING, Stage.RETRYING):
            try:
                raw = await client.generate(current_model, current_payload)
            except Exception as e:
                if stage is Stage.RETRYING:
                    retry = RetryAttempt(model, current_model, "failed")
                    logger.warning("fallback model %s failed: %s", current_model, e)
                    _advance(stage, Stage.DONE)
                    raise _not_found_error(model, model_setting, retry) from e
                failure = e
                stage = _advance(stage, Stage.CLASSIFYING)
                continue
            if stage is Stage.RETRYING:
                retry = RetryAttempt(model, current_model, "succeeded")
            stage = _advance(stage, Stage.NORMALIZING)

        elif stage is Stage.NORMALIZING:
            try:
                text = response_text(raw)
            except Exception as e:
                # SDK-style text() accessors can raise (e.g. blocked candidates).
                raise LLMError(
                    ErrorKind.INVALID_MODEL_OUTPUT,
                    f"Model response could not be read: {type(e).__name__}",
                    retry=retry,
                ) from e
            stage = _advance(stage, Stage.PARSING)

        elif stage is Stage.PARSING:
            try:
                value = parse(raw, text)
            except ValueError as e:
                logger.warning("unusable output from model %s: %s", current_model, e)
                raise LLMError(
                    ErrorKind.INVALID_MODEL_OUTPUT,
                    str(e) or "Model returned invalid output",
                    retry=retry,
                ) from e
            stage = _advance(stage, Stage.DONE)

        elif stage is Stage.CLASSIFYING:
            if failure is None:
                raise RuntimeError("illegal_stage_state:classifying_without_failure")
            category = classify_failure(failure)
            logger.warning(
                "model call failed model=%s category=%s error=%s",
                model,
                category.value,
                failure,
            )
            if category is not FailureCategory.RESOURCE_NOT_FOUND:
                _advance(stage, Stage.DONE)
                raise _terminal_error(category, failure) from failure

            substitute = await _find_substitute(client, model, fallback_keywords)
            if substitute is None:
                _advance(stage, Stage.DONE)
                raise _not_found_error(model, model_setting) from failure

            logger.info("attempting fallback model %s -> %s", model, substitute)
            current_model = substitute
            current_payload = retry_payload if retry_payload is not None else payload
            stage = _advance(stage, Stage.RETRYING)

    return ModelCallResult(value=value, model=current_model, retry=retry)
