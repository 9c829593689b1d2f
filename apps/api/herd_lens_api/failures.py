from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum


class FailureCategory(str, Enum):
    INVALID_CREDENTIALS = "invalid_credentials"
    QUOTA_EXHAUSTED = "quota_exhausted"
    RESOURCE_NOT_FOUND = "resource_not_found"
    UNKNOWN = "unknown"


class ErrorKind(str, Enum):
    MISSING_INPUT = "missing_input"
    MISCONFIGURED = "misconfigured"
    INVALID_CREDENTIALS = "invalid_credentials"
    QUOTA_EXHAUSTED = "quota_exhausted"
    RESOURCE_NOT_FOUND = "resource_not_found"
    INVALID_MODEL_OUTPUT = "invalid_model_output"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class RetryAttempt:
    original: str
    substitute: str
    outcome: str  # succeeded|failed


class LLMError(RuntimeError):
    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        retry: RetryAttempt | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.retry = retry


class UpstreamError(RuntimeError):
    """A failed call to the model service (HTTP error or transport error)."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


_CREDENTIALS_RE = re.compile(r"API key not valid|API_KEY_INVALID|API key invalid", re.IGNORECASE)
_QUOTA_RE = re.compile(r"quota|RESOURCE_EXHAUSTED|rate[ _-]?limit|too many requests", re.IGNORECASE)
_NOT_FOUND_RE = re.compile(
    r"not found for API version|model_not_found|is not supported for generateContent",
    re.IGNORECASE,
)

HTTP_TOO_MANY_REQUESTS = 429


def _status_of(error: BaseException) -> int | None:
    for attr in ("status", "status_code", "code"):
        v = getattr(error, attr, None)
        if isinstance(v, int) and not isinstance(v, bool):
            return v
    return None


def classify_failure(error: BaseException) -> FailureCategory:
    message = str(error) or ""
    if _CREDENTIALS_RE.search(message):
        return FailureCategory.INVALID_CREDENTIALS
    if _QUOTA_RE.search(message) or _status_of(error) == HTTP_TOO_MANY_REQUESTS:
        return FailureCategory.QUOTA_EXHAUSTED
    if _NOT_FOUND_RE.search(message):
        return FailureCategory.RESOURCE_NOT_FOUND
    return FailureCategory.UNKNOWN


# Maps each kind onto the HTTP status the routers return.
HTTP_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.MISSING_INPUT: 400,
    ErrorKind.MISCONFIGURED: 500,
    ErrorKind.INVALID_CREDENTIALS: 500,
    ErrorKind.QUOTA_EXHAUSTED: 429,
    ErrorKind.RESOURCE_NOT_FOUND: 400,
    ErrorKind.INVALID_MODEL_OUTPUT: 502,
    ErrorKind.UNKNOWN: 500,
}
