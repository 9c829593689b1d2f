from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


Classification = Literal["Cattle", "Buffalo", "Unknown"]

_LABELS: dict[str, Classification] = {
    "cattle": "Cattle",
    "buffalo": "Buffalo",
    "unknown": "Unknown",
}


def _as_text(v: Any) -> str:
    if v is None:
        return ""
    if isinstance(v, str):
        return v.strip()
    return str(v)


class ClassificationResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    classification: Classification = "Unknown"
    breed: str = ""
    confidence: float = 0.0
    health_status: str = ""
    estimated_age: str = ""
    care_tips: list[str] = Field(default_factory=list)
    dietary_recommendations: list[str] = Field(default_factory=list)
    market_value_estimate: str = ""

    @field_validator("classification", mode="before")
    @classmethod
    def _normalize_label(cls, v: Any) -> Classification:
        low = _as_text(v).lower()
        if low in _LABELS:
            return _LABELS[low]
        # "Water Buffalo", "Dairy cattle", ...
        if "buffalo" in low:
            return "Buffalo"
        if "cattle" in low:
            return "Cattle"
        return "Unknown"

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, v: Any) -> float:
        # Models sometimes answer "95%"; values are taken as-is on the 0-100 scale.
        if isinstance(v, str):
            v = v.strip().rstrip("%").strip()
        try:
            f = float(v)
        except (TypeError, ValueError):
            return 0.0
        if f != f:  # NaN
            return 0.0
        return max(0.0, min(100.0, f))

    @field_validator(
        "breed",
        "health_status",
        "estimated_age",
        "market_value_estimate",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, v: Any) -> str:
        return _as_text(v)

    @field_validator("care_tips", "dietary_recommendations", mode="before")
    @classmethod
    def _coerce_list(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [v.strip()] if v.strip() else []
        if not isinstance(v, (list, tuple)):
            return []
        return [_as_text(item) for item in v if _as_text(item)]

    def as_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class ClassifyRequest(BaseModel):
    image: str | None = None
    # Older clients send the image under this name.
    base64Image: str | None = None
    mimeType: str | None = None


class SearchRequest(BaseModel):
    query: str | None = None


class ChatTurn(BaseModel):
    role: str = "user"
    text: str | None = ""


class ChatRequest(BaseModel):
    history: list[ChatTurn] | None = None
    newMessage: str | None = None
