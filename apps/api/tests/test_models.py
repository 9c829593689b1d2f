from __future__ import annotations

from herd_lens_api.models import ClassificationResult


def test_camel_case_round_trip() -> None:
    r = ClassificationResult.model_validate(
        {
            "classification": "Cattle",
            "breed": "Gir",
            "confidence": 88,
            "healthStatus": "Good",
            "estimatedAge": "3 years",
            "careTips": ["Deworm twice a year"],
            "dietaryRecommendations": ["Green fodder"],
            "marketValueEstimate": "INR 60,000",
        }
    )
    assert r.as_dict() == {
        "classification": "Cattle",
        "breed": "Gir",
        "confidence": 88.0,
        "healthStatus": "Good",
        "estimatedAge": "3 years",
        "careTips": ["Deworm twice a year"],
        "dietaryRecommendations": ["Green fodder"],
        "marketValueEstimate": "INR 60,000",
    }


def test_missing_and_null_fields_get_defaults() -> None:
    r = ClassificationResult.model_validate(
        {"classification": "Buffalo", "careTips": None, "breed": None}
    )
    body = r.as_dict()
    assert body["careTips"] == []
    assert body["dietaryRecommendations"] == []
    assert body["breed"] == ""
    assert body["marketValueEstimate"] == ""


def test_labels_are_normalized() -> None:
    assert ClassificationResult.model_validate({"classification": "buffalo"}).classification == "Buffalo"
    assert ClassificationResult.model_validate({"classification": "Water Buffalo"}).classification == "Buffalo"
    assert ClassificationResult.model_validate({"classification": "Dairy Cattle"}).classification == "Cattle"
    assert ClassificationResult.model_validate({"classification": "Goat"}).classification == "Unknown"
    assert ClassificationResult.model_validate({}).classification == "Unknown"


def test_confidence_is_coerced_and_clamped() -> None:
    def conf(v: object) -> float:
        return ClassificationResult.model_validate({"confidence": v}).confidence

    assert conf("95%") == 95.0
    assert conf(140) == 100.0
    assert conf(-3) == 0.0
    assert conf("high") == 0.0
    assert conf(None) == 0.0
    assert conf(" 87 % ") == 87.0
    # No fraction rescaling: 0.95 means 0.95 percent.
    assert conf("0.95") == 0.95


def test_list_fields_tolerate_strings_and_blanks() -> None:
    r = ClassificationResult.model_validate(
        {"careTips": "Provide shade", "dietaryRecommendations": ["Hay", "", None, 3]}
    )
    assert r.care_tips == ["Provide shade"]
    assert r.dietary_recommendations == ["Hay", "3"]
