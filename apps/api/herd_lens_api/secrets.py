from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from dotenv import dotenv_values


DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com"
DEFAULT_IMAGE_MODEL = "models/gemini-flash-latest"
DEFAULT_TEXT_MODEL = "models/gemini-pro-latest"

# First name that is set wins.
API_KEY_NAMES = ("API_KEY", "GEMINI_API_KEY", "GOOGLE_API_KEY")
BASE_URL_NAMES = (
    "GEMINI_NEXT_GEN_API_BASE_URL",
    "GEMINI_API_URL",
    "GEMINI_BASE_URL",
    "GEMINI_URL",
)

ENV_FILE_NAME = ".env.local"


@dataclass(frozen=True)
class Secrets:
    api_key: str | None = None
    api_key_env_var: str | None = None
    base_url: str | None = None
    image_model: str | None = None
    text_model: str | None = None

    def __repr__(self) -> str:  # pragma: no cover
        redacted_key = "***" if self.api_key else None
        return (
            "Secrets("
            f"api_key={redacted_key!r}, "
            f"api_key_env_var={self.api_key_env_var!r}, "
            f"base_url={self.base_url!r}, "
            f"image_model={self.image_model!r}, "
            f"text_model={self.text_model!r}"
            ")"
        )

    @property
    def resolved_base_url(self) -> str:
        return self.base_url or DEFAULT_BASE_URL

    @property
    def resolved_image_model(self) -> str:
        return self.image_model or DEFAULT_IMAGE_MODEL

    @property
    def resolved_text_model(self) -> str:
        return self.text_model or DEFAULT_TEXT_MODEL


def _find_env_file() -> Path | None:
    here = Path(__file__).resolve()
    for parent in here.parents:
        cand = parent / ENV_FILE_NAME
        if cand.exists():
            return cand
    return None


def read_env_file(path: Path) -> dict[str, str]:
    """Read a dotenv file, dropping keys without a value."""

    values = dotenv_values(path, encoding="utf-8")
    return {k: v for k, v in values.items() if v}


def _first_set(values: Mapping[str, str], names: tuple[str, ...]) -> tuple[str | None, str | None]:
    for name in names:
        v = (values.get(name) or "").strip()
        if v:
            return name, v
    return None, None


def load_secrets(
    environ: Mapping[str, str] | None = None,
    env_file: Path | None = None,
) -> Secrets:
    """
    Load configuration.

    Values from .env.local (searched from this package upwards) are merged
    under the process environment, so a real environment variable always
    overrides the file. Name precedence is then applied to the merged view:

    - key:      API_KEY > GEMINI_API_KEY > GOOGLE_API_KEY
    - base url: GEMINI_NEXT_GEN_API_BASE_URL > GEMINI_API_URL > GEMINI_BASE_URL > GEMINI_URL
    - IMAGE_MODEL / TEXT_MODEL overrides

    This function must never log/print keys.
    """

    merged: dict[str, str] = {}
    path = env_file if env_file is not None else _find_env_file()
    if path is not None and path.exists():
        merged.update(read_env_file(path))
    merged.update(os.environ if environ is None else environ)

    key_name, api_key = _first_set(merged, API_KEY_NAMES)
    _, base_url = _first_set(merged, BASE_URL_NAMES)
    _, image_model = _first_set(merged, ("IMAGE_MODEL",))
    _, text_model = _first_set(merged, ("TEXT_MODEL",))

    return Secrets(
        api_key=api_key,
        api_key_env_var=key_name,
        base_url=base_url,
        image_model=image_model,
        text_model=text_model,
    )


def secrets_status(s: Secrets) -> dict[str, object]:
    return {
        "api_key_present": bool(s.api_key),
        "base_url_present": bool(s.base_url),
        "image_model_present": bool(s.image_model),
        "text_model_present": bool(s.text_model),
    }
