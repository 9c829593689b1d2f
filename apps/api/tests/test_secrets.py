from __future__ import annotations

from pathlib import Path

from herd_lens_api.secrets import (
    DEFAULT_BASE_URL,
    DEFAULT_IMAGE_MODEL,
    DEFAULT_TEXT_MODEL,
    load_secrets,
    read_env_file,
    secrets_status,
)


def _no_file(tmp_path: Path) -> Path:
    return tmp_path / "missing.env"


def test_api_key_name_precedence(tmp_path: Path) -> None:
    s = load_secrets({"GOOGLE_API_KEY": "g", "GEMINI_API_KEY": "m"}, env_file=_no_file(tmp_path))
    assert s.api_key == "m"
    assert s.api_key_env_var == "GEMINI_API_KEY"

    s = load_secrets(
        {"GOOGLE_API_KEY": "g", "GEMINI_API_KEY": "m", "API_KEY": "a"},
        env_file=_no_file(tmp_path),
    )
    assert s.api_key == "a"
    assert s.api_key_env_var == "API_KEY"


def test_blank_values_are_ignored(tmp_path: Path) -> None:
    s = load_secrets({"API_KEY": "  ", "GOOGLE_API_KEY": "g"}, env_file=_no_file(tmp_path))
    assert s.api_key == "g"


def test_base_url_precedence(tmp_path: Path) -> None:
    s = load_secrets(
        {
            "GEMINI_URL": "https://d",
            "GEMINI_BASE_URL": "https://c",
            "GEMINI_API_URL": "https://b",
        },
        env_file=_no_file(tmp_path),
    )
    assert s.base_url == "https://b"

    s = load_secrets(
        {"GEMINI_NEXT_GEN_API_BASE_URL": "https://a", "GEMINI_API_URL": "https://b"},
        env_file=_no_file(tmp_path),
    )
    assert s.base_url == "https://a"


def test_defaults(tmp_path: Path) -> None:
    s = load_secrets({}, env_file=_no_file(tmp_path))
    assert s.api_key is None
    assert s.resolved_base_url == DEFAULT_BASE_URL
    assert s.resolved_image_model == DEFAULT_IMAGE_MODEL
    assert s.resolved_text_model == DEFAULT_TEXT_MODEL


def test_env_file_values_are_overridden_by_environment(tmp_path: Path) -> None:
    env_file = tmp_path / ".env.local"
    env_file.write_text(
        "# local secrets\n"
        "GEMINI_API_KEY='file-key'\n"
        "export IMAGE_MODEL=\"models/gemini-2.5-flash\"\n"
        "TEXT_MODEL=models/from-file\n"
        "not a setting\n",
        encoding="utf-8",
    )

    s = load_secrets({"TEXT_MODEL": "models/from-env"}, env_file=env_file)

    assert s.api_key == "file-key"
    assert s.image_model == "models/gemini-2.5-flash"
    assert s.text_model == "models/from-env"


def test_read_env_file(tmp_path: Path) -> None:
    env_file = tmp_path / ".env.local"
    env_file.write_text("A=1\n\n# B=2\nC = 'three'\nD=\n", encoding="utf-8")
    assert read_env_file(env_file) == {"A": "1", "C": "three"}


def test_status_and_repr_never_expose_values(tmp_path: Path) -> None:
    s = load_secrets(
        {"API_KEY": "super-secret-value", "GEMINI_BASE_URL": "https://proxy"},
        env_file=_no_file(tmp_path),
    )
    status = secrets_status(s)
    assert status == {
        "api_key_present": True,
        "base_url_present": True,
        "image_model_present": False,
        "text_model_present": False,
    }
    assert "super-secret-value" not in repr(s)


def test_env_file_inline_comments_are_not_part_of_values(tmp_path: Path) -> None:
    env_file = tmp_path / ".env.local"
    env_file.write_text(
        "API_KEY=abc123 # prod key\n"
        'IMAGE_MODEL="models/gemini-2.5-flash" # vision\n',
        encoding="utf-8",
    )

    s = load_secrets({}, env_file=env_file)

    assert s.api_key == "abc123"
    assert s.image_model == "models/gemini-2.5-flash"
