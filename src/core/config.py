"""Core configuration.

- Centralises environment variables (pydantic-settings) away from the CLI.
- Adapters (model client, storage CORS) read their settings from here.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_user_config_dir() -> Path:
    """Per-user configuration directory (cross-platform, no extra dependencies)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "snapverse"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "snapverse"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "snapverse"
    return Path.home() / ".config" / "snapverse"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str], *, env_path: Path | None = None) -> Path:
    """Write or update variables in the user's global .env file."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# SnapVerse user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Application-wide settings.

    One typed contract shared by the CLI, the flow runner and the adapters.
    Instances are built once at process start and passed down explicitly.
    """

    model_config = SettingsConfigDict(
        env_prefix="SNAPVERSE_",
        extra="ignore",
        case_sensitive=False,
        # Project .env first (development), then the user's global config.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    ai_api_key: str | None = Field(
        default=None,
        description="API key for the OpenAI-compatible model provider.",
    )
    ai_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta/openai/",
        min_length=8,
        description="OpenAI-compatible base URL (Gemini by default).",
    )
    ai_model: str = Field(
        default="gemini-2.0-flash",
        min_length=1,
        description="Model used by every content flow.",
    )
    ai_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Transport timeout for a single model call (seconds).",
    )
    ai_temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for generation flows.",
    )

    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout per HTTP request to non-model APIs (seconds).",
    )
    user_agent: str = Field(
        default="snapverse/0.1 (+https://snapverse.local)",
        min_length=1,
        description="User-Agent for outbound HTTP requests.",
    )

    storage_api_base_url: str = Field(
        default="https://storage.googleapis.com/storage/v1",
        min_length=8,
        description="Cloud Storage JSON API base URL.",
    )
    cors_methods: list[str] = Field(
        default_factory=lambda: ["GET", "PUT", "POST", "DELETE"],
        description="HTTP methods allowed by the bucket CORS rule.",
    )
    cors_response_headers: list[str] = Field(
        default_factory=lambda: ["Content-Type", "access-control-allow-origin"],
        description="Response headers exposed by the bucket CORS rule.",
    )
    cors_max_age_seconds: int = Field(
        default=3600,
        ge=0,
        description="Preflight cache lifetime for the bucket CORS rule.",
    )

    log_level: str = Field(
        default="WARNING",
        description="Root log level (DEBUG, INFO, WARNING, ERROR).",
    )
