"""Configuration via environment variables, config.json, and .env files."""

from __future__ import annotations

import json
import os
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ytscribe.core.constants import (
    CONFIG_FILE_PATH,
    DEFAULT_API_BASE_URL,
    DEFAULT_DB_PATH,
    DEFAULT_DOWNLOADS_DIR,
    DEFAULT_MAX_WORKERS,
    DEFAULT_OVERSIZE_POLICY,
    DEFAULT_SUBSCRIBER_QUEUE_SIZE,
    DEFAULT_TRANSCRIBE_MODEL,
    OVERSIZE_POLICIES,
)

# Keys that may be persisted in config.json
FILE_KEYS = (
    "api_base_url",
    "api_key",
    "transcribe_model",
    "downloads_dir",
    "max_workers",
    "subscriber_queue_size",
    "oversize_policy",
    "cookies_browser",
    "cookies_file",
)


def _load_config_file() -> dict:
    """Read ~/.config/ytscribe/config.json if it exists, return as dict."""
    if not CONFIG_FILE_PATH.exists():
        return {}
    try:
        return json.loads(CONFIG_FILE_PATH.read_text())
    except (OSError, ValueError):
        return {}


def save_config(data: dict) -> Path:
    """Write config dict to ~/.config/ytscribe/config.json. Returns the path."""
    CONFIG_FILE_PATH.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_FILE_PATH.write_text(json.dumps(data, indent=2) + "\n")
    return CONFIG_FILE_PATH


class YTScribeConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="YTSCRIBE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API
    api_base_url: str = Field(default=DEFAULT_API_BASE_URL)
    api_key: str = Field(default="")

    # Models
    transcribe_model: str = Field(default=DEFAULT_TRANSCRIBE_MODEL)

    # Storage
    db_path: Path = Field(default=DEFAULT_DB_PATH)
    downloads_dir: Path = Field(default=DEFAULT_DOWNLOADS_DIR)

    # Processing
    max_workers: int = Field(default=DEFAULT_MAX_WORKERS, ge=1)
    subscriber_queue_size: int = Field(default=DEFAULT_SUBSCRIBER_QUEUE_SIZE, ge=1)
    oversize_policy: str = Field(default=DEFAULT_OVERSIZE_POLICY)

    # yt-dlp cookies (e.g. "firefox", or a cookies.txt path)
    cookies_browser: str = Field(default="")
    cookies_file: str = Field(default="")

    @field_validator("oversize_policy")
    @classmethod
    def _check_policy(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in OVERSIZE_POLICIES:
            raise ValueError(f"oversize_policy must be one of {', '.join(OVERSIZE_POLICIES)}")
        return value


def resolve_api_key(config: YTScribeConfig) -> str:
    """Return the configured API key, falling back to OPENAI_API_KEY."""
    configured = (config.api_key or "").strip()
    if configured:
        return configured
    return os.environ.get("OPENAI_API_KEY", "").strip()


def get_config(db_path: Path | None = None) -> YTScribeConfig:
    """Create config with priority: env vars > config.json > defaults."""
    file_data = _load_config_file()

    # pydantic treats __init__ kwargs as highest priority, so only pass
    # config.json values for keys that have no env var set
    init_kwargs: dict = {}
    for key in FILE_KEYS:
        env_name = f"YTSCRIBE_{key.upper()}"
        if key in file_data and env_name not in os.environ:
            init_kwargs[key] = file_data[key]

    config = YTScribeConfig(**init_kwargs)

    if db_path is not None:
        config.db_path = db_path
    return config
