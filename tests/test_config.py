"""Tests for config loading: env vars > config.json > defaults."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from ytscribe.core.config import (
    YTScribeConfig,
    _load_config_file,
    get_config,
    resolve_api_key,
    save_config,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for key in list(os.environ):
        if key.startswith("YTSCRIBE_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    # Keep a stray .env in the working directory out of the picture
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# save / load round-trip
# ---------------------------------------------------------------------------

def test_save_and_load_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    fake_config = tmp_path / "config.json"
    monkeypatch.setattr("ytscribe.core.config.CONFIG_FILE_PATH", fake_config)

    data = {"transcribe_model": "whisper-large", "api_key": "test-key-123"}
    result = save_config(data)
    assert result == fake_config
    assert fake_config.exists()

    loaded = json.loads(fake_config.read_text())
    assert loaded["transcribe_model"] == "whisper-large"
    assert loaded["api_key"] == "test-key-123"


def test_load_config_file_missing(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("ytscribe.core.config.CONFIG_FILE_PATH", tmp_path / "nope.json")
    assert _load_config_file() == {}


def test_load_config_file_invalid_json(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    bad = tmp_path / "config.json"
    bad.write_text("not json {{{")
    monkeypatch.setattr("ytscribe.core.config.CONFIG_FILE_PATH", bad)
    assert _load_config_file() == {}


# ---------------------------------------------------------------------------
# Priority: env vars > config.json > defaults
# ---------------------------------------------------------------------------

def test_defaults_without_config_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("ytscribe.core.config.CONFIG_FILE_PATH", tmp_path / "nope.json")

    config = get_config()
    assert config.api_base_url == "https://api.openai.com/v1"
    assert config.transcribe_model == "whisper-1"
    assert config.max_workers == 2
    assert config.subscriber_queue_size == 100
    assert config.oversize_policy == "compress"
    assert config.downloads_dir == Path("data") / "downloads"


def test_config_file_overrides_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    cfg_file = tmp_path / "config.json"
    cfg_file.write_text(json.dumps({
        "api_base_url": "http://localhost:8000/v1",
        "oversize_policy": "reject",
        "max_workers": 4,
    }))
    monkeypatch.setattr("ytscribe.core.config.CONFIG_FILE_PATH", cfg_file)

    config = get_config()
    assert config.api_base_url == "http://localhost:8000/v1"
    assert config.oversize_policy == "reject"
    assert config.max_workers == 4


def test_env_var_overrides_config_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    cfg_file = tmp_path / "config.json"
    cfg_file.write_text(json.dumps({
        "transcribe_model": "from-file",
        "max_workers": 3,
    }))
    monkeypatch.setattr("ytscribe.core.config.CONFIG_FILE_PATH", cfg_file)
    monkeypatch.setenv("YTSCRIBE_TRANSCRIBE_MODEL", "from-env")

    config = get_config()
    # Env var wins
    assert config.transcribe_model == "from-env"
    # Config file value still applies for non-overridden fields
    assert config.max_workers == 3


def test_db_path_override() -> None:
    custom = Path("/tmp/test.db")
    config = get_config(db_path=custom)
    assert config.db_path == custom


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def test_oversize_policy_is_normalised() -> None:
    assert YTScribeConfig(oversize_policy=" Reject ").oversize_policy == "reject"


def test_unknown_oversize_policy_rejected() -> None:
    with pytest.raises(ValidationError):
        YTScribeConfig(oversize_policy="split")


def test_max_workers_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        YTScribeConfig(max_workers=0)


# ---------------------------------------------------------------------------
# API key resolution
# ---------------------------------------------------------------------------

def test_configured_api_key_wins(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    assert resolve_api_key(YTScribeConfig(api_key="sk-config")) == "sk-config"


def test_api_key_falls_back_to_openai_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    assert resolve_api_key(YTScribeConfig()) == "sk-env"


def test_api_key_unset() -> None:
    assert resolve_api_key(YTScribeConfig()) == ""
