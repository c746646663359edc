"""Tests for environment-driven settings."""

import os
from pathlib import Path

import pytest

from backend.config import DEFAULT_CHARACTERS_DIR, Settings
from parlor.llm import DEFAULT_GEMINI_URL

ENV_VARS = [
    "GEMINI_API_KEY",
    "GEMINI_API_URL",
    "GEMINI_TIMEOUT",
    "PARLOR_ECHO_CHAT",
    "GOOGLE_CLOUD_CLIENT_EMAIL",
    "GOOGLE_CLOUD_PRIVATE_KEY",
    "GOOGLE_CLOUD_PROJECT_ID",
    "CHARACTERS_DIR",
    "CHAT_RETRY_ATTEMPTS",
    "CHAT_RETRY_DELAY",
    "MAX_SESSIONS",
    "SESSION_IDLE_TTL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults(tmp_path: Path):
    settings = Settings.from_env(env_file=tmp_path / "missing.env")
    assert settings.gemini_api_key == ""
    assert settings.gemini_api_url == DEFAULT_GEMINI_URL
    assert settings.gemini_timeout is None
    assert settings.echo_chat is False
    assert settings.google_private_key is None
    assert settings.characters_dir == DEFAULT_CHARACTERS_DIR
    assert settings.retry_attempts == 3
    assert settings.retry_delay == 1.0
    assert settings.max_sessions == 1000
    assert settings.session_idle_ttl == 3600.0


def test_reads_environment(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "abc")
    monkeypatch.setenv("GEMINI_TIMEOUT", "12.5")
    monkeypatch.setenv("PARLOR_ECHO_CHAT", "yes")
    monkeypatch.setenv("GOOGLE_CLOUD_PROJECT_ID", "proj")
    monkeypatch.setenv("CHARACTERS_DIR", str(tmp_path))
    monkeypatch.setenv("CHAT_RETRY_ATTEMPTS", "5")
    monkeypatch.setenv("CHAT_RETRY_DELAY", "0.25")
    monkeypatch.setenv("MAX_SESSIONS", "10")
    monkeypatch.setenv("SESSION_IDLE_TTL", "120")

    settings = Settings.from_env(env_file=tmp_path / "missing.env")
    assert settings.gemini_api_key == "abc"
    assert settings.gemini_timeout == 12.5
    assert settings.echo_chat is True
    assert settings.google_project_id == "proj"
    assert settings.characters_dir == tmp_path
    assert settings.retry_attempts == 5
    assert settings.retry_delay == 0.25
    assert settings.max_sessions == 10
    assert settings.session_idle_ttl == 120.0


def test_dotenv_file_loaded(tmp_path: Path):
    env_file = tmp_path / ".env"
    env_file.write_text("GEMINI_API_KEY=from-file\nGOOGLE_CLOUD_CLIENT_EMAIL=a@b.c\n")
    try:
        settings = Settings.from_env(env_file=env_file)
        assert settings.gemini_api_key == "from-file"
        assert settings.google_client_email == "a@b.c"
    finally:
        # load_dotenv writes straight into os.environ
        os.environ.pop("GEMINI_API_KEY", None)
        os.environ.pop("GOOGLE_CLOUD_CLIENT_EMAIL", None)


def test_existing_environment_wins_over_dotenv(tmp_path: Path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("GEMINI_API_KEY=from-file\n")
    monkeypatch.setenv("GEMINI_API_KEY", "from-env")
    assert Settings.from_env(env_file=env_file).gemini_api_key == "from-env"


def test_blank_values_are_missing(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("GOOGLE_CLOUD_PRIVATE_KEY", "")
    monkeypatch.setenv("GEMINI_API_URL", "")
    settings = Settings.from_env(env_file=tmp_path / "missing.env")
    assert settings.google_private_key is None
    assert settings.gemini_api_url == DEFAULT_GEMINI_URL
