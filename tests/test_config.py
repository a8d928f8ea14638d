"""Unit tests for core/config.py -- SECRET_KEY policy and defaults."""

import pytest
from pydantic import ValidationError

from core.config import Settings


def test_production_requires_secret_key():
    with pytest.raises(ValidationError, match="SECRET_KEY is required"):
        Settings(_env_file=None, debug=False, secret_key="")


def test_debug_generates_secret_key():
    settings = Settings(_env_file=None, debug=True, secret_key="")
    assert len(settings.secret_key) >= 32


def test_short_secret_key_rejected():
    with pytest.raises(ValidationError, match="at least 32 characters"):
        Settings(_env_file=None, debug=True, secret_key="short")


def test_defaults():
    settings = Settings(_env_file=None, secret_key="k" * 32)
    assert settings.cookie_name == "qid"
    assert settings.session_ttl_seconds == 60 * 60 * 24 * 365 * 10
    assert settings.database_url.startswith("sqlite:///")


def test_env_override(monkeypatch):
    monkeypatch.setenv("COOKIE_NAME", "sid")
    monkeypatch.setenv("SESSION_TTL_SECONDS", "60")
    settings = Settings(_env_file=None, secret_key="k" * 32)
    assert settings.cookie_name == "sid"
    assert settings.session_ttl_seconds == 60
