"""Tests for settings loading."""

from __future__ import annotations

from greenspace.core.config import IdentityConfig, Settings


def test_defaults():
    settings = Settings()
    assert settings.environment == "development"
    assert settings.db.database_url is None
    assert settings.identity.provider == "local"
    assert settings.identity.event_history_size == 10
    assert settings.api_key.expires_in_days == 30


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("GREENSPACE_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("GREENSPACE_DB_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    monkeypatch.setenv("GREENSPACE_IDENTITY_TOKEN_EXPIRY_MINUTES", "5")
    monkeypatch.setenv("GREENSPACE_API_KEY_DEFAULT_KEY", "gs-local-dev")

    settings = Settings()
    assert settings.log_level == "DEBUG"
    assert settings.db.database_url == "sqlite+aiosqlite:///:memory:"
    assert settings.identity.token_expiry_minutes == 5
    assert settings.api_key.default_key == "gs-local-dev"


def test_identity_config_standalone(monkeypatch):
    monkeypatch.setenv("GREENSPACE_IDENTITY_FIXTURES_PATH", "/tmp/users.yml")
    assert IdentityConfig().fixtures_path == "/tmp/users.yml"
