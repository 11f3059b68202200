"""
Configuration tests.

Settings come from EVENTDESK_* environment variables; insecure setups are
refused outside development.
"""

import pytest
from pydantic import ValidationError

from eventdesk.config import DEFAULT_DOCUMENT_MIME_TYPES, Environment, Settings


def test_defaults():
    config = Settings(database_url="sqlite+aiosqlite:///:memory:")

    assert config.tab_lock_debounce_seconds == 1.0
    assert config.max_document_bytes == 50 * 1024 * 1024
    assert "application/pdf" in config.allowed_document_mime_types
    assert config.allowed_document_mime_types == DEFAULT_DOCUMENT_MIME_TYPES
    assert config.is_sqlite is True


def test_cors_is_an_explicit_allowlist():
    from eventdesk.config import settings

    assert settings.cors_allowed_origins != ["*"]
    assert "X-Actor-ID" in settings.cors_allowed_headers
    assert "DELETE" in settings.cors_allowed_methods


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("EVENTDESK_TAB_LOCK_DEBOUNCE_SECONDS", "2.5")
    monkeypatch.setenv("EVENTDESK_ALLOWED_DOCUMENT_MIME_TYPES", "application/pdf, text/plain")
    monkeypatch.setenv("EVENTDESK_CORS_ALLOWED_ORIGINS", '["https://app.example.com"]')

    config = Settings()

    assert config.tab_lock_debounce_seconds == 2.5
    assert config.allowed_document_mime_types == ["application/pdf", "text/plain"]
    assert config.cors_allowed_origins == ["https://app.example.com"]


def test_rejects_unsupported_database_url():
    with pytest.raises(ValidationError):
        Settings(database_url="mysql://root@localhost/eventdesk")


def test_rejects_bad_port_and_sizes():
    with pytest.raises(ValidationError):
        Settings(port=70000)
    with pytest.raises(ValidationError):
        Settings(max_document_bytes=0)
    with pytest.raises(ValidationError):
        Settings(tab_lock_debounce_seconds=-1)


@pytest.mark.parametrize("env", [Environment.STAGING, Environment.PRODUCTION])
def test_insecure_dev_refused_outside_development(env):
    with pytest.raises(ValidationError):
        Settings(env=env, allow_insecure_dev=True, api_key="secret")


@pytest.mark.parametrize("env", [Environment.STAGING, Environment.PRODUCTION])
def test_api_key_required_outside_development(env):
    with pytest.raises(ValidationError):
        Settings(env=env, allow_insecure_dev=False, api_key=None)

    config = Settings(env=env, allow_insecure_dev=False, api_key="secret")
    assert config.api_key == "secret"
