"""Environment-driven settings."""

from pathlib import Path

import pytest

from order_relay.infrastructure.config import Settings, get_settings
from order_relay.infrastructure.config.settings import DEFAULT_API_ENDPOINT

ENV_VARS = [
    "HOST", "PORT", "LOG_LEVEL", "GROUP_NAME", "API_ENDPOINT",
    "WHATSAPP_HEADLESS", "WHATSAPP_SESSION_DIR", "WHATSAPP_POLL_INTERVAL",
    "RECONNECT_DELAY", "HEARTBEAT_INTERVAL", "ORDER_API_TIMEOUT",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    settings = Settings()

    assert settings.server.port == 3000
    assert settings.server.host == "0.0.0.0"
    assert settings.whatsapp.group_name == "WEB CUNGS"
    assert settings.whatsapp.headless is True
    assert settings.whatsapp.session_dir == Path(".wwebjs_auth")
    assert settings.whatsapp.user_suffix == "c.us"
    assert settings.order_api.endpoint == DEFAULT_API_ENDPOINT
    assert settings.order_api.timeout_seconds is None
    assert settings.supervisor.reconnect_delay == 5.0
    assert settings.supervisor.heartbeat_interval == 300.0


def test_env_overrides(clean_env):
    clean_env.setenv("PORT", "8080")
    clean_env.setenv("GROUP_NAME", "Gudang Pusat")
    clean_env.setenv("API_ENDPOINT", "https://orders.example.com/done")
    clean_env.setenv("WHATSAPP_HEADLESS", "false")
    clean_env.setenv("ORDER_API_TIMEOUT", "12.5")
    clean_env.setenv("LOG_LEVEL", "debug")

    settings = Settings()

    assert settings.server.port == 8080
    assert settings.server.log_level == "DEBUG"
    assert settings.whatsapp.group_name == "Gudang Pusat"
    assert settings.whatsapp.headless is False
    assert settings.order_api.endpoint == "https://orders.example.com/done"
    assert settings.order_api.timeout_seconds == 12.5


def test_validate_warns_about_default_endpoint(clean_env):
    issues = Settings().validate()

    assert any("API_ENDPOINT" in issue for issue in issues)


def test_validate_warns_about_empty_group(clean_env):
    clean_env.setenv("GROUP_NAME", "  ")
    clean_env.setenv("API_ENDPOINT", "https://orders.example.com/done")

    issues = Settings().validate()

    assert any("GROUP_NAME" in issue for issue in issues)
    assert not any("API_ENDPOINT" in issue for issue in issues)


def test_get_settings_is_cached():
    get_settings.cache_clear()
    try:
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()
