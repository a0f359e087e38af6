"""
Settings Module - Centralized Configuration Management
=======================================================

ARCHITECTURAL DECISION:
- All configuration is loaded from environment variables (no hardcoded secrets)
- Settings are immutable dataclasses grouped by concern
- Single source of truth for all configurable values

EXTENSIBILITY:
- To relay a different group: set GROUP_NAME
- To point at another order backend: set API_ENDPOINT
"""

import os
from dataclasses import dataclass, field
from typing import Optional
from pathlib import Path
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file if present (development convenience)
load_dotenv()


DEFAULT_GROUP_NAME = "WEB CUNGS"
DEFAULT_API_ENDPOINT = "http://localhost:8000/api/orders/mark-as-done"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return float(value)


@dataclass(frozen=True)
class ServerSettings:
    """HTTP server settings."""

    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "3000")))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())


@dataclass(frozen=True)
class WhatsAppSettings:
    """WhatsApp Web automation settings."""

    # Only messages from a group with exactly this name are relayed
    group_name: str = field(default_factory=lambda: os.getenv("GROUP_NAME", DEFAULT_GROUP_NAME))

    # Browser settings. The QR is served over HTTP, so headless works here.
    headless: bool = field(default_factory=lambda: _env_bool("WHATSAPP_HEADLESS", True))
    session_dir: Path = field(
        default_factory=lambda: Path(os.getenv("WHATSAPP_SESSION_DIR", ".wwebjs_auth"))
    )

    # Seconds between page polls (QR changes, login state, new messages)
    poll_interval: float = field(default_factory=lambda: _env_float("WHATSAPP_POLL_INTERVAL", 3.0))

    # Suffix appended to normalized phone numbers to build a chat id
    user_suffix: str = "c.us"


@dataclass(frozen=True)
class OrderApiSettings:
    """External order-management API settings."""

    endpoint: str = field(default_factory=lambda: os.getenv("API_ENDPOINT", DEFAULT_API_ENDPOINT))

    # None means no explicit timeout, same as the HTTP client default
    timeout_seconds: Optional[float] = field(
        default_factory=lambda: _env_float("ORDER_API_TIMEOUT", None)
    )


@dataclass(frozen=True)
class SupervisorSettings:
    """Reconnect and keep-alive timing."""

    reconnect_delay: float = field(default_factory=lambda: _env_float("RECONNECT_DELAY", 5.0))
    heartbeat_interval: float = field(default_factory=lambda: _env_float("HEARTBEAT_INTERVAL", 300.0))


@dataclass(frozen=True)
class Settings:
    """
    Root settings container - Single source of truth for all configuration.

    Usage:
        from order_relay.infrastructure.config import get_settings
        settings = get_settings()
        print(settings.whatsapp.group_name)
    """

    server: ServerSettings = field(default_factory=ServerSettings)
    whatsapp: WhatsAppSettings = field(default_factory=WhatsAppSettings)
    order_api: OrderApiSettings = field(default_factory=OrderApiSettings)
    supervisor: SupervisorSettings = field(default_factory=SupervisorSettings)

    def validate(self) -> list[str]:
        """
        Validate settings and return list of warnings.
        Returns empty list if all settings look production-ready.
        """
        issues = []

        if not self.whatsapp.group_name.strip():
            issues.append(
                "WARNING: GROUP_NAME is empty. "
                "No group messages will be relayed."
            )

        if self.order_api.endpoint == DEFAULT_API_ENDPOINT:
            issues.append(
                "WARNING: API_ENDPOINT not set. "
                f"Order notifications go to {DEFAULT_API_ENDPOINT}."
            )

        if not self.whatsapp.headless and not os.getenv("DISPLAY") and os.name != "nt":
            issues.append(
                "WARNING: WHATSAPP_HEADLESS is false but no DISPLAY is set. "
                "Chrome may fail to start."
            )

        return issues


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get singleton Settings instance.
    Cached to ensure consistent settings throughout application lifecycle.
    """
    return Settings()
