from .settings import (
    Settings,
    ServerSettings,
    WhatsAppSettings,
    OrderApiSettings,
    SupervisorSettings,
    get_settings,
)

__all__ = [
    "Settings",
    "ServerSettings",
    "WhatsAppSettings",
    "OrderApiSettings",
    "SupervisorSettings",
    "get_settings",
]
