# Application Layer
# =================
# Use cases and orchestration (no business rules):
# - relay: filters incoming group messages for order references
# - notifier: reports orders to the API and confirms in the chat
# - supervisor: adapter lifecycle, reconnects and heartbeat
from .notifier import OrderNotifier, CONFIRMATION_TEMPLATE
from .relay import MessageRelay
from .supervisor import (
    ReconnectSupervisor,
    ConnectionState,
    AUTH_FAILURE_NOTICE,
    DISCONNECTED_NOTICE,
)

__all__ = [
    "OrderNotifier",
    "CONFIRMATION_TEMPLATE",
    "MessageRelay",
    "ReconnectSupervisor",
    "ConnectionState",
    "AUTH_FAILURE_NOTICE",
    "DISCONNECTED_NOTICE",
]
