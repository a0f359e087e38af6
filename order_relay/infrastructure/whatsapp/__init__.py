from .whatsapp_client import (
    WhatsAppClient,
    WhatsAppClientError,
    PageState,
    MessageKey,
    RawMessage,
    parse_message_id,
    parse_pre_plain_text,
)
from .messaging_provider import (
    MessagingAdapter,
    SeleniumAdapter,
    AdapterEvent,
    EventType,
    Chat,
    IncomingMessage,
)

__all__ = [
    "WhatsAppClient",
    "WhatsAppClientError",
    "PageState",
    "MessageKey",
    "RawMessage",
    "parse_message_id",
    "parse_pre_plain_text",
    "MessagingAdapter",
    "SeleniumAdapter",
    "AdapterEvent",
    "EventType",
    "Chat",
    "IncomingMessage",
]
