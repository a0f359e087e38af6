"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

# Add project root to sys.path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from order_relay.domain.orders import OrderNotification
from order_relay.infrastructure.config import (
    OrderApiSettings,
    ServerSettings,
    Settings,
    SupervisorSettings,
    WhatsAppSettings,
)
from order_relay.infrastructure.orders import OrderApiError
from order_relay.infrastructure.whatsapp import (
    Chat,
    IncomingMessage,
    MessagingAdapter,
    WhatsAppClientError,
)

GROUP_NAME = "WEB CUNGS"
GROUP_ID = "120363025246125486@g.us"


class FakeAdapter(MessagingAdapter):
    """In-memory adapter: records calls instead of driving a browser."""

    def __init__(self, chats: Optional[Dict[str, str]] = None):
        super().__init__()
        self.chats = {GROUP_NAME: GROUP_ID} if chats is None else chats
        self.sent: List[Tuple[str, str]] = []
        self.calls: List[str] = []
        self.fail_send = False
        self.fail_get_chats = False
        self.fail_get_state = False

    async def initialize(self) -> None:
        self.calls.append("initialize")

    async def destroy(self) -> None:
        self.calls.append("destroy")

    async def get_chats(self) -> List[Chat]:
        if self.fail_get_chats:
            raise WhatsAppClientError("chat list unavailable")
        return [
            Chat(id=chat_id, name=name, is_group=chat_id.endswith("@g.us"), adapter=self)
            for name, chat_id in self.chats.items()
        ]

    async def send_message(self, chat_id: str, text: str) -> None:
        if self.fail_send:
            raise WhatsAppClientError("send failed")
        self.sent.append((chat_id, text))

    async def get_state(self) -> Optional[str]:
        self.calls.append("get_state")
        if self.fail_get_state:
            raise WhatsAppClientError("browser gone")
        return "CONNECTED"


class FakeOrderApi:
    """Stands in for OrderApiClient."""

    endpoint = "http://orders.test/api/orders/mark-as-done"

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.posted: List[OrderNotification] = []
        self.closed = False

    def post_notification(self, notification: OrderNotification) -> dict:
        self.posted.append(notification)
        if self.error is not None:
            raise self.error
        return {"status": "ok"}

    def close(self) -> None:
        self.closed = True


def make_message(
    adapter: MessagingAdapter,
    body: str,
    *,
    from_me: bool = False,
    chat_name: str = GROUP_NAME,
    chat_id: str = GROUP_ID,
    author: Optional[str] = "6281234567@c.us",
    timestamp: int = 1760781120,
) -> IncomingMessage:
    chat = Chat(id=chat_id, name=chat_name, is_group=chat_id.endswith("@g.us"), adapter=adapter)
    return IncomingMessage(
        id=f"false_{chat_id}_3EB0C767D26A1B4A",
        body=body,
        from_me=from_me,
        sender=chat_id,
        chat=chat,
        author=author,
        timestamp=timestamp,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        server=ServerSettings(host="127.0.0.1", port=3000, log_level="INFO"),
        whatsapp=WhatsAppSettings(group_name=GROUP_NAME, poll_interval=0.01),
        order_api=OrderApiSettings(endpoint=FakeOrderApi.endpoint, timeout_seconds=None),
        supervisor=SupervisorSettings(reconnect_delay=0.01, heartbeat_interval=300.0),
    )


@pytest.fixture
def adapter() -> FakeAdapter:
    return FakeAdapter()


@pytest.fixture
def order_api() -> FakeOrderApi:
    return FakeOrderApi()


@pytest.fixture
def failing_order_api() -> FakeOrderApi:
    return FakeOrderApi(error=OrderApiError("Order not found", status_code=404))
