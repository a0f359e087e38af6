"""
Messaging Provider - Event-Driven Abstraction over WhatsApp
============================================================

The rest of the application only sees ``MessagingAdapter``: a queue of
lifecycle/message events plus a handful of async operations.

EVENTS (put on ``adapter.events``):
    qr(data_url)        a new login QR is on screen
    ready()             chats are loaded, the session is usable
    message(msg)        an incoming or outgoing chat message
    auth_failure(why)   the stored session is no longer accepted
    disconnected(why)   the browser/session went away

USAGE:
    adapter = SeleniumAdapter(settings.whatsapp)
    await adapter.initialize()
    event = await adapter.events.get()
"""

import asyncio
import contextlib
import logging
import re
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional

from selenium.common.exceptions import WebDriverException

from ..config import WhatsAppSettings
from .whatsapp_client import (
    PageState,
    RawMessage,
    WhatsAppClient,
    WhatsAppClientError,
    parse_message_id,
    parse_pre_plain_text,
)

logger = logging.getLogger(__name__)

USER_ID_RE = re.compile(r"^(\d+)@c\.us$")


class EventType(Enum):
    QR = "qr"
    READY = "ready"
    MESSAGE = "message"
    AUTH_FAILURE = "auth_failure"
    DISCONNECTED = "disconnected"


@dataclass(frozen=True)
class AdapterEvent:
    type: EventType
    payload: Any = None


@dataclass
class Chat:
    """A chat as seen by the adapter. Sending goes back through the adapter."""
    id: str
    name: str
    is_group: bool
    adapter: "MessagingAdapter" = field(repr=False, compare=False)

    async def send_message(self, text: str) -> None:
        await self.adapter.send_message(self.id, text)


@dataclass
class IncomingMessage:
    """
    A chat message.

    ``sender`` is the chat the message arrived in; ``author`` is the group
    participant who wrote it (None outside groups).
    """
    id: str
    body: str
    from_me: bool
    sender: str
    chat: Chat
    author: Optional[str] = None
    timestamp: int = 0


class MessagingAdapter(ABC):
    """
    Abstract base class for WhatsApp connectivity.
    Implement this interface to add new messaging backends.
    """

    def __init__(self):
        self.events: "asyncio.Queue[AdapterEvent]" = asyncio.Queue()

    def emit(self, event_type: EventType, payload: Any = None) -> None:
        self.events.put_nowait(AdapterEvent(event_type, payload))

    @abstractmethod
    async def initialize(self) -> None:
        """Start the session. Progress is reported through events."""
        ...

    @abstractmethod
    async def destroy(self) -> None:
        """Tear the session down. Safe to call when not initialized."""
        ...

    @abstractmethod
    async def get_chats(self) -> List[Chat]:
        ...

    @abstractmethod
    async def send_message(self, chat_id: str, text: str) -> None:
        """Send text to a chat id. Raises WhatsAppClientError on failure."""
        ...

    @abstractmethod
    async def get_state(self) -> Optional[str]:
        ...


class SeleniumAdapter(MessagingAdapter):
    """
    WhatsApp Web through Selenium.

    A watcher task polls the page and turns what it sees into events.
    All driver calls are serialized by a lock and run in worker threads.
    """

    SEEN_LIMIT = 5000

    def __init__(
        self,
        settings: WhatsAppSettings,
        client_factory: Callable[[WhatsAppSettings], WhatsAppClient] = WhatsAppClient,
    ):
        super().__init__()
        self._settings = settings
        self._client_factory = client_factory
        self._client: Optional[WhatsAppClient] = None
        self._lock = asyncio.Lock()
        self._watcher: Optional[asyncio.Task] = None
        self._authenticated = False
        self._last_qr_ref: Optional[str] = None
        self._seen: "OrderedDict[str, None]" = OrderedDict()
        # Chat ids only show up in message rows; titles only in the UI
        self._titles_by_chat_id: dict = {}

    async def _call(self, fn: Callable, *args):
        async with self._lock:
            return await asyncio.to_thread(fn, *args)

    def _require_client(self) -> WhatsAppClient:
        if self._client is None:
            raise WhatsAppClientError("WhatsApp client is not initialized")
        return self._client

    # ── Lifecycle ──────────────────────────────────────────────────

    async def initialize(self) -> None:
        if self._client is not None:
            logger.warning("initialize() called on a running client, ignoring")
            return

        logger.info("Launching WhatsApp Web...")
        self._authenticated = False
        self._last_qr_ref = None
        try:
            self._client = await self._call(self._client_factory, self._settings)
        except Exception as e:
            # Driver download or Chrome start failed; the supervisor retries
            logger.exception(f"Failed to launch browser: {e}")
            self.emit(EventType.DISCONNECTED, "LAUNCH_FAILED")
            return

        self._watcher = asyncio.create_task(self._watch(), name="whatsapp-watcher")

    async def destroy(self) -> None:
        watcher, self._watcher = self._watcher, None
        if watcher is not None and watcher is not asyncio.current_task():
            watcher.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await watcher

        client, self._client = self._client, None
        if client is not None:
            await self._call(client.close)
        self._authenticated = False

    # ── Operations ─────────────────────────────────────────────────

    async def get_chats(self) -> List[Chat]:
        client = self._require_client()
        titles = await self._call(client.list_chat_titles)
        ids_by_title = {title: chat_id for chat_id, title in self._titles_by_chat_id.items()}

        chats = []
        for title in titles:
            chat_id = ids_by_title.get(title, title)
            chats.append(Chat(
                id=chat_id,
                name=title,
                is_group=chat_id.endswith("@g.us"),
                adapter=self,
            ))
        return chats

    async def send_message(self, chat_id: str, text: str) -> None:
        client = self._require_client()

        match = USER_ID_RE.match(chat_id)
        if match:
            sent = await self._call(client.send_to_phone, match.group(1), text)
        else:
            title = self._titles_by_chat_id.get(chat_id, chat_id)
            sent = await self._call(client.send_to_chat, title, text)

        if not sent:
            raise WhatsAppClientError(f"Could not send message to {chat_id}")

    async def get_state(self) -> Optional[str]:
        client = self._require_client()
        return await self._call(client.connection_state)

    # ── Watcher ────────────────────────────────────────────────────

    async def _watch(self) -> None:
        client = self._client
        while True:
            try:
                if not await self._poll(client):
                    return
            except WebDriverException as e:
                logger.warning(f"Browser session lost: {e.msg}")
                self.emit(EventType.DISCONNECTED, "BROWSER_CLOSED")
                return
            except Exception as e:
                logger.exception(f"Unexpected error while polling WhatsApp Web: {e}")

            await asyncio.sleep(self._settings.poll_interval)

    async def _poll(self, client: WhatsAppClient) -> bool:
        """One observation of the page. Returns False when watching should stop."""
        page = await self._call(client.detect_page)

        if page is PageState.QR:
            if self._authenticated:
                self._authenticated = False
                self.emit(EventType.AUTH_FAILURE, "Session logged out, QR requested again")
                return False

            ref = await self._call(client.qr_reference)
            if ref and ref != self._last_qr_ref:
                image = await self._call(client.qr_image)
                if image:
                    self._last_qr_ref = ref
                    self.emit(EventType.QR, image)

        elif page is PageState.CHATS:
            if not self._authenticated:
                # Everything already on screen is history, not new traffic
                await self._collect_messages(client, emit=False)
                self._authenticated = True
                self.emit(EventType.READY)
            else:
                await self._collect_messages(client, emit=True)

        return True

    async def _collect_messages(self, client: WhatsAppClient, emit: bool) -> None:
        batches = [await self._call(client.read_open_chat)]
        for title in await self._call(client.unread_chat_titles):
            batches.append(await self._call(client.read_chat, title))

        for title, rows in batches:
            for row in rows:
                message = self._to_message(title, row)
                if message is not None and emit:
                    self.emit(EventType.MESSAGE, message)

    def _remember(self, key: str) -> bool:
        """Record a message id. Returns False if it was already seen."""
        if key in self._seen:
            return False
        self._seen[key] = None
        while len(self._seen) > self.SEEN_LIMIT:
            self._seen.popitem(last=False)
        return True

    def _to_message(self, title: Optional[str], row: RawMessage) -> Optional[IncomingMessage]:
        key = parse_message_id(row.data_id)
        if key is None or not self._remember(row.data_id):
            return None

        if title:
            self._titles_by_chat_id[key.chat_id] = title

        timestamp, _ = parse_pre_plain_text(row.pre_text)
        chat = Chat(
            id=key.chat_id,
            name=title or "",
            is_group=key.chat_id.endswith("@g.us"),
            adapter=self,
        )
        return IncomingMessage(
            id=row.data_id,
            body=row.text or "",
            from_me=key.from_me,
            sender=key.chat_id,
            chat=chat,
            author=key.author,
            timestamp=timestamp if timestamp is not None else int(time.time()),
        )
