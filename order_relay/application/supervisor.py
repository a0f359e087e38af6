"""
Reconnect Supervisor - WhatsApp Session Lifecycle
==================================================

Consumes adapter events from a single queue and drives the session:

    DISCONNECTED -> CONNECTING (QR issued) -> READY
    READY --auth_failure | disconnected--> DISCONNECTED -> CONNECTING ...

- auth_failure: destroy + initialize right away (asks for a fresh QR)
- disconnected: destroy + initialize after ``reconnect_delay`` seconds
- Reconnects are unbounded and use a fixed delay.
- A heartbeat polls ``get_state()`` so the session never sits idle.
"""

import asyncio
import contextlib
import logging
from enum import Enum
from typing import Optional, Set

from ..infrastructure.config import SupervisorSettings
from ..domain.session import SessionState
from ..infrastructure.whatsapp import AdapterEvent, EventType, MessagingAdapter
from .relay import MessageRelay

logger = logging.getLogger(__name__)

AUTH_FAILURE_NOTICE = "⚠️ Sesi WhatsApp telah berakhir. Silakan scan ulang QR Code."
DISCONNECTED_NOTICE = "⚠️ WhatsApp terputus. Mencoba menyambung kembali..."


class ConnectionState(Enum):
    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    READY = "READY"


class ReconnectSupervisor:
    """
    Owns the adapter lifecycle and the session cache writes.

    USAGE:
        supervisor = ReconnectSupervisor(adapter, session, relay, settings.supervisor)
        await supervisor.start()
        ...
        await supervisor.shutdown()
    """

    def __init__(
        self,
        adapter: MessagingAdapter,
        session: SessionState,
        relay: MessageRelay,
        settings: SupervisorSettings,
    ):
        self._adapter = adapter
        self._session = session
        self._relay = relay
        self._settings = settings
        self._state = ConnectionState.DISCONNECTED
        self._dispatcher: Optional[asyncio.Task] = None
        self._heartbeat: Optional[asyncio.Task] = None
        self._startup: Optional[asyncio.Task] = None
        self._reconnect: Optional[asyncio.Task] = None
        self._handlers: Set[asyncio.Task] = set()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def group_name(self) -> str:
        return self._relay.group_name

    # ── Lifecycle ──────────────────────────────────────────────────

    async def start(self) -> None:
        """
        Start dispatching adapter events and kick off the first initialize.

        Returns without waiting for the browser to come up, so the HTTP
        surface is served while the session is still launching.
        """
        self._dispatcher = asyncio.create_task(self._dispatch(), name="event-dispatcher")
        self._heartbeat = asyncio.create_task(self._keep_alive(), name="heartbeat")
        self._state = ConnectionState.CONNECTING
        self._startup = asyncio.create_task(self._initialize_once(), name="initialize")

    async def shutdown(self) -> None:
        """Stop background work and destroy the adapter."""
        logger.info("Shutting down...")
        tasks = [self._startup, self._reconnect, self._heartbeat, self._dispatcher, *self._handlers]
        self._startup = self._reconnect = self._heartbeat = self._dispatcher = None
        for task in tasks:
            if task is not None:
                task.cancel()
        for task in tasks:
            if task is not None:
                with contextlib.suppress(asyncio.CancelledError):
                    await task

        await self._adapter.destroy()
        self._session.clear()
        self._state = ConnectionState.DISCONNECTED

    async def _initialize(self) -> None:
        self._state = ConnectionState.CONNECTING
        await self._adapter.initialize()

    async def _initialize_once(self) -> None:
        try:
            await self._initialize()
        except Exception as e:
            logger.exception(f"Initial WhatsApp launch failed: {e}")

    async def _restart(self) -> None:
        await self._adapter.destroy()
        await self._initialize()

    # ── Event dispatch ─────────────────────────────────────────────

    async def _dispatch(self) -> None:
        while True:
            event = await self._adapter.events.get()
            try:
                await self.handle_event(event)
            except Exception as e:
                logger.exception(f"Error handling {event.type.value} event: {e}")

    async def handle_event(self, event: AdapterEvent) -> None:
        if event.type is EventType.QR:
            self._on_qr(event.payload)
        elif event.type is EventType.READY:
            await self._on_ready()
        elif event.type is EventType.MESSAGE:
            self._spawn_handler(event.payload)
        elif event.type is EventType.AUTH_FAILURE:
            await self._on_auth_failure(event.payload)
        elif event.type is EventType.DISCONNECTED:
            await self._on_disconnected(event.payload)

    def _on_qr(self, image: str) -> None:
        self._session.set_qr(image)
        logger.info("QR code received. Scan via browser at /qr")

    async def _on_ready(self) -> None:
        logger.info("WhatsApp client is ready")
        self._state = ConnectionState.READY

        group = None
        try:
            chats = await self._adapter.get_chats()
            group = next((c for c in chats if c.name == self.group_name), None)
            if group is None:
                logger.warning(f'Group "{self.group_name}" not found on ready.')
        except Exception as e:
            logger.error(f"Error fetching chats on ready: {e}")

        self._session.set_ready(group)

    async def _on_auth_failure(self, reason) -> None:
        logger.error(f"AUTH FAILURE: {reason}")
        await self._drop_session(AUTH_FAILURE_NOTICE)
        # The immediate restart supersedes any delayed one
        if self._reconnect is not None and not self._reconnect.done():
            self._reconnect.cancel()
        self._reconnect = None
        await self._restart()

    async def _on_disconnected(self, reason) -> None:
        logger.warning(f"WhatsApp disconnected: {reason}")
        await self._drop_session(DISCONNECTED_NOTICE)
        if self._reconnect is not None and not self._reconnect.done():
            return
        self._reconnect = asyncio.create_task(self._reconnect_later(), name="reconnect")

    async def _drop_session(self, notice: str) -> None:
        group = self._session.group_handle
        self._state = ConnectionState.DISCONNECTED
        self._session.clear()

        if group is None:
            return
        try:
            await group.send_message(notice)
        except Exception as e:
            logger.error(f"Failed to notify group: {e}")

    async def _reconnect_later(self) -> None:
        await asyncio.sleep(self._settings.reconnect_delay)
        logger.info("Reconnecting WhatsApp client...")
        try:
            await self._restart()
        except Exception as e:
            logger.exception(f"Reconnect failed: {e}")

    def _spawn_handler(self, message) -> None:
        task = asyncio.create_task(self._relay.handle(message))
        self._handlers.add(task)
        task.add_done_callback(self._handlers.discard)

    # ── Heartbeat ──────────────────────────────────────────────────

    async def _keep_alive(self) -> None:
        while True:
            await asyncio.sleep(self._settings.heartbeat_interval)
            try:
                await self._adapter.get_state()
            except Exception as e:
                logger.debug(f"Heartbeat failed: {e}")
