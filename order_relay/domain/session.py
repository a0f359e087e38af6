"""
Session State - Cached WhatsApp Session Facts
=============================================

Holds what the HTTP surface needs to know about the WhatsApp session:
the latest QR image, whether the client is ready, and the handle of the
relayed group chat.

Only adapter event handlers write here; HTTP handlers only read.
Readiness and the group reference are always cleared together.
"""

from typing import Any, Optional


class SessionState:
    """Mutable session cache shared by the supervisor and the web layer."""

    def __init__(self):
        self._qr_image: Optional[str] = None
        self._ready = False
        self._group_handle: Any = None
        self._group_id: Optional[str] = None

    # ── Writers ────────────────────────────────────────────────────

    def set_qr(self, image: str) -> None:
        """Replace the cached QR image (a data URL)."""
        self._qr_image = image

    def set_ready(self, group_handle: Any = None) -> None:
        """Mark the session ready, caching the group chat if one was found."""
        self._ready = True
        self._group_handle = group_handle
        self._group_id = group_handle.id if group_handle is not None else None

    def clear(self) -> None:
        """Drop readiness and the group reference."""
        self._ready = False
        self._group_handle = None
        self._group_id = None

    # ── Readers ────────────────────────────────────────────────────

    @property
    def qr_image(self) -> Optional[str]:
        return self._qr_image

    @property
    def ready(self) -> bool:
        return self._ready

    @property
    def group_handle(self) -> Any:
        return self._group_handle

    @property
    def group_id(self) -> Optional[str]:
        return self._group_id

    @property
    def group_cached(self) -> bool:
        return self._group_id is not None
