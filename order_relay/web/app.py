"""
FastAPI Web Application - Order Relay HTTP Surface
==================================================

Routes:
    GET  /health         liveness, always "OK"
    GET  /qr             page with the latest login QR
    GET  /status         session readiness as JSON
    POST /send-message   send a WhatsApp message to a number or the group

The WhatsApp session itself runs in the background; routes only read the
shared SessionState.
"""

import logging
import re
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, BackgroundTasks
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ..application import MessageRelay, OrderNotifier, ReconnectSupervisor
from ..domain.session import SessionState
from ..infrastructure.config import Settings, get_settings
from ..infrastructure.orders import OrderApiClient
from ..infrastructure.whatsapp import MessagingAdapter, SeleniumAdapter

logger = logging.getLogger(__name__)

QR_NOT_AVAILABLE = "QR belum tersedia"


# ── Request models ─────────────────────────────────────────────────

class SendMessageRequest(BaseModel):
    """Exactly one of ``number`` / ``groupTitle`` plus a non-empty message."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    number: Optional[str] = Field(default=None, pattern=r"^\+?[0-9]+$")
    group_title: Optional[str] = Field(default=None, alias="groupTitle", min_length=1)
    message: str = Field(min_length=1)

    @model_validator(mode="after")
    def _exactly_one_target(self):
        if (self.number is None) == (self.group_title is None):
            raise ValueError('exactly one of "number" or "groupTitle" is required')
        return self


def _validation_message(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ()))
        text = item.get("msg", "invalid value")
        parts.append(f"{location}: {text}" if location else text)
    return "; ".join(parts)


def normalize_number(number: str, suffix: str) -> str:
    """'+62 812-345' -> '62812345@c.us'"""
    return f"{re.sub(r'[^0-9]', '', number)}@{suffix}"


# ── Pages ──────────────────────────────────────────────────────────

def render_qr_page(qr_image: str) -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Scan QR WhatsApp</title>
</head>
<body style="display:flex;justify-content:center;align-items:center;height:100vh;flex-direction:column;font-family:sans-serif;">
    <h2>Scan QR WhatsApp</h2>
    <img src="{qr_image}" alt="WhatsApp QR code" style="width:300px;height:300px;" />
</body>
</html>"""


# ── App factory ────────────────────────────────────────────────────

def create_app(
    settings: Optional[Settings] = None,
    adapter: Optional[MessagingAdapter] = None,
    api_client: Optional[OrderApiClient] = None,
) -> FastAPI:
    """
    Wire the components together.

    Components are built eagerly so they can be inspected without running
    the lifespan; the lifespan only starts and stops the supervisor.
    """
    settings = settings or get_settings()
    session = SessionState()
    adapter = adapter or SeleniumAdapter(settings.whatsapp)
    api_client = api_client or OrderApiClient(settings.order_api)
    notifier = OrderNotifier(api_client)
    relay = MessageRelay(settings.whatsapp.group_name, notifier)
    supervisor = ReconnectSupervisor(adapter, session, relay, settings.supervisor)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await supervisor.start()
        logger.info(f"Relaying orders from group '{settings.whatsapp.group_name}' to {api_client.endpoint}")
        try:
            yield
        finally:
            await supervisor.shutdown()
            api_client.close()

    app = FastAPI(
        title="Order Relay",
        description="Relays WhatsApp group order reports to the order API",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.session = session
    app.state.adapter = adapter
    app.state.supervisor = supervisor

    # ── Routes ─────────────────────────────────────────────────────

    @app.get("/health", response_class=PlainTextResponse)
    async def health():
        return "OK"

    @app.get("/qr")
    async def qr_page():
        if not session.qr_image:
            return PlainTextResponse(QR_NOT_AVAILABLE)
        return HTMLResponse(render_qr_page(session.qr_image))

    @app.get("/status")
    async def status():
        return {
            "ready": session.ready,
            "groupCached": session.group_cached,
            "info": {
                "state": supervisor.state.value,
                "group": settings.whatsapp.group_name,
                "groupId": session.group_id,
            },
        }

    async def dispatch_message(chat_id: str, text: str) -> None:
        """Runs after the response has been sent; failures are only logged."""
        try:
            await adapter.send_message(chat_id, text)
            logger.info(f"Message delivered to {chat_id}")
        except Exception as e:
            logger.error(f"Failed to send message to {chat_id}: {e}")

    @app.post("/send-message")
    async def send_message(request: Request, background_tasks: BackgroundTasks):
        try:
            body = await request.json()
        except ValueError:
            return JSONResponse({"success": False, "error": "Body must be valid JSON"}, status_code=400)
        if not isinstance(body, dict):
            return JSONResponse({"success": False, "error": "Body must be a JSON object"}, status_code=400)

        try:
            payload = SendMessageRequest.model_validate(body)
        except ValidationError as e:
            return JSONResponse({"success": False, "error": _validation_message(e)}, status_code=400)

        if not session.ready:
            return JSONResponse({"success": False, "error": "WhatsApp client not ready"}, status_code=503)

        if payload.number is not None:
            chat_id = normalize_number(payload.number, settings.whatsapp.user_suffix)
        else:
            group_name = settings.whatsapp.group_name
            if payload.group_title.lower() != group_name.lower() or not session.group_cached:
                return JSONResponse({"success": False, "error": "Group not found"}, status_code=404)
            chat_id = session.group_id

        background_tasks.add_task(dispatch_message, chat_id, payload.message)
        return {"success": True, "to": chat_id}

    return app


app = create_app()
