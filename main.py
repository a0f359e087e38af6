"""
Order Relay - Server Entry Point
================================

Run this to start the relay:
    python main.py

Then open http://localhost:3000/qr and scan the QR code with the phone
that is a member of the order group.
"""

import logging

import uvicorn

from order_relay.infrastructure.config import get_settings


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )


def main():
    """Start the web server and the WhatsApp session."""
    settings = get_settings()
    configure_logging(settings.server.log_level)
    logger = logging.getLogger("order_relay")

    for issue in settings.validate():
        logger.warning(issue)

    print("\n" + "=" * 50)
    print("   Order Relay - WhatsApp -> Order API")
    print("=" * 50)
    print(f"\n   Group:  {settings.whatsapp.group_name}")
    print(f"   API:    {settings.order_api.endpoint}")
    print(f"   Server: http://localhost:{settings.server.port}")
    print("   Press Ctrl+C to stop\n")

    # uvicorn turns SIGINT/SIGTERM into a lifespan shutdown
    uvicorn.run(
        "order_relay.web.app:app",
        host=settings.server.host,
        port=settings.server.port,
        log_level=settings.server.log_level.lower(),
    )


if __name__ == "__main__":
    main()
