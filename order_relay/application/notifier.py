"""
Order Notifier - Report Fulfilled Orders
========================================

Posts an order notification to the order API and, only if the API accepts
it, confirms back in the originating chat.

FAILURE POLICY:
- API failure is logged and swallowed: no retry, no confirmation
- The caller never sees an API error
"""

import asyncio
import logging

from ..domain.orders import OrderNotification
from ..infrastructure.orders import OrderApiClient, OrderApiError

logger = logging.getLogger(__name__)

CONFIRMATION_TEMPLATE = "Order dengan ID {order_id} telah sukses."


class OrderNotifier:
    def __init__(self, api_client: OrderApiClient):
        self._api = api_client

    async def notify(
        self,
        order_id: str,
        group_name: str,
        sender_id: str,
        raw_message: str,
        timestamp: int,
        chat,
    ) -> bool:
        """
        Report one order and confirm it in ``chat``.

        Returns:
            True if the API accepted the order and a confirmation was sent.
        """
        notification = OrderNotification(
            order_id=order_id,
            group=group_name,
            sender=sender_id,
            message=raw_message,
            timestamp=timestamp,
        )

        try:
            await asyncio.to_thread(self._api.post_notification, notification)
        except OrderApiError as e:
            logger.error(f"API Error: {e}")
            return False

        await chat.send_message(CONFIRMATION_TEMPLATE.format(order_id=order_id))
        logger.info(f"Order {order_id} confirmed in '{group_name}'")
        return True
