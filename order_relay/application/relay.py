"""
Message Relay - Incoming Message Filter
=======================================

Decides which chat messages are order reports:
- never our own messages
- only from a group whose name is exactly the configured group name
- only if the text carries a d/<digits> reference
"""

import logging

from ..domain.orders import extract_order_id
from .notifier import OrderNotifier

logger = logging.getLogger(__name__)


class MessageRelay:
    def __init__(self, group_name: str, notifier: OrderNotifier):
        self._group_name = group_name
        self._notifier = notifier

    @property
    def group_name(self) -> str:
        return self._group_name

    def is_relayed_chat(self, chat) -> bool:
        return bool(chat.is_group) and chat.name == self._group_name

    async def handle(self, msg) -> None:
        """Handle one message. Never raises."""
        try:
            if msg.from_me:
                return

            chat = msg.chat
            if not self.is_relayed_chat(chat):
                return

            order_id = extract_order_id(msg.body)
            if order_id is None:
                return

            logger.info(f"Found orderId: {order_id}")
            await self._notifier.notify(
                order_id,
                self._group_name,
                msg.author or msg.sender,
                msg.body,
                msg.timestamp,
                chat,
            )
        except Exception as e:
            logger.exception(f"Error processing incoming message: {e}")
