# Domain Layer
# ============
# Pure logic with no external dependencies:
# - orders: order reference parsing and the notification record
# - session: cached session facts (QR, readiness, group handle)
from .orders import ORDER_PATTERN, OrderNotification, extract_order_id
from .session import SessionState

__all__ = ["ORDER_PATTERN", "OrderNotification", "extract_order_id", "SessionState"]
