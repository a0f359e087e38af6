from .order_api import OrderApiClient, OrderApiError

__all__ = ["OrderApiClient", "OrderApiError"]
