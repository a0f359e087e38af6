"""
Order API Client - Order Management Backend
===========================================

Posts fulfilled-order notifications to the order-management API.

CONTRACT:
    POST {endpoint}
    Body: {"order_id", "group", "sender", "message", "timestamp"}
    Any 2xx is success. Error bodies may carry a "message" field.

No retries here; callers decide what a failure means.
"""

import logging
from typing import Optional

import requests

from ..config import OrderApiSettings
from ...domain.orders import OrderNotification

logger = logging.getLogger(__name__)


class OrderApiError(Exception):
    """Raised when the order API call fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class OrderApiClient:
    """
    Thin blocking client for the order API.

    USAGE:
        client = OrderApiClient(settings.order_api)
        client.post_notification(notification)
    """

    def __init__(self, settings: OrderApiSettings, session: Optional[requests.Session] = None):
        self._endpoint = settings.endpoint
        self._timeout = settings.timeout_seconds
        self._session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def post_notification(self, notification: OrderNotification) -> dict:
        """
        Send one notification.

        Returns:
            Decoded JSON response body (empty dict if not JSON).

        Raises:
            OrderApiError: network failure or non-2xx response.
        """
        try:
            response = self._session.post(
                self._endpoint,
                json=notification.to_payload(),
                timeout=self._timeout,
            )
            response.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise OrderApiError(self._error_message(e), status_code=status) from e
        except requests.RequestException as e:
            raise OrderApiError(str(e)) from e

        logger.debug(f"Order API accepted order {notification.order_id} ({response.status_code})")
        try:
            return response.json()
        except ValueError:
            return {}

    def _error_message(self, error: requests.HTTPError) -> str:
        """Prefer the API's own "message" field over the generic HTTP error."""
        response = error.response
        if response is not None:
            try:
                data = response.json()
            except ValueError:
                data = None
            if isinstance(data, dict) and data.get("message"):
                return str(data["message"])
        return str(error)

    def close(self) -> None:
        self._session.close()
