"""Order API client against a stubbed requests session."""

import json
from unittest.mock import MagicMock

import pytest
import requests

from order_relay.domain.orders import OrderNotification
from order_relay.infrastructure.config import OrderApiSettings
from order_relay.infrastructure.orders import OrderApiClient, OrderApiError

ENDPOINT = "http://orders.test/api/orders/mark-as-done"


def _response(status: int, body) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.url = ENDPOINT
    response._content = body.encode() if isinstance(body, str) else json.dumps(body).encode()
    return response


def _notification() -> OrderNotification:
    return OrderNotification(
        order_id="482",
        group="WEB CUNGS",
        sender="6281234567@c.us",
        message="d/482",
        timestamp=1760781120,
    )


def _client(session, timeout=None) -> OrderApiClient:
    return OrderApiClient(OrderApiSettings(endpoint=ENDPOINT, timeout_seconds=timeout), session=session)


def test_posts_json_payload():
    session = MagicMock()
    session.post.return_value = _response(200, {"message": "Order marked as done"})

    result = _client(session, timeout=10).post_notification(_notification())

    assert result == {"message": "Order marked as done"}
    session.post.assert_called_once_with(
        ENDPOINT,
        json={
            "order_id": "482",
            "group": "WEB CUNGS",
            "sender": "6281234567@c.us",
            "message": "d/482",
            "timestamp": 1760781120,
        },
        timeout=10,
    )


def test_non_json_success_body():
    session = MagicMock()
    session.post.return_value = _response(204, "")

    assert _client(session).post_notification(_notification()) == {}


def test_error_uses_api_message_field():
    session = MagicMock()
    session.post.return_value = _response(404, {"message": "Order 482 not found"})

    with pytest.raises(OrderApiError) as excinfo:
        _client(session).post_notification(_notification())

    assert str(excinfo.value) == "Order 482 not found"
    assert excinfo.value.status_code == 404


def test_error_without_message_field():
    session = MagicMock()
    session.post.return_value = _response(500, "<html>Internal Server Error</html>")

    with pytest.raises(OrderApiError) as excinfo:
        _client(session).post_notification(_notification())

    assert "500" in str(excinfo.value)
    assert excinfo.value.status_code == 500


def test_network_error():
    session = MagicMock()
    session.post.side_effect = requests.ConnectionError("connection refused")

    with pytest.raises(OrderApiError) as excinfo:
        _client(session).post_notification(_notification())

    assert "connection refused" in str(excinfo.value)
    assert excinfo.value.status_code is None
