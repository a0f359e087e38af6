"""Incoming message filter."""

from unittest.mock import AsyncMock

import pytest

from conftest import GROUP_ID, GROUP_NAME, make_message
from order_relay.application import CONFIRMATION_TEMPLATE, MessageRelay, OrderNotifier


def _relay(order_api):
    return MessageRelay(GROUP_NAME, OrderNotifier(order_api))


@pytest.mark.asyncio
async def test_order_message_is_reported(adapter, order_api):
    await _relay(order_api).handle(make_message(adapter, "Please confirm d/482 thanks"))

    assert [n.order_id for n in order_api.posted] == ["482"]
    assert order_api.posted[0].sender == "6281234567@c.us"
    assert order_api.posted[0].message == "Please confirm d/482 thanks"
    assert adapter.sent == [(GROUP_ID, CONFIRMATION_TEMPLATE.format(order_id="482"))]


@pytest.mark.asyncio
async def test_sender_falls_back_to_chat_when_no_author(adapter, order_api):
    await _relay(order_api).handle(make_message(adapter, "D/9", author=None))

    assert order_api.posted[0].sender == GROUP_ID


@pytest.mark.asyncio
async def test_own_messages_ignored(adapter, order_api):
    await _relay(order_api).handle(make_message(adapter, "d/482", from_me=True))

    assert order_api.posted == []


@pytest.mark.asyncio
async def test_other_group_ignored(adapter, order_api):
    await _relay(order_api).handle(make_message(adapter, "d/482", chat_name="Other Group"))

    assert order_api.posted == []


@pytest.mark.asyncio
async def test_group_name_match_is_exact(adapter, order_api):
    await _relay(order_api).handle(make_message(adapter, "d/482", chat_name="web cungs"))

    assert order_api.posted == []


@pytest.mark.asyncio
async def test_direct_chat_ignored(adapter, order_api):
    # A contact saved under the group's name is still not the group
    message = make_message(adapter, "d/482", chat_id="6281234567@c.us", author=None)

    await _relay(order_api).handle(message)

    assert order_api.posted == []


@pytest.mark.asyncio
async def test_message_without_order_ignored(adapter, order_api):
    await _relay(order_api).handle(make_message(adapter, "no id here"))

    assert order_api.posted == []
    assert adapter.sent == []


@pytest.mark.asyncio
async def test_api_failure_sends_nothing_back(adapter, failing_order_api):
    await _relay(failing_order_api).handle(make_message(adapter, "d/482"))

    assert adapter.sent == []


@pytest.mark.asyncio
async def test_unexpected_errors_are_contained(adapter):
    notifier = AsyncMock()
    notifier.notify.side_effect = RuntimeError("boom")
    relay = MessageRelay(GROUP_NAME, notifier)

    # Must not raise
    await relay.handle(make_message(adapter, "d/482"))

    notifier.notify.assert_awaited_once()


@pytest.mark.asyncio
async def test_confirmation_failure_is_contained(adapter, order_api):
    adapter.fail_send = True

    await _relay(order_api).handle(make_message(adapter, "d/482"))

    assert len(order_api.posted) == 1
    assert adapter.sent == []
