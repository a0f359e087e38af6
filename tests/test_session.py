"""Session state cache."""

from conftest import GROUP_ID, GROUP_NAME, FakeAdapter

from order_relay.domain.session import SessionState
from order_relay.infrastructure.whatsapp import Chat


def _group():
    return Chat(id=GROUP_ID, name=GROUP_NAME, is_group=True, adapter=FakeAdapter())


def test_starts_empty():
    session = SessionState()

    assert session.qr_image is None
    assert session.ready is False
    assert session.group_handle is None
    assert session.group_id is None
    assert session.group_cached is False


def test_qr_is_replaced():
    session = SessionState()
    session.set_qr("data:image/png;base64,AAA")
    session.set_qr("data:image/png;base64,BBB")

    assert session.qr_image == "data:image/png;base64,BBB"


def test_ready_with_group():
    session = SessionState()
    group = _group()
    session.set_ready(group)

    assert session.ready is True
    assert session.group_handle is group
    assert session.group_id == GROUP_ID
    assert session.group_cached is True


def test_ready_without_group():
    session = SessionState()
    session.set_ready(None)

    assert session.ready is True
    assert session.group_cached is False
    assert session.group_id is None


def test_clear_resets_ready_and_group_together():
    session = SessionState()
    session.set_qr("data:image/png;base64,AAA")
    session.set_ready(_group())

    session.clear()

    assert session.ready is False
    assert session.group_handle is None
    assert session.group_cached is False
    # The QR is only replaced by the next qr event
    assert session.qr_image == "data:image/png;base64,AAA"
