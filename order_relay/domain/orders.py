"""
Orders - Order Reference Extraction
===================================

Group members mark an order as fulfilled by writing ``d/<order id>``
anywhere in a message (e.g. "sudah dikirim d/482"). This module holds the
pure parsing logic and the notification record sent to the order API.
"""

import re
from dataclasses import dataclass, asdict
from typing import Optional

# Letter d (either case), slash, one or more ASCII digits
ORDER_PATTERN = re.compile(r"[dD]/([0-9]+)")


def extract_order_id(text: Optional[str]) -> Optional[str]:
    """Return the digits of the first ``d/<digits>`` reference, or None."""
    if not text:
        return None
    match = ORDER_PATTERN.search(text)
    if not match:
        return None
    return match.group(1)


@dataclass(frozen=True)
class OrderNotification:
    """Payload posted to the order API for each matched message."""
    order_id: str
    group: str
    sender: str
    message: str
    timestamp: int

    def to_payload(self) -> dict:
        return asdict(self)
