"""Domain service: human-readable order numbers.

Format: ``<PREFIX>-<YYYYMMDD>-<NNNNN>``, e.g. ``SC-20260107-00001``.  The
sequence is a per-day counter claimed through the order repository inside
the order-creation unit of work, so concurrent checkouts on the same day
never compute the same number.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Callable

from ordercore.domain.repository.order_repository import OrderRepository

SEQUENCE_WIDTH = 5
_SEQUENCE_RE = re.compile(r"-(\d+)$")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_sequence(order_number: str | None) -> int:
    """The trailing sequence of an order number; 0 when there is none."""
    if not order_number:
        return 0
    match = _SEQUENCE_RE.search(order_number)
    return int(match.group(1)) if match else 0


class OrderNumberGenerator:

    def __init__(
        self,
        prefix: str = "SC",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._prefix = prefix
        self._clock = clock

    def day_prefix(self, now: datetime | None = None) -> str:
        now = now or self._clock()
        return f"{self._prefix}-{now.strftime('%Y%m%d')}-"

    def now(self) -> datetime:
        return self._clock()

    def next_number(self, order_repo: OrderRepository, now: datetime | None = None) -> str:
        day_prefix = self.day_prefix(now)
        sequence = order_repo.next_sequence(day_prefix)
        return f"{day_prefix}{sequence:0{SEQUENCE_WIDTH}d}"
