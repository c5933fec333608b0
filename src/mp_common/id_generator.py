"""Order ids and order numbers.

Order ids are snowflake-style: time-ordered 64-bit integers rendered as
decimal strings; listing orders newest-first and cursor pagination compare
them as integers. The order number shown to buyers is derived from the id
and the creation date.
"""

import threading
import time
from collections.abc import Callable
from datetime import datetime

from config.settings import settings

EPOCH_MS = 1_735_689_600_000  # 2025-01-01T00:00:00Z
NODE_BITS = 10
SEQUENCE_BITS = 12
MAX_NODE_ID = (1 << NODE_BITS) - 1
MAX_SEQUENCE = (1 << SEQUENCE_BITS) - 1


class SnowflakeIdGenerator:
    """41 bits of milliseconds since EPOCH_MS, 10 bits node id, 12 bits sequence."""

    def __init__(self, node_id: int = 0, clock: Callable[[], float] = time.time) -> None:
        if not 0 <= node_id <= MAX_NODE_ID:
            raise ValueError(f"node_id must be 0-{MAX_NODE_ID}, got {node_id}")
        self._node_id = node_id
        self._clock = clock
        self._lock = threading.Lock()
        self._last_ms = -1
        self._sequence = 0

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def next_id(self) -> str:
        with self._lock:
            now = self._now_ms()
            if now < self._last_ms:
                # never hand out an id that sorts before one already issued
                now = self._last_ms
            if now == self._last_ms:
                self._sequence = (self._sequence + 1) & MAX_SEQUENCE
                if self._sequence == 0:
                    while now <= self._last_ms:
                        now = max(self._now_ms(), self._last_ms + 1)
            else:
                self._sequence = 0
            self._last_ms = now
            value = (
                (now - EPOCH_MS) << (NODE_BITS + SEQUENCE_BITS)
                | self._node_id << SEQUENCE_BITS
                | self._sequence
            )
            return str(value)


_default_generator = SnowflakeIdGenerator(node_id=settings.NODE_ID)


def generate_id() -> str:
    return _default_generator.next_id()


def _base36(value: int) -> str:
    digits = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    out = ""
    while True:
        value, rem = divmod(value, 36)
        out = digits[rem] + out
        if value == 0:
            return out


def make_order_number(order_id: str, created_at: datetime) -> str:
    """Display order number, e.g. ORD-20261019-3KTB2W9QZ1S.

    The suffix encodes the whole id, so two orders never share a number.
    """
    return f"ORD-{created_at:%Y%m%d}-{_base36(int(order_id))}"
