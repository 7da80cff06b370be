"""Push ID generation and key ordering utilities.

Centralizes the key format knowledge so callers never need to
construct or compare collection keys directly.

Push IDs: 8 timestamp characters + 12 random characters, drawn from
an alphabet whose ASCII order matches its index order. IDs created
later always sort after IDs created earlier, including IDs created
within the same millisecond.
"""

from __future__ import annotations

import re
import secrets
import threading
import time

PUSH_CHARS = "-0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ_abcdefghijklmnopqrstuvwxyz"
PUSH_ID_LENGTH = 20
_TIMESTAMP_CHARS = 8
_RANDOM_CHARS = 12

_INT_KEY = re.compile(r"^-?(0|[1-9][0-9]*)$")
_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1


class PushIdGenerator:
    """Generates chronologically ordered push IDs.

    Keeps the random suffix of the last ID so that IDs created within
    the same millisecond are incremented rather than re-drawn.
    """

    def __init__(self, clock=None) -> None:
        self._clock = clock or (lambda: int(time.time() * 1000))
        self._last_timestamp = -1
        self._last_random: list[int] = [0] * _RANDOM_CHARS
        self._lock = threading.Lock()

    def generate(self) -> str:
        """Generate the next push ID."""
        with self._lock:
            now = self._clock()
            if now == self._last_timestamp:
                self._increment_random()
            else:
                self._last_random = [secrets.randbelow(64) for _ in range(_RANDOM_CHARS)]
            self._last_timestamp = now

            timestamp_chars = []
            for _ in range(_TIMESTAMP_CHARS):
                timestamp_chars.append(PUSH_CHARS[now % 64])
                now //= 64
            if now != 0:
                raise ValueError("Timestamp does not fit in a push ID")

            return "".join(reversed(timestamp_chars)) + "".join(
                PUSH_CHARS[i] for i in self._last_random
            )

    def _increment_random(self) -> None:
        index = _RANDOM_CHARS - 1
        while index >= 0 and self._last_random[index] == 63:
            self._last_random[index] = 0
            index -= 1
        if index >= 0:
            self._last_random[index] += 1


_default_generator = PushIdGenerator()


def generate_push_id() -> str:
    """Generate a push ID from the process-wide generator."""
    return _default_generator.generate()


def push_id_timestamp(push_id: str) -> int:
    """Extract the millisecond timestamp from a push ID.

    Raises ValueError on malformed input.
    """
    if len(push_id) != PUSH_ID_LENGTH:
        raise ValueError(f"Malformed push ID: {push_id}")
    timestamp = 0
    for char in push_id[:_TIMESTAMP_CHARS]:
        index = PUSH_CHARS.find(char)
        if index < 0:
            raise ValueError(f"Malformed push ID: {push_id}")
        timestamp = timestamp * 64 + index
    return timestamp


def key_order(key: str) -> tuple[int, int, str]:
    """Sort key matching the database's child ordering.

    Keys that parse as 32-bit integers come first in numeric order,
    all other keys follow in lexicographic order.
    """
    if _INT_KEY.match(key):
        value = int(key)
        if _INT32_MIN <= value <= _INT32_MAX:
            return (0, value, "")
    return (1, 0, key)
