"""A simple millisecond timeout."""

from __future__ import annotations

import time
from typing import Callable, Optional


def _millis() -> int:
    return time.monotonic_ns() // 1_000_000


class TimeoutHelper:
    """Tracks whether a span of milliseconds has passed since a start point."""

    def __init__(self, clock: Optional[Callable[[], int]] = None) -> None:
        self._clock = clock or _millis
        self.timeout = 0
        self.start_millis = 0

    def set(self, ms: int) -> None:
        """Start a new timeout of ``ms`` milliseconds from now."""
        self.timeout = ms
        self.start_millis = self._clock()

    def extend(self, ms: int) -> None:
        """Lengthen the current timeout by ``ms`` milliseconds."""
        self.timeout += ms

    def reset(self) -> None:
        """Restart the current timeout from now."""
        self.start_millis = self._clock()

    def occurred(self) -> bool:
        """True once the timeout has elapsed."""
        return self._clock() > self.start_millis + self.timeout