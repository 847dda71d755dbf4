# worktrack/deadline.py

from __future__ import annotations

import time
from typing import Callable

from worktrack.errors import DeadlineExceeded


class Deadline:
    """Monotonic cut-off checked before each store call."""

    def __init__(self, seconds: float | None, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self.expires_at = None if seconds is None else clock() + seconds

    @classmethod
    def never(cls) -> "Deadline":
        return cls(None)

    def remaining(self) -> float | None:
        if self.expires_at is None:
            return None
        return max(0.0, self.expires_at - self._clock())

    def expired(self) -> bool:
        return self.expires_at is not None and self._clock() >= self.expires_at

    def check(self, operation: str = "operation") -> None:
        if self.expired():
            raise DeadlineExceeded(f"Deadline exceeded before {operation}")
