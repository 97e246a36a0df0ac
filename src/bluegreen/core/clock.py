"""Wall-clock and sleep primitives used by jobs and waiters."""

from __future__ import annotations

import time
from datetime import datetime, timezone


class SystemClock:
    """IClock returning the current UTC time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class ThreadSleeper:
    """ISleeper that blocks the calling thread."""

    def sleep(self, millis: int) -> None:
        time.sleep(millis / 1000.0)
