"""Minimum-interval throttle for outbound search queries."""

from __future__ import annotations

import threading
import time


class RateLimiter:
    """Space successive calls to :meth:`wait` at least *min_interval* seconds apart.

    Thread-safe: concurrent callers queue up behind the lock and are
    released one interval apart.  An interval of ``0`` disables throttling.
    """

    def __init__(self, min_interval: float) -> None:
        self.min_interval = max(min_interval, 0.0)
        self._lock = threading.Lock()
        self._last: float | None = None

    def wait(self) -> float:
        """Block until the next call is allowed; return the seconds slept."""
        with self._lock:
            slept = 0.0
            now = time.monotonic()
            if self._last is not None and self.min_interval > 0:
                remaining = self._last + self.min_interval - now
                if remaining > 0:
                    time.sleep(remaining)
                    slept = remaining
                    now = time.monotonic()
            self._last = now
            return slept
