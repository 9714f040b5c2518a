"""
Process-wide rate gate for outbound image searches.

At most one admitted call per window. A rejected call does not move the
window; the next admitted call does.
"""

import threading
import time
from typing import Callable, Optional

from src.core.errors import RateLimitedError


class RateLimitGate:
    """
    Minimum-interval gate over a monotonic clock.

    Usage:
        gate = RateLimitGate(5.0)
        gate.try_acquire()  # raises RateLimitedError inside the window
    """

    def __init__(self, min_interval_seconds: float, clock: Callable[[], float] = time.monotonic):
        if min_interval_seconds < 0:
            raise ValueError(f"min_interval_seconds must be >= 0, got {min_interval_seconds}")
        self.min_interval_seconds = min_interval_seconds
        self.clock = clock
        self._lock = threading.Lock()
        self._last_call: Optional[float] = None

    def try_acquire(self) -> None:
        """
        Admit the call or reject it.

        Raises:
            RateLimitedError: Called inside the window; ``retry_after`` is
                the remaining wait in seconds
        """
        with self._lock:
            now = self.clock()
            if self._last_call is not None:
                elapsed = now - self._last_call
                if elapsed < self.min_interval_seconds:
                    remaining = min(self.min_interval_seconds, max(0.0, self.min_interval_seconds - elapsed))
                    raise RateLimitedError(remaining, window=self.min_interval_seconds)
            self._last_call = now

    def reset(self) -> None:
        with self._lock:
            self._last_call = None
