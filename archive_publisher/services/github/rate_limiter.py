"""
In-process minimum-interval rate limiter for GitHub API calls.

One instance is created per publication run and injected into every caller
that talks to the API, so concurrent upload threads share the same pacing.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Enforces a minimum delay between consecutive outbound calls.

    The lock is held while waiting, so threads queue up behind each other and
    no two acquire() calls ever complete closer together than min_interval.
    """

    def __init__(
        self,
        min_interval: float = 0.2,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the rate limiter.

        Args:
            min_interval: Minimum seconds between two calls
            clock: Monotonic time source (injectable for tests)
            sleep: Sleep function (injectable for tests)
        """
        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")
        self._min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last_call: Optional[float] = None

    @property
    def min_interval(self) -> float:
        return self._min_interval

    def acquire(self) -> float:
        """
        Wait if necessary to respect the minimum interval.

        Returns:
            The time waited in seconds.
        """
        with self._lock:
            waited = 0.0
            if self._last_call is not None:
                elapsed = self._clock() - self._last_call
                remaining = self._min_interval - elapsed
                if remaining > 0:
                    self._sleep(remaining)
                    waited = remaining
            self._last_call = self._clock()

        if waited:
            logger.debug(f"Rate limiter: waited {waited:.3f}s")
        return waited

    def reset(self) -> None:
        """Forget the last call so the next acquire() is immediate."""
        with self._lock:
            self._last_call = None
