"""
Sliding window rate limiter.

Tracks event timestamps per key (normally a client address) and reports
when a key has produced more events than allowed inside the trailing window.
"""

import logging
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 60.0
DEFAULT_MAX_REQUESTS = 120


class RateWindow:
    """Timestamps of one key's events inside the trailing window."""

    def __init__(self):
        self.timestamps: Deque[float] = deque()

    def evict_before(self, cutoff: float) -> None:
        """Drop every timestamp at or before ``cutoff``."""
        while self.timestamps and self.timestamps[0] <= cutoff:
            self.timestamps.popleft()

    def __len__(self) -> int:
        return len(self.timestamps)


class RateLimiter:
    """
    Per-key sliding window counter.

    The event being observed is recorded before the decision, so the call
    that pushes a key over the limit is itself counted. Windows are created
    lazily on first observation.

    Args:
        window_seconds: Length of the trailing window
        max_requests: Events allowed inside the window
        sweep_interval: Seconds between removals of keys whose window has
            emptied; 0 keeps every key for the lifetime of the process
        clock: Monotonic time source, injectable for tests
    """

    def __init__(
        self,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        sweep_interval: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._windows: Dict[str, RateWindow] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    @classmethod
    def from_config(cls, config, clock: Optional[Callable[[], float]] = None) -> "RateLimiter":
        """
        Build a limiter from a RateLimitConfig section.

        Args:
            config: RateLimitConfig instance
            clock: Optional time source override

        Returns:
            Configured RateLimiter
        """
        return cls(
            window_seconds=config.window_seconds,
            max_requests=config.max_requests,
            sweep_interval=config.sweep_interval,
            clock=clock or time.monotonic,
        )

    def observe(self, key: str) -> bool:
        """
        Record one event for ``key`` and check the limit.

        Args:
            key: Key to count against, usually the client address

        Returns:
            True if the key now exceeds the limit
        """
        with self._lock:
            now = self._clock()

            window = self._windows.get(key)
            if window is None:
                window = self._windows[key] = RateWindow()

            window.timestamps.append(now)
            window.evict_before(now - self.window_seconds)
            exceeded = len(window) > self.max_requests

            if self.sweep_interval and now - self._last_sweep >= self.sweep_interval:
                self._sweep_locked(now)

        if exceeded:
            logger.debug(
                f"Rate limit exceeded for {key}",
                extra={"event_type": "rate_limited", "source_ip": key},
            )
        return exceeded

    def count(self, key: str) -> int:
        """
        Number of events currently inside ``key``'s window.

        Args:
            key: Key to inspect

        Returns:
            Retained event count, 0 for unknown keys
        """
        with self._lock:
            window = self._windows.get(key)
            if window is None:
                return 0
            window.evict_before(self._clock() - self.window_seconds)
            return len(window)

    def sweep(self) -> int:
        """
        Remove keys whose window no longer holds any events.

        Returns:
            Number of keys removed
        """
        with self._lock:
            return self._sweep_locked(self._clock())

    def _sweep_locked(self, now: float) -> int:
        cutoff = now - self.window_seconds
        stale = []
        for key, window in self._windows.items():
            window.evict_before(cutoff)
            if not window:
                stale.append(key)

        for key in stale:
            del self._windows[key]

        self._last_sweep = now
        if stale:
            logger.debug(f"Swept {len(stale)} idle rate limit keys")
        return len(stale)

    @property
    def tracked_keys(self) -> int:
        """Number of keys currently holding a window."""
        with self._lock:
            return len(self._windows)
