import logging
import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger("bolgen.rate_limit")


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    """Fixed, resetting request window per client key.

    The first request from a key opens a window of ``window_seconds``; up to
    ``limit`` requests are allowed inside it. Expired windows are dropped
    on the next request from any key, so a returning client starts afresh.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self.clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> bool:
        """Record a request from ``key``. Returns False when it must be rejected."""
        now = self.clock()
        with self._lock:
            self._evict_expired(now)
            window = self._windows.get(key)
            if window is None:
                self._windows[key] = _Window(count=1, reset_at=now + self.window_seconds)
                return True
            if window.count >= self.limit:
                logger.warning("Rate limit exceeded for client %s", key)
                return False
            window.count += 1
            return True

    def _evict_expired(self, now: float) -> None:
        expired = [key for key, window in self._windows.items() if now > window.reset_at]
        for key in expired:
            del self._windows[key]

    def retry_after(self, key: str) -> int:
        """Seconds until ``key`` may send again (0 if it is not limited)."""
        with self._lock:
            window = self._windows.get(key)
            if window is None:
                return 0
            return max(0, math.ceil(window.reset_at - self.clock()))

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


def client_key(forwarded_for: str | None, peer_host: str | None) -> str:
    """First X-Forwarded-For hop, else the socket peer, else ``unknown``."""
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    return peer_host or "unknown"
