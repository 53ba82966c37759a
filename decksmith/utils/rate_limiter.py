"""
Sliding-window rate limiting for user-initiated actions.

Protects the external model and image quotas: each action kind (convert,
export, upload) gets its own limiter, and each key within a limiter its own
window of recent timestamps.
"""

import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, Optional

from decksmith.errors import RateLimitError
from decksmith.utils.logging import get_logger

logger = get_logger(__name__)


class RateLimiter:
    """Allow at most `max_requests` actions per key within `window_seconds`."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        message: str = "Too many requests. Please wait a moment and try again.",
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.message = message
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def _prune(self, key: str, now: float) -> Deque[float]:
        hits = self._hits.get(key)
        if hits is None:
            return deque()
        cutoff = now - self.window_seconds
        while hits and hits[0] <= cutoff:
            hits.popleft()
        if not hits:
            del self._hits[key]
        return hits

    def _sweep(self, now: float) -> None:
        # At most once per window
        if now - self._last_sweep < self.window_seconds:
            return
        self._last_sweep = now
        for key in list(self._hits):
            self._prune(key, now)

    def cleanup(self) -> int:
        """Evict keys with no actions left in the window. Returns how many remain."""
        with self._lock:
            now = self._clock()
            self._last_sweep = now
            for key in list(self._hits):
                self._prune(key, now)
            return len(self._hits)

    def is_allowed(self, key: str = "default") -> bool:
        """Record an action for `key` if the window has room; False otherwise."""
        with self._lock:
            now = self._clock()
            self._sweep(now)
            hits = self._prune(key, now)
            if len(hits) >= self.max_requests:
                return False
            hits.append(now)
            self._hits[key] = hits
            return True

    def check(self, key: str = "default") -> None:
        """Like is_allowed, but raise RateLimitError when the quota is used up."""
        if self.is_allowed(key):
            return
        retry_after = self.retry_after(key)
        logger.warning(
            f"Rate limit exceeded for '{key}' ({self.max_requests} per {self.window_seconds:g}s)"
        )
        raise RateLimitError(
            f"Rate limit exceeded for '{key}'",
            user_message=f"{self.message} (retry in {format_retry_after(retry_after)})",
            retry_after=retry_after,
        )

    def remaining(self, key: str = "default") -> int:
        with self._lock:
            hits = self._prune(key, self._clock())
            return max(0, self.max_requests - len(hits))

    def retry_after(self, key: str = "default") -> Optional[float]:
        """Seconds until the oldest recorded action leaves the window."""
        with self._lock:
            now = self._clock()
            hits = self._prune(key, now)
            if len(hits) < self.max_requests:
                return None
            return max(0.0, hits[0] + self.window_seconds - now)

    def reset(self, key: Optional[str] = None) -> None:
        with self._lock:
            if key is None:
                self._hits.clear()
            else:
                self._hits.pop(key, None)


def format_retry_after(seconds: Optional[float]) -> str:
    """Human-readable wait time, e.g. '45 seconds' or '2 minutes'."""
    if seconds is None or seconds <= 0:
        return "now"
    total = int(-(-seconds // 1))
    minutes = total // 60
    if minutes > 0:
        return f"{minutes} minute{'s' if minutes > 1 else ''}"
    return f"{total} second{'s' if total > 1 else ''}"
