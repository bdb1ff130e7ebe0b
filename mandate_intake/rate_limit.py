"""
Rate limiting module for the mandate intake service.

Sliding window limits per client, applied to the public form endpoints.
"""

import time
import threading
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Deque, Dict, Optional


@dataclass
class RateLimitResult:
    """Result of a rate limit check."""
    allowed: bool
    remaining: int
    retry_after: Optional[float] = None


class RateLimiter:
    """
    Sliding window rate limiter, thread-safe.

    Each key keeps the timestamps of its accepted hits inside the window.
    """

    def __init__(self, rpm: int, window_seconds: int = 60):
        self._limit = max(1, rpm)
        self._window = window_seconds
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._lock = threading.RLock()

    def allow(self, key: str) -> bool:
        return self.check(key).allowed

    def check(self, key: str) -> RateLimitResult:
        """Record a hit for `key` unless the window is already full."""
        now = time.time()
        window_start = now - self._window

        with self._lock:
            q = self._hits[key]
            while q and q[0] < window_start:
                q.popleft()

            if len(q) >= self._limit:
                return RateLimitResult(
                    allowed=False,
                    remaining=0,
                    retry_after=max(0.0, q[0] + self._window - now)
                )

            q.append(now)
            return RateLimitResult(allowed=True, remaining=self._limit - len(q))

    def reset(self, key: Optional[str] = None) -> None:
        """Reset counters for one key, or for all keys."""
        with self._lock:
            if key:
                self._hits.pop(key, None)
            else:
                self._hits.clear()
