"""Per-client throttling of coupon code attempts."""

import math
import time
from collections import deque
from threading import Lock


class RateLimiter:
    """Sliding-window limiter held in process memory.

    Each key may make ``max_requests`` calls within any ``window_seconds``
    span. Refused calls are not counted against the key. Keys with no calls
    left in the window are forgotten, so memory tracks only recent clients.
    """

    def __init__(self, max_requests: int, window_seconds: int = 60):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._hits: dict[str, deque[float]] = {}
        self._last_sweep = time.monotonic()
        self._lock = Lock()

    def _live_hits(self, key: str, now: float) -> deque[float]:
        hits = self._hits.get(key)
        if hits is None:
            return deque()
        while hits and hits[0] <= now - self.window_seconds:
            hits.popleft()
        if not hits:
            del self._hits[key]
        return hits

    def _sweep(self, now: float) -> None:
        # Clients that never come back are only reclaimed here
        if now - self._last_sweep < self.window_seconds:
            return
        self._last_sweep = now
        for key in list(self._hits):
            self._live_hits(key, now)

    def is_allowed(self, key: str) -> bool:
        now = time.monotonic()
        with self._lock:
            self._sweep(now)
            hits = self._live_hits(key, now)
            if len(hits) >= self.max_requests:
                return False
            hits.append(now)
            self._hits[key] = hits
            return True

    def retry_after(self, key: str) -> int:
        """Whole seconds until ``key`` may call again; 0 if it already may."""
        now = time.monotonic()
        with self._lock:
            hits = self._live_hits(key, now)
            if len(hits) < self.max_requests:
                return 0
            return max(1, math.ceil(hits[0] + self.window_seconds - now))

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._hits)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
