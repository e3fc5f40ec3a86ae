"""
Sliding-window request limiter for the REST API.

Each client keeps a deque of request times; entries older than the window
are evicted on every check. Clients whose deque empties are forgotten, and
once per window every idle client is swept. Thread-safe (the server runs
threaded).
"""
import threading
import time
from collections import deque
from typing import Callable, Dict, Deque, Optional


class SlidingWindowRateLimiter:
    """Allow at most `max_requests` per client within `window_secs`."""

    def __init__(self, max_requests: int = 100, window_secs: float = 900.0,
                 clock: Optional[Callable[[], float]] = None):
        self.max_requests = max_requests
        self.window_secs = window_secs
        self._clock = clock or time.monotonic
        self._requests: Dict[str, Deque[float]] = {}
        self._last_sweep = self._clock()
        self._lock = threading.Lock()

    def _evict(self, client_id: str, now: float) -> Optional[Deque[float]]:
        """Drop expired entries; forget the client when none remain."""
        recent = self._requests.get(client_id)
        if recent is None:
            return None
        while recent and (now - recent[0]) >= self.window_secs:
            recent.popleft()
        if not recent:
            del self._requests[client_id]
            return None
        return recent

    def _sweep(self, now: float) -> None:
        if now - self._last_sweep < self.window_secs:
            return
        for client_id in list(self._requests):
            self._evict(client_id, now)
        self._last_sweep = now

    def allow(self, client_id: str) -> bool:
        """Record a request and return whether it is within the limit."""
        now = self._clock()
        with self._lock:
            self._sweep(now)
            recent = self._evict(client_id, now)
            if recent is None:
                recent = self._requests[client_id] = deque()
            if len(recent) >= self.max_requests:
                return False
            recent.append(now)
            return True

    def retry_after(self, client_id: str) -> int:
        """Seconds until the oldest request in the window expires."""
        now = self._clock()
        with self._lock:
            recent = self._evict(client_id, now)
            if recent is None or len(recent) < self.max_requests:
                return 0
            return max(1, int(self.window_secs - (now - recent[0])) + 1)

    def reset(self) -> None:
        with self._lock:
            self._requests.clear()
