"""Fixed-window, in-memory request limiter keyed by client address."""
import threading
import time
from typing import Dict, Optional, Tuple


class RateLimiter:
    """Allow ``max_requests`` per ``window_seconds`` for each key."""

    def __init__(self, window_seconds: int = 60, max_requests: int = 30):
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self._windows: Dict[str, Tuple[int, float]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str, now: Optional[float] = None) -> bool:
        """Count a request; False once the key is over its limit for this window."""
        now = now if now is not None else time.monotonic()
        with self._lock:
            count, start = self._windows.get(key, (0, now))
            if now - start > self.window_seconds:
                count, start = 0, now
            count += 1
            self._windows[key] = (count, start)
        return count <= self.max_requests
