"""
Rate limiting. In-memory sliding window per identifier (client IP).
Used for the contact form and admin login.

State is per process: with several workers or instances each one enforces the limit on
its own. The identifier map is LRU-bounded so memory stays bounded under many clients.
"""
import math
import threading
import time
from collections import OrderedDict, deque

from fastapi import Request

from acda_site.config import RATE_LIMIT_MAX_KEYS


class SlidingWindowRateLimiter:
    def __init__(self, max_keys: int = RATE_LIMIT_MAX_KEYS):
        self.max_keys = max_keys
        self._store: "OrderedDict[str, deque[float]]" = OrderedDict()
        self._lock = threading.Lock()

    def check_and_record(
        self,
        identifier: str,
        now: float | None = None,
        window_seconds: float = 60,
        max_count: int = 60,
    ) -> bool:
        """
        Check if the identifier is under max_count for the trailing window; if so, record `now`.
        A call exactly at the limit is rejected and not recorded. max_count <= 0 disables limiting.
        """
        if max_count <= 0:
            return True
        key = identifier or "unknown"
        if now is None:
            now = time.monotonic()
        cutoff = now - window_seconds
        with self._lock:
            timestamps = self._store.get(key)
            if timestamps is None:
                while self.max_keys > 0 and len(self._store) >= self.max_keys:
                    self._store.popitem(last=False)
                timestamps = deque()
                self._store[key] = timestamps
            else:
                self._store.move_to_end(key)
            while timestamps and timestamps[0] <= cutoff:
                timestamps.popleft()
            if len(timestamps) >= max_count:
                return False
            timestamps.append(now)
            return True

    def retry_after(self, identifier: str, now: float | None = None, window_seconds: float = 60) -> int:
        """Seconds (>= 1) until the oldest recorded call for identifier leaves the window."""
        if now is None:
            now = time.monotonic()
        with self._lock:
            timestamps = self._store.get(identifier or "unknown")
            oldest = timestamps[0] if timestamps else now
        return max(1, math.ceil(window_seconds - (now - oldest)))

    def tracked_count(self) -> int:
        with self._lock:
            return len(self._store)

    def reset(self) -> None:
        with self._lock:
            self._store.clear()


contact_limiter = SlidingWindowRateLimiter()
login_limiter = SlidingWindowRateLimiter()


def get_client_ip(request: Request) -> str:
    """Client IP from proxy headers (first X-Forwarded-For hop wins), else the peer address."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for and forwarded_for.split(",")[0].strip():
        return forwarded_for.split(",")[0].strip()
    for header in ("x-real-ip", "cf-connecting-ip"):
        value = request.headers.get(header)
        if value and value.strip():
            return value.strip()
    if request.client is not None and request.client.host:
        return request.client.host
    return "unknown"
