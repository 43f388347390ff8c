from collections import deque
from collections.abc import Callable
from threading import Lock
from time import monotonic

from quizhub.core.errors import RateLimited


class SlidingWindowLimiter:
    """In-process sliding window counter keyed by caller.

    Keys whose newest hit has left the window are evicted at most once per
    window, so the table only holds callers that are still being counted.
    """

    def __init__(self, timer: Callable[[], float] = monotonic) -> None:
        self._buckets: dict[str, deque[float]] = {}
        self._lock = Lock()
        self._timer = timer
        self._last_sweep = timer()

    def hit(self, key: str, limit: int, window_seconds: int) -> None:
        now = self._timer()
        with self._lock:
            if now - self._last_sweep > window_seconds:
                self._evict_idle(now, window_seconds)
            bucket = self._buckets.setdefault(key, deque())
            while bucket and (now - bucket[0]) > window_seconds:
                bucket.popleft()
            if len(bucket) >= limit:
                raise RateLimited(extra={"retryAfterSeconds": window_seconds})
            bucket.append(now)

    def _evict_idle(self, now: float, window_seconds: int) -> None:
        idle = [key for key, bucket in self._buckets.items() if not bucket or now - bucket[-1] > window_seconds]
        for key in idle:
            del self._buckets[key]
        self._last_sweep = now

    def __len__(self) -> int:
        return len(self._buckets)

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()


limiter = SlidingWindowLimiter()


def rate_limit(key: str, limit: int, window_seconds: int) -> None:
    limiter.hit(key, limit, window_seconds)
