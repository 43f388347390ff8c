import pytest

from quizhub.core.errors import RateLimited
from quizhub.core.ratelimit import SlidingWindowLimiter


class Ticker:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_limit_applies_per_key_within_window():
    ticker = Ticker()
    limiter = SlidingWindowLimiter(timer=ticker)
    limiter.hit("submit:alice:c1", limit=2, window_seconds=60)
    limiter.hit("submit:alice:c1", limit=2, window_seconds=60)
    limiter.hit("submit:bob:c1", limit=2, window_seconds=60)
    with pytest.raises(RateLimited) as exc:
        limiter.hit("submit:alice:c1", limit=2, window_seconds=60)
    assert exc.value.status_code == 429

    ticker.now = 61
    limiter.hit("submit:alice:c1", limit=2, window_seconds=60)


def test_idle_keys_are_evicted():
    ticker = Ticker()
    limiter = SlidingWindowLimiter(timer=ticker)
    for idx in range(50):
        limiter.hit(f"submit:user-{idx}:c1", limit=10, window_seconds=60)
    assert len(limiter) == 50

    ticker.now = 120
    limiter.hit("submit:late:c1", limit=10, window_seconds=60)
    assert len(limiter) == 1
