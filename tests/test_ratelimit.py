"""Tests for the sliding-window rate limiter (ratelimit.py)."""
from pkg.gtd.ratelimit import SlidingWindowRateLimiter


class FakeClock:
    def __init__(self):
        self.t = 1000.0

    def __call__(self):
        return self.t


def test_allows_up_to_limit():
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(max_requests=3, window_secs=60, clock=clock)
    assert [limiter.allow("1.2.3.4") for _ in range(4)] == [True, True, True, False]


def test_clients_are_independent():
    limiter = SlidingWindowRateLimiter(max_requests=1, window_secs=60, clock=FakeClock())
    assert limiter.allow("a")
    assert limiter.allow("b")
    assert not limiter.allow("a")


def test_window_slides():
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(max_requests=2, window_secs=60, clock=clock)
    limiter.allow("a")
    clock.t += 30
    limiter.allow("a")
    assert not limiter.allow("a")

    clock.t += 30  # first request leaves the window
    assert limiter.allow("a")
    assert not limiter.allow("a")


def test_retry_after():
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(max_requests=1, window_secs=60, clock=clock)
    assert limiter.retry_after("a") == 0
    limiter.allow("a")
    clock.t += 20
    assert limiter.retry_after("a") == 41


def test_reset():
    limiter = SlidingWindowRateLimiter(max_requests=1, window_secs=60, clock=FakeClock())
    limiter.allow("a")
    limiter.reset()
    assert limiter.allow("a")


def test_expired_client_is_forgotten():
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(max_requests=2, window_secs=60, clock=clock)
    limiter.allow("a")
    clock.t += 60
    assert limiter.retry_after("a") == 0
    assert "a" not in limiter._requests


def test_idle_clients_are_swept():
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(max_requests=2, window_secs=60, clock=clock)
    for client in ("a", "b", "c"):
        limiter.allow(client)
    clock.t += 61

    limiter.allow("d")

    assert set(limiter._requests) == {"d"}
