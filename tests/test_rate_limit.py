"""Tests for hibichidoku/utils/rate_limit.py with a fake clock."""

import pytest

from hibichidoku.utils.rate_limit import RateLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class TestRateLimiter:

    def test_first_call_does_not_block(self):
        clock = FakeClock()
        limiter = RateLimiter(1.0, clock=clock, sleep=clock.sleep)
        assert limiter.wait() == 0.0
        assert clock.sleeps == []

    def test_waits_remaining_interval(self):
        clock = FakeClock()
        limiter = RateLimiter(1.0, clock=clock, sleep=clock.sleep)
        limiter.wait()
        clock.now += 0.25
        assert limiter.wait() == pytest.approx(0.75)
        assert clock.sleeps == [pytest.approx(0.75)]

    def test_no_wait_when_interval_elapsed(self):
        clock = FakeClock()
        limiter = RateLimiter(0.5, clock=clock, sleep=clock.sleep)
        limiter.wait()
        clock.now += 2.0
        assert limiter.wait() == 0.0

    def test_throttle_spaces_items(self):
        clock = FakeClock()
        limiter = RateLimiter(0.15, clock=clock, sleep=clock.sleep)
        assert list(limiter.throttle("abc")) == ["a", "b", "c"]
        assert clock.sleeps == [pytest.approx(0.15), pytest.approx(0.15)]

    def test_negative_interval_rejected(self):
        with pytest.raises(ValueError):
            RateLimiter(-1)
