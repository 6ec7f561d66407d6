"""Tests for src.notifications.rate_limiter."""

from __future__ import annotations

import pytest

from src.notifications.rate_limiter import RateLimiter


class TestRateLimiter:
    def test_caps_burst(self, clock):
        limiter = RateLimiter(5, 60.0, clock)
        results = [limiter.try_acquire() for _ in range(10)]
        assert results == [True] * 5 + [False] * 5
        assert limiter.dropped == 5
        assert limiter.current == 5

    def test_window_slides(self, clock):
        limiter = RateLimiter(2, 60.0, clock)
        assert limiter.try_acquire()
        clock.advance(30)
        assert limiter.try_acquire()
        assert not limiter.try_acquire()
        clock.advance(30)
        # first admission has aged out, second has not
        assert limiter.current == 1
        assert limiter.try_acquire()
        assert not limiter.try_acquire()

    def test_rejections_do_not_extend_window(self, clock):
        limiter = RateLimiter(1, 60.0, clock)
        assert limiter.try_acquire()
        for _ in range(5):
            clock.advance(10)
            assert not limiter.try_acquire()
        clock.advance(10)
        assert limiter.try_acquire()

    def test_reset(self, clock):
        limiter = RateLimiter(1, 60.0, clock)
        limiter.try_acquire()
        limiter.try_acquire()
        limiter.reset()
        assert limiter.dropped == 0
        assert limiter.try_acquire()

    def test_invalid_cap(self):
        with pytest.raises(ValueError):
            RateLimiter(0)
