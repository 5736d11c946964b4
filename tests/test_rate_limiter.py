"""Tests for the minimum-interval rate limiter."""

import threading
import time

import pytest

from archive_publisher.services.github.rate_limiter import RateLimiter


class TestRateLimiter:
    """Tests for RateLimiter."""

    def test_first_call_is_immediate(self, fake_clock):
        limiter = RateLimiter(min_interval=0.2, clock=fake_clock, sleep=fake_clock.sleep)

        assert limiter.acquire() == 0.0
        assert fake_clock.sleeps == []

    def test_back_to_back_calls_are_spaced(self, fake_clock):
        limiter = RateLimiter(min_interval=0.2, clock=fake_clock, sleep=fake_clock.sleep)

        limiter.acquire()
        waited = limiter.acquire()

        assert waited == pytest.approx(0.2)
        assert fake_clock.sleeps == [pytest.approx(0.2)]

    def test_only_remaining_interval_is_waited(self, fake_clock):
        limiter = RateLimiter(min_interval=0.2, clock=fake_clock, sleep=fake_clock.sleep)

        limiter.acquire()
        fake_clock.now += 0.15
        waited = limiter.acquire()

        assert waited == pytest.approx(0.05)

    def test_no_wait_after_interval_elapsed(self, fake_clock):
        limiter = RateLimiter(min_interval=0.2, clock=fake_clock, sleep=fake_clock.sleep)

        limiter.acquire()
        fake_clock.now += 1.0

        assert limiter.acquire() == 0.0

    def test_reset(self, fake_clock):
        """After reset the next call does not wait."""
        limiter = RateLimiter(min_interval=0.2, clock=fake_clock, sleep=fake_clock.sleep)

        limiter.acquire()
        limiter.reset()

        assert limiter.acquire() == 0.0

    def test_zero_interval_never_waits(self, fake_clock):
        limiter = RateLimiter(min_interval=0.0, clock=fake_clock, sleep=fake_clock.sleep)

        assert [limiter.acquire() for _ in range(5)] == [0.0] * 5

    def test_negative_interval_rejected(self):
        with pytest.raises(ValueError):
            RateLimiter(min_interval=-1)

    def test_concurrent_callers_are_serialized(self):
        """No two acquire() completions from sharing threads are closer than the interval."""
        interval = 0.02
        readings = threading.local()

        def clock():
            readings.last = time.monotonic()
            return readings.last

        limiter = RateLimiter(min_interval=interval, clock=clock)
        completions = []
        completions_lock = threading.Lock()

        def worker():
            limiter.acquire()
            # The last clock reading of this thread is the stamp acquire() recorded
            with completions_lock:
                completions.append(readings.last)

        threads = [threading.Thread(target=worker) for _ in range(6)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        completions.sort()
        gaps = [later - earlier for earlier, later in zip(completions, completions[1:])]
        assert len(gaps) == 5
        assert all(gap >= interval - 1e-6 for gap in gaps)
