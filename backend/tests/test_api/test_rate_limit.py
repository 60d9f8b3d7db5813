"""
Tests for the sliding window rate limiter
"""
from app.core.rate_limit import RateLimiter


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestRateLimiter:

    def test_blocks_after_limit_and_reports_retry(self):
        clock = FakeClock()
        limiter = RateLimiter(clock=clock)

        for _ in range(3):
            assert limiter.is_allowed('ip:1', 3, 60)[0] is True

        allowed, remaining, retry_after = limiter.is_allowed('ip:1', 3, 60)
        assert allowed is False
        assert remaining == 0
        assert retry_after == 61

        clock.now += 61
        assert limiter.is_allowed('ip:1', 3, 60)[0] is True

    def test_idle_identifiers_are_released(self):
        clock = FakeClock()
        limiter = RateLimiter(clock=clock)

        for n in range(1000):
            limiter.is_allowed(f'ip:{n}', 120, 60)
        assert len(limiter._hits) == 1000

        clock.now += 61
        limiter.is_allowed('ip:late', 120, 60)

        assert list(limiter._hits) == ['ip:late']

    def test_recent_identifiers_survive_cleanup(self):
        clock = FakeClock()
        limiter = RateLimiter(clock=clock)

        limiter.is_allowed('ip:old', 120, 60)
        clock.now += 30
        limiter.is_allowed('ip:recent', 120, 60)
        clock.now += 40
        limiter.is_allowed('ip:new', 120, 60)

        assert set(limiter._hits) == {'ip:recent', 'ip:new'}
