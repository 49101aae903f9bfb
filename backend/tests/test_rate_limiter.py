"""Fixed-window rate limiter behavior."""

import pytest

from careercoach.dependencies.rate_limit import rate_limit_headers
from careercoach.services.rate_limiter import RateLimiter, RateLimitResult


def test_first_request_opens_window(clock):
    limiter = RateLimiter(60_000, 10, clock=clock)

    result = limiter.check("1.2.3.4")

    assert result.allowed is True
    assert result.limit == 10
    assert result.remaining == 9
    assert result.reset_at == clock.now + 60


def test_window_scenario_block_then_fresh_window(clock):
    start = clock.now
    limiter = RateLimiter(1000, 2, clock=clock)

    first = limiter.check("client")
    clock.advance(0.1)
    second = limiter.check("client")
    clock.advance(0.1)
    third = limiter.check("client")

    assert (first.allowed, first.remaining) == (True, 1)
    assert (second.allowed, second.remaining) == (True, 0)
    assert (third.allowed, third.remaining) == (False, 0)
    assert third.reset_at == start + 1.0
    assert third.retry_after(clock.now) == 1

    clock.now = start + 1.1
    fourth = limiter.check("client")
    assert fourth.allowed is True
    assert fourth.remaining == 1
    assert fourth.reset_at == pytest.approx(start + 2.1)


def test_window_still_closed_at_exact_reset_time(clock):
    limiter = RateLimiter(1000, 1, clock=clock)
    opened = limiter.check("client")

    clock.now = opened.reset_at
    assert limiter.check("client").allowed is False


def test_blocked_checks_do_not_extend_window(clock):
    limiter = RateLimiter(1000, 1, clock=clock)
    opened = limiter.check("client")

    for _ in range(5):
        clock.advance(0.1)
        blocked = limiter.check("client")
        assert blocked.allowed is False
        assert blocked.reset_at == opened.reset_at


def test_identities_are_independent(clock):
    limiter = RateLimiter(60_000, 1, clock=clock)

    assert limiter.check("a").allowed is True
    assert limiter.check("a").allowed is False
    assert limiter.check("b").allowed is True


def test_reset_clears_identity(clock):
    limiter = RateLimiter(60_000, 1, clock=clock)
    limiter.check("a")
    assert limiter.check("a").allowed is False

    limiter.reset("a")

    result = limiter.check("a")
    assert result.allowed is True
    assert result.remaining == 0


def test_sweep_removes_only_closed_windows(clock):
    limiter = RateLimiter(1000, 5, clock=clock)
    limiter.check("old")
    clock.advance(0.5)
    limiter.check("fresh")

    clock.advance(0.7)
    removed = limiter.sweep()

    assert removed == 1
    assert len(limiter) == 1
    assert limiter.check("fresh").remaining == 3


def test_retry_after_never_negative(clock):
    limiter = RateLimiter(1000, 1, clock=clock)
    limiter.check("a")
    blocked = limiter.check("a")

    assert blocked.retry_after(clock.now + 10) == 0


@pytest.mark.parametrize("window_ms, max_requests", [(0, 5), (1000, 0), (-1, 5)])
def test_rejects_non_positive_configuration(window_ms, max_requests):
    with pytest.raises(ValueError):
        RateLimiter(window_ms, max_requests)


def test_reset_header_has_millisecond_precision():
    result = RateLimitResult(allowed=True, limit=10, remaining=9, reset_at=1_700_000_000.123456)

    headers = rate_limit_headers(result)

    assert headers["X-RateLimit-Reset"] == "2023-11-14T22:13:20.123Z"
    assert headers["X-RateLimit-Limit"] == "10"
    assert headers["X-RateLimit-Remaining"] == "9"
