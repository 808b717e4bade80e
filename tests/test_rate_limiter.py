"""Tests for the sliding window rate limiter."""

import asyncio
import threading
from unittest.mock import patch

import pytest

from charity_gateway.app.services.rate_limiter import (
    DEFAULT_KEY,
    RateLimiter,
    RateLimitSweeper,
)


class FakeClock:
    """Manually advanced epoch-millisecond clock."""

    def __init__(self, now: int = 0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock(1_000_000)


@pytest.fixture
def limiter(clock):
    return RateLimiter(max_requests=5, window_ms=60_000, clock=clock)


class TestAdmit:
    """Tests for admission within and across windows."""

    def test_admits_up_to_capacity_then_denies(self, limiter):
        """N calls in a row are admitted; the next one is not."""
        assert all(limiter.admit("k") for _ in range(5))
        assert limiter.admit("k") is False

    def test_denied_call_does_not_consume_quota(self, limiter, clock):
        """A denied request leaves the bucket unchanged."""
        for _ in range(5):
            limiter.admit("k")
        reset_before = limiter.reset_at("k")

        assert limiter.admit("k") is False
        assert limiter.admit("k") is False
        assert limiter.remaining("k") == 0
        assert limiter.reset_at("k") == reset_before

    def test_admits_again_after_window_expires(self, limiter, clock):
        """Entries older than the window no longer count."""
        for _ in range(5):
            limiter.admit("k")
        assert limiter.admit("k") is False

        clock.advance(60_000)

        assert limiter.admit("k") is True

    def test_entry_exactly_window_old_is_expired(self, clock):
        """An entry aged exactly window_ms is outside the window."""
        limiter = RateLimiter(max_requests=1, window_ms=1000, clock=clock)
        assert limiter.admit("k") is True

        clock.advance(999)
        assert limiter.admit("k") is False

        clock.advance(1)
        assert limiter.admit("k") is True

    def test_keys_are_independent(self, limiter):
        """Exhausting one key does not affect another."""
        for _ in range(5):
            limiter.admit("a")
        assert limiter.admit("a") is False

        assert limiter.admit("b") is True
        assert limiter.remaining("b") == 4

    def test_default_key(self, limiter):
        """Calls without a key share the global bucket."""
        limiter.admit()
        assert limiter.remaining(DEFAULT_KEY) == 4
        assert limiter.keys() == [DEFAULT_KEY]

    def test_zero_capacity_denies_everything(self, clock):
        """max_requests=0 never admits."""
        limiter = RateLimiter(max_requests=0, window_ms=1000, clock=clock)

        assert limiter.admit("k") is False
        assert limiter.remaining("k") == 0
        assert limiter.reset_at("k") == 0

    def test_one_millisecond_window(self, clock):
        """A 1ms window frees the slot on the next millisecond."""
        limiter = RateLimiter(max_requests=1, window_ms=1, clock=clock)

        assert limiter.admit("k") is True
        assert limiter.admit("k") is False
        clock.advance(1)
        assert limiter.admit("k") is True

    def test_scenario_three_per_second(self):
        """Three admits at t=0, the fourth denied, admitted again at t=1001."""
        clock = FakeClock(0)
        limiter = RateLimiter(max_requests=3, window_ms=1000, clock=clock)

        assert [limiter.admit() for _ in range(3)] == [True, True, True]
        assert limiter.admit() is False

        clock.now = 1001
        assert limiter.admit() is True


class TestRemaining:
    """Tests for the remaining quota count."""

    def test_fresh_key_has_full_quota(self, limiter):
        assert limiter.remaining("new") == 5

    def test_decreases_by_one_per_admit_and_floors_at_zero(self, limiter):
        """remaining() drops by exactly one per admitted call."""
        previous = limiter.remaining("k")
        for _ in range(5):
            assert limiter.admit("k") is True
            current = limiter.remaining("k")
            assert current == previous - 1
            previous = current

        limiter.admit("k")
        assert limiter.remaining("k") == 0

    def test_does_not_mutate(self, limiter, clock):
        """Reading remaining() leaves stale entries in the stored bucket."""
        limiter.admit("k")
        first = limiter.reset_at("k")
        clock.advance(70_000)

        assert limiter.remaining("k") == 5
        assert limiter.reset_at("k") == first


class TestResetAt:
    """Tests for reset time reporting."""

    def test_reset_at_after_first_admit(self, limiter, clock):
        """First admit at t0 resets at t0 + window."""
        t0 = clock.now
        limiter.admit("k")

        assert limiter.reset_at("k") == t0 + 60_000

    def test_reset_at_tracks_oldest_entry(self, limiter, clock):
        t0 = clock.now
        limiter.admit("k")
        clock.advance(5_000)
        limiter.admit("k")

        assert limiter.reset_at("k") == t0 + 60_000

    def test_unknown_key_returns_zero(self, limiter):
        assert limiter.reset_at("missing") == 0

    def test_stale_bucket_reports_past_time(self, limiter, clock):
        """The stored bucket is read unpruned, so the reset time may be in the past."""
        t0 = clock.now
        limiter.admit("k")
        clock.advance(120_000)

        assert limiter.reset_at("k") == t0 + 60_000
        assert limiter.reset_at("k") < clock.now


class TestCheck:
    """Tests for the combined admit-and-report helper."""

    def test_allowed_result(self, limiter, clock):
        result = limiter.check("k")

        assert result.allowed is True
        assert result.limit == 5
        assert result.remaining == 4
        assert result.reset_time == clock.now + 60_000
        assert result.checked_at == clock.now
        assert result.retry_after_ms is None

    def test_zero_capacity_reports_check_time(self, clock):
        limiter = RateLimiter(max_requests=0, window_ms=1000, clock=clock)

        result = limiter.check("k")

        assert result.allowed is False
        assert result.reset_time == 0
        assert result.checked_at == clock.now

    def test_concurrent_results_are_consistent(self):
        """Each admitted result reports its own remaining count, never another caller's."""
        limiter = RateLimiter(max_requests=40, window_ms=60_000)
        results = []
        results_lock = threading.Lock()
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            for _ in range(10):
                result = limiter.check("shared")
                with results_lock:
                    results.append(result)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        admitted = [r for r in results if r.allowed]
        assert len(admitted) == 40
        assert sorted(r.remaining for r in admitted) == list(range(40))
        assert all(r.remaining == 0 for r in results if not r.allowed)

    def test_denied_result_has_retry_after(self, limiter, clock):
        for _ in range(5):
            limiter.admit("k")
        clock.advance(10_000)

        result = limiter.check("k")

        assert result.allowed is False
        assert result.remaining == 0
        assert result.retry_after_ms == 50_000


class TestSweep:
    """Tests for pruning stale state."""

    def test_sweep_empty_limiter(self, limiter):
        """Sweeping an empty limiter is a no-op."""
        limiter.sweep()
        limiter.sweep()
        assert limiter.keys() == []

    def test_sweep_removes_idle_keys(self, limiter, clock):
        limiter.admit("old")
        clock.advance(30_000)
        limiter.admit("recent")
        clock.advance(30_000)

        limiter.sweep()

        assert limiter.keys() == ["recent"]

    def test_sweep_prunes_stale_entries(self, limiter, clock):
        """Kept buckets lose their stale entries, moving reset_at forward."""
        limiter.admit("k")
        clock.advance(30_000)
        second = clock.now
        limiter.admit("k")
        clock.advance(30_000)

        limiter.sweep()

        assert limiter.reset_at("k") == second + 60_000

    def test_sweep_twice_is_stable(self, limiter, clock):
        limiter.admit("a")
        limiter.admit("b")
        clock.advance(60_000)

        limiter.sweep()
        limiter.sweep()

        assert limiter.keys() == []
        assert limiter.remaining("a") == 5


class TestConcurrency:
    """Tests for admission under concurrent callers."""

    def test_threads_never_exceed_capacity(self):
        """Concurrent admits from many threads admit exactly max_requests."""
        limiter = RateLimiter(max_requests=50, window_ms=60_000)
        results = []
        results_lock = threading.Lock()
        barrier = threading.Barrier(10)

        def worker():
            barrier.wait()
            for _ in range(20):
                allowed = limiter.admit("shared")
                with results_lock:
                    results.append(allowed)

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 200
        assert sum(results) == 50

    @pytest.mark.asyncio
    async def test_concurrent_tasks_never_exceed_capacity(self):
        limiter = RateLimiter(max_requests=10, window_ms=60_000)

        async def attempt():
            await asyncio.sleep(0)
            return limiter.admit("shared")

        results = await asyncio.gather(*(attempt() for _ in range(30)))

        assert sum(results) == 10


class TestRateLimitSweeper:
    """Tests for the background sweeper."""

    @pytest.mark.asyncio
    async def test_sweeps_periodically(self):
        limiter = RateLimiter(max_requests=1, window_ms=1000)
        sweeper = RateLimitSweeper(limiter, interval=0.01)

        with patch.object(limiter, "sweep", wraps=limiter.sweep) as sweep:
            await sweeper.start()
            assert sweeper.is_running
            await asyncio.sleep(0.05)
            await sweeper.stop()

        assert sweep.call_count >= 1
        assert not sweeper.is_running

    @pytest.mark.asyncio
    async def test_start_twice_is_noop(self):
        sweeper = RateLimitSweeper(RateLimiter(max_requests=1, window_ms=1000), interval=10)

        await sweeper.start()
        task = sweeper._task
        await sweeper.start()

        assert sweeper._task is task
        await sweeper.stop()

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        sweeper = RateLimitSweeper(RateLimiter(max_requests=1, window_ms=1000))
        await sweeper.stop()
        assert not sweeper.is_running
