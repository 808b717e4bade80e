"""In-memory rate limiting for tool calls.

Each tool gets its own key and therefore its own bucket of admission
timestamps. Admission uses a sliding window: a request is admitted while
fewer than ``max_requests`` timestamps fall inside the trailing
``window_ms``. A burst that fills the window early keeps new requests out
until the oldest entries age out; there is no steady refill rate.

State lives in process memory only and is lost on restart.
"""

import asyncio
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from charity_gateway.app.core.logging import get_logger
from charity_gateway.app.core.utils import now_ms

logger = get_logger(__name__)

DEFAULT_KEY = "global"


@dataclass
class RateLimitResult:
    """Result of a rate limit check, all read under one lock."""
    allowed: bool
    limit: int
    remaining: int
    reset_time: int
    checked_at: int
    retry_after_ms: Optional[int] = None


class RateLimiter:
    """Per-key sliding window rate limiter.

    Buckets are plain lists of epoch-millisecond timestamps in admission
    order. Stale entries are filtered lazily whenever a bucket is read;
    ``sweep()`` prunes every bucket and drops empty keys to bound memory.

    All public methods hold a lock for their whole body and never
    suspend, so check-then-append in ``admit`` is atomic for both
    event-loop and thread-pool callers.

    Usage:
        limiter = RateLimiter(max_requests=100, window_ms=60_000)

        if not limiter.admit("charity_lookup"):
            retry_at = limiter.reset_at("charity_lookup")
    """

    def __init__(
        self,
        max_requests: int,
        window_ms: int,
        clock: Callable[[], int] = now_ms,
    ):
        """Initialize rate limiter.

        Args:
            max_requests: Maximum admitted requests per key per window
            window_ms: Width of the trailing window in milliseconds
            clock: Returns the current time in epoch milliseconds
        """
        self._max_requests = max_requests
        self._window_ms = window_ms
        self._clock = clock
        self._buckets: Dict[str, List[int]] = {}
        self._lock = threading.Lock()

    @property
    def max_requests(self) -> int:
        return self._max_requests

    @property
    def window_ms(self) -> int:
        return self._window_ms

    def _valid(self, bucket: List[int], now: int) -> List[int]:
        return [t for t in bucket if now - t < self._window_ms]

    def admit(self, key: str = DEFAULT_KEY) -> bool:
        """Admit a request under ``key`` if the window has room.

        Admission and quota consumption are the same step: an admitted
        request is recorded immediately. A denied request changes nothing.

        Returns:
            True if the request is allowed
        """
        with self._lock:
            return self._admit_locked(key, self._clock())

    def _admit_locked(self, key: str, now: int) -> bool:
        valid = self._valid(self._buckets.get(key, []), now)

        if len(valid) >= self._max_requests:
            logger.warning(
                f"Rate limit exceeded for '{key}'",
                extra={"key": key, "requests": len(valid)},
            )
            return False

        valid.append(now)
        self._buckets[key] = valid
        return True

    def _reset_at_locked(self, key: str) -> int:
        bucket = self._buckets.get(key)
        if not bucket:
            return 0
        return min(bucket) + self._window_ms

    def remaining(self, key: str = DEFAULT_KEY) -> int:
        """Requests still available for ``key`` in the current window."""
        with self._lock:
            now = self._clock()
            valid = self._valid(self._buckets.get(key, []), now)
            return max(0, self._max_requests - len(valid))

    def reset_at(self, key: str = DEFAULT_KEY) -> int:
        """Epoch ms at which the oldest stored request for ``key`` expires.

        Reads the stored bucket as-is, so a stale oldest entry yields a
        time in the past; callers treat that as "available now".
        Returns 0 when nothing is stored for ``key``.
        """
        with self._lock:
            return self._reset_at_locked(key)

    def check(self, key: str = DEFAULT_KEY) -> RateLimitResult:
        """Admit a request and report quota metadata alongside the decision.

        The decision and the reported ``remaining``, ``reset_time`` and
        ``checked_at`` come from a single locked step, so concurrent callers
        never see each other's admissions in their result.
        """
        with self._lock:
            now = self._clock()
            allowed = self._admit_locked(key, now)
            reset_time = self._reset_at_locked(key)
            valid = self._valid(self._buckets.get(key, []), now)

        retry_after_ms = None
        if not allowed:
            retry_after_ms = max(0, reset_time - now)
        return RateLimitResult(
            allowed=allowed,
            limit=self._max_requests,
            remaining=max(0, self._max_requests - len(valid)),
            reset_time=reset_time,
            checked_at=now,
            retry_after_ms=retry_after_ms,
        )

    def sweep(self) -> None:
        """Prune stale timestamps and drop keys whose buckets end up empty."""
        with self._lock:
            now = self._clock()
            expired = []
            for key, bucket in self._buckets.items():
                valid = self._valid(bucket, now)
                if valid:
                    self._buckets[key] = valid
                else:
                    expired.append(key)
            for key in expired:
                del self._buckets[key]
            if expired:
                logger.debug(f"Rate limiter sweep removed {len(expired)} idle keys")

    def keys(self) -> List[str]:
        """Keys that currently hold a bucket."""
        with self._lock:
            return list(self._buckets)


class RateLimitSweeper:
    """Runs ``RateLimiter.sweep()`` periodically in the background.

    Usage:
        sweeper = RateLimitSweeper(limiter, interval=300)
        await sweeper.start()
        ...
        await sweeper.stop()
    """

    def __init__(self, limiter: RateLimiter, interval: float = 300.0):
        """Initialize the sweeper.

        Args:
            limiter: Limiter to maintain
            interval: Time between sweeps in seconds (default: 300.0)
        """
        self._limiter = limiter
        self._interval = interval
        self._task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                self._limiter.sweep()

    async def start(self) -> None:
        """Start periodic sweeping. Calling twice is a no-op."""
        if self.is_running:
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run())
        logger.info(f"Rate limiter sweeper started (interval={self._interval}s)")

    async def stop(self) -> None:
        """Stop sweeping and wait for the background task to finish."""
        if self._task is None:
            return
        self._stop_event.set()
        await self._task
        self._task = None
        logger.info("Rate limiter sweeper stopped")
