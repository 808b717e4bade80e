"""Retry mechanism with exponential backoff for upstream calls.

This module provides a retry policy and an explicit retry loop for
transient failures in HTTP requests.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

import httpx

from charity_gateway.app.core.logging import get_logger
from charity_gateway.app.exceptions import RequestCancelledError

logger = get_logger(__name__)

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """Configuration for retry behavior with exponential backoff.

    Attributes:
        max_retries: Retries allowed after the first attempt (default: 3)
        base_delay: Delay before the first retry in seconds (default: 1.0)
        exponential_base: Base for exponential calculation (default: 2.0)
        max_delay: Optional cap on any single delay in seconds

    Example:
        >>> policy = RetryPolicy(max_retries=5, base_delay=1.0)
        >>> policy.calculate_delay(attempt=2)
        4.0
    """

    max_retries: int = 3
    base_delay: float = 1.0
    exponential_base: float = 2.0
    max_delay: Optional[float] = None

    @classmethod
    def from_milliseconds(cls, max_retries: int, retry_delay_ms: int) -> "RetryPolicy":
        return cls(max_retries=max_retries, base_delay=retry_delay_ms / 1000)

    def calculate_delay(self, attempt: int) -> float:
        """Calculate the delay before retrying after a failed attempt.

        Uses exponential backoff: delay = base_delay * (exponential_base ^ attempt)

        Args:
            attempt: The failed attempt number (0-indexed)

        Returns:
            Delay in seconds
        """
        delay = self.base_delay * (self.exponential_base**attempt)
        if self.max_delay is not None:
            return min(delay, self.max_delay)
        return delay

    def is_retryable(self, exception: BaseException) -> bool:
        """Check if an exception should trigger a retry.

        Transport failures (no response received, including timeouts) are
        always retryable. Responses are retryable only for 5xx and 429.

        Args:
            exception: The exception to check

        Returns:
            True if the exception should trigger a retry
        """
        if isinstance(exception, httpx.HTTPStatusError):
            status = exception.response.status_code
            return status >= 500 or status == 429

        return isinstance(exception, httpx.TransportError)


async def wait_or_cancel(
    delay: float,
    sleep: SleepFunc = asyncio.sleep,
    cancel_event: Optional[asyncio.Event] = None,
) -> None:
    """Wait ``delay`` seconds unless ``cancel_event`` fires first.

    Raises:
        RequestCancelledError: If the event was set before the wait ended
        Exception: Whatever ``sleep`` raised
    """
    if cancel_event is None:
        await sleep(delay)
        return

    sleeper = asyncio.ensure_future(sleep(delay))
    watcher = asyncio.ensure_future(cancel_event.wait())
    try:
        await asyncio.wait({sleeper, watcher}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (sleeper, watcher):
            if not task.done():
                task.cancel()
    if cancel_event.is_set():
        raise RequestCancelledError("Request cancelled during retry backoff")
    sleeper.result()


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    sleep: SleepFunc = asyncio.sleep,
    cancel_event: Optional[asyncio.Event] = None,
    description: str = "request",
) -> T:
    """Run ``operation`` until it succeeds or the policy gives up.

    The first failure that is not retryable, or the failure of the final
    allowed attempt, is re-raised unchanged. Callers decide how to map it.

    Args:
        operation: Zero-argument coroutine function performing one attempt
        policy: Retry policy to apply
        sleep: Coroutine function used for backoff waits (seconds)
        cancel_event: Optional abort signal checked before each attempt
            and during backoff
        description: Label used in log messages

    Returns:
        The operation's result

    Raises:
        RequestCancelledError: If ``cancel_event`` was set
    """
    attempt = 0
    while True:
        if cancel_event is not None and cancel_event.is_set():
            raise RequestCancelledError(f"Request cancelled before attempt {attempt + 1}")

        try:
            return await operation()
        except Exception as e:
            if not policy.is_retryable(e):
                logger.debug(f"Non-retryable failure in {description}: {type(e).__name__}: {e}")
                raise

            if attempt >= policy.max_retries:
                if policy.max_retries:
                    logger.warning(
                        f"Max retries ({policy.max_retries}) exceeded for {description}: "
                        f"{type(e).__name__}: {e}"
                    )
                raise

            delay = policy.calculate_delay(attempt)
            logger.warning(
                f"Retrying {description} in {delay * 1000:.0f}ms "
                f"(attempt {attempt + 1}/{policy.max_retries}) after {type(e).__name__}: {e}"
            )
            await wait_or_cancel(delay, sleep=sleep, cancel_event=cancel_event)
            attempt += 1
