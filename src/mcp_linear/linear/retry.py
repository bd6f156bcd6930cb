"""Retry wrapper for Linear API calls.

Two failure classes are retried:

- Authentication failures get exactly one refresh-and-retry, and only on the
  first attempt, when a refresh capability was supplied.
- Rate-limit failures are retried with a bounded, capped backoff that honours
  the server's ``Retry-After`` hint.

Everything else propagates immediately.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from ..exceptions import MCPLinearAuthenticationError, MCPLinearRateLimitError

logger = logging.getLogger("mcp-linear.retry")

T = TypeVar("T")

RefreshFn = Callable[[], Awaitable[str]]
SleepFn = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """Bounds for rate-limit retries."""

    max_attempts: int = 3
    base_delay: float = 1.0
    max_wait_seconds: float = 30.0
    max_total_wait_seconds: float = 60.0

    def wait_for(self, failures: int, retry_after: int | None) -> float:
        """Seconds to wait after the ``failures``-th consecutive rate-limit response."""
        if retry_after is not None and retry_after >= 0:
            wait = float(retry_after)
        else:
            wait = self.base_delay * (2 ** (failures - 1))
        return min(wait, self.max_wait_seconds)


async def execute_with_retry(
    call: Callable[[str], Awaitable[T]],
    credential: str,
    *,
    refresh: RefreshFn | None = None,
    policy: RetryPolicy | None = None,
    sleep: SleepFn = asyncio.sleep,
) -> T:
    """Run ``call(credential)`` with authentication and rate-limit recovery.

    Args:
        call: One round trip to the API using the given credential.
        credential: The credential for the first attempt.
        refresh: Optional capability returning a fresh credential. When absent,
            authentication failures are never retried.
        policy: Backoff bounds; defaults to :class:`RetryPolicy`.
        sleep: Awaitable sleep, injectable for tests.

    Returns:
        Whatever ``call`` returns.

    Raises:
        MCPLinearAuthenticationError: If authentication fails and cannot be
            recovered by a single refresh.
        MCPLinearRateLimitError: When the retry budget is exhausted.
    """
    policy = policy or RetryPolicy()
    attempt = 0
    rate_limit_failures = 0
    total_wait = 0.0
    refreshed = False

    while True:
        attempt += 1
        try:
            return await call(credential)
        except MCPLinearAuthenticationError:
            if refresh is None or refreshed or attempt != 1:
                raise
            logger.info("Linear rejected the credential, refreshing and retrying once")
            refreshed = True
            # Not counted against the rate-limit budget
            credential = await refresh()
        except MCPLinearRateLimitError as e:
            rate_limit_failures += 1
            if rate_limit_failures >= policy.max_attempts:
                logger.warning(
                    f"Rate limited {rate_limit_failures} times, giving up"
                )
                raise
            wait = policy.wait_for(rate_limit_failures, e.retry_after_seconds)
            if total_wait + wait > policy.max_total_wait_seconds:
                logger.warning(
                    f"Rate limited; waiting {wait:.1f}s would exceed the "
                    f"{policy.max_total_wait_seconds:.0f}s budget, giving up"
                )
                raise
            logger.info(
                f"Rate limited by Linear, retrying in {wait:.1f}s "
                f"(attempt {rate_limit_failures + 1}/{policy.max_attempts})"
            )
            total_wait += wait
            await sleep(wait)
