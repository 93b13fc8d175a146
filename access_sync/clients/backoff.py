"""Capped exponential backoff for oracle calls.

Retries a unit of work on transient failures with delays of
base * 2^(attempt-1), capped at max_delay. Any other failure propagates
on first occurrence.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

from ..core.errors import TransientOracleError

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class BackoffPolicy:
    """Retry configuration (delays in seconds)."""

    max_retries: int = 5
    base_delay: float = 2.0
    max_delay: float = 30.0
    retry_on: tuple[type[BaseException], ...] = field(
        default=(TransientOracleError,)
    )


DEFAULT_POLICY = BackoffPolicy()


def compute_delay(attempt: int, policy: BackoffPolicy = DEFAULT_POLICY) -> float:
    """Delay before retry number `attempt` (1-based)."""
    if attempt < 1:
        raise ValueError(f"attempt must be >= 1, got {attempt}")
    return min(policy.base_delay * (2 ** (attempt - 1)), policy.max_delay)


async def with_backoff(
    operation: Callable[[], Awaitable[T]],
    policy: BackoffPolicy = DEFAULT_POLICY,
    sleep: SleepFunc = asyncio.sleep,
    label: str = "operation",
) -> T:
    """Run `operation`, retrying retryable failures.

    Args:
        operation: Zero-argument coroutine factory; called once per attempt.
        policy: Retry configuration.
        sleep: Awaitable sleep, replaceable in tests.
        label: Name used in log lines.

    Returns:
        The first successful result.

    Raises:
        The last exception unchanged when it is not retryable or when
        `policy.max_retries` retries have been used up.
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except policy.retry_on as e:
            attempt += 1
            if attempt > policy.max_retries:
                logger.error(
                    f"{label} failed after {policy.max_retries} retries: {e}"
                )
                raise

            delay = compute_delay(attempt, policy)
            logger.warning(
                f"{label}: retry attempt {attempt}/{policy.max_retries} "
                f"in {delay:.1f}s due to {e}"
            )
            await sleep(delay)
