"""Batch planning over the scope catalog.

Splits the ordered scope catalog into contiguous request batches. Every
batch is sent with the full subject catalog; pacing between batches is
the caller's job (see BatchPacer).
"""

import asyncio
import math
from dataclasses import dataclass
from typing import Iterator, Sequence

from ..clients.backoff import SleepFunc

DEFAULT_BATCH_SIZE = 25
DEFAULT_BATCH_PAUSE = 2.0  # seconds


@dataclass(frozen=True)
class ScopeBatch:
    """A single oracle request's worth of scopes."""

    number: int  # 1-based position in the plan
    scopes: tuple[str, ...]

    def __len__(self) -> int:
        return len(self.scopes)


class BatchPlanner:
    """Partitions scopes into bounded, order-preserving batches."""

    def __init__(self, batch_size: int = DEFAULT_BATCH_SIZE):
        """Initialize the planner.

        Args:
            batch_size: Maximum scopes per batch.
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self._batch_size = batch_size

    @property
    def batch_size(self) -> int:
        return self._batch_size

    def batch_count(self, scope_count: int) -> int:
        """Number of batches plan() yields for `scope_count` scopes."""
        return math.ceil(scope_count / self._batch_size)

    def plan(self, scopes: Sequence[str]) -> Iterator[ScopeBatch]:
        """Lazily yield contiguous batches covering `scopes` exactly once.

        Example:
            Input: 193 countries, batch_size=25
            Output: batches 1..7 of 25 scopes, batch 8 of 18 scopes
        """
        for number, start in enumerate(range(0, len(scopes), self._batch_size), 1):
            yield ScopeBatch(
                number=number,
                scopes=tuple(scopes[start:start + self._batch_size]),
            )


class BatchPacer:
    """Fixed pause between successive oracle requests."""

    def __init__(
        self,
        interval: float = DEFAULT_BATCH_PAUSE,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self._interval = interval
        self._sleep = sleep

    @property
    def interval(self) -> float:
        return self._interval

    async def wait(self) -> None:
        """Sleep the configured interval (no-op when it is zero)."""
        if self._interval > 0:
            await self._sleep(self._interval)


def plan_batches(
    scopes: Sequence[str],
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> list[ScopeBatch]:
    """Convenience function returning the full plan as a list.

    Args:
        scopes: Ordered scope catalog.
        batch_size: Maximum scopes per batch.

    Returns:
        List of ScopeBatch in catalog order.
    """
    return list(BatchPlanner(batch_size).plan(scopes))
