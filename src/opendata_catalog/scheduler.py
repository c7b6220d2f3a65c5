"""
Fetch Scheduler - Bounded-concurrency admission for network tasks.

Every network call of a run (dataset detail, schema probe, raw download)
is submitted here so that one portal is never hit by more than
``concurrency`` requests at once. Tasks are admitted in submission order.
A failing task raises to its own caller only; there are no retries.
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FetchScheduler:
    """
    Shared FIFO task queue with a fixed concurrency ceiling.

    Counters are kept so that tests and run reports can assert on
    task accounting.
    """

    def __init__(self, concurrency: int = 10):
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")
        self.concurrency = concurrency
        self._semaphore = asyncio.Semaphore(concurrency)
        self.in_flight = 0
        self.peak_in_flight = 0
        self.submitted = 0
        self.completed = 0
        self.failed = 0

    async def submit(self, task_factory: Callable[[], Awaitable[T]]) -> T:
        """
        Run one task once a slot is free.

        Args:
            task_factory: Zero-argument callable returning the awaitable to run.
                The awaitable is only created after admission.

        Returns:
            The task's result. The task's exception propagates unchanged.
        """
        self.submitted += 1
        async with self._semaphore:
            self.in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
            try:
                result = await task_factory()
            except Exception:
                self.failed += 1
                raise
            else:
                self.completed += 1
                return result
            finally:
                self.in_flight -= 1

    @property
    def pending(self) -> int:
        """Tasks submitted but not yet finished."""
        return self.submitted - self.completed - self.failed

    def stats(self) -> dict:
        return {
            "concurrency": self.concurrency,
            "submitted": self.submitted,
            "completed": self.completed,
            "failed": self.failed,
            "peakInFlight": self.peak_in_flight,
        }
