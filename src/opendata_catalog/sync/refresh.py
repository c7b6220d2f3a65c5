"""
Scheduled Refresh - Periodic re-run of a provider.

A run that exceeds the timeout is abandoned: deltas already published
stay applied and the full mutation of that run is never sent.
"""

import asyncio
import logging
from typing import Optional

from ..config import RefreshConfig
from .provider import EntityProvider, SyncReport

logger = logging.getLogger(__name__)


class ScheduledRefresh:
    """Runs a connected provider every ``frequency`` seconds."""

    def __init__(
        self,
        provider: EntityProvider,
        frequency: float = 60 * 60,
        timeout: float = 20 * 60,
    ):
        self.provider = provider
        self.frequency = frequency
        self.timeout = timeout
        self.runs = 0
        self.failures = 0
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @classmethod
    def from_config(cls, provider: EntityProvider, config: RefreshConfig) -> "ScheduledRefresh":
        return cls(
            provider,
            frequency=config.frequency_minutes * 60,
            timeout=config.timeout_minutes * 60,
        )

    @property
    def is_running(self) -> bool:
        return self._running

    async def run_once(self) -> Optional[SyncReport]:
        """
        Run the provider once under the timeout.

        Returns:
            The run report, or None when the run timed out or failed.
            The next tick retries either way.
        """
        self.runs += 1
        try:
            return await asyncio.wait_for(self.provider.run(), timeout=self.timeout)
        except asyncio.TimeoutError:
            self.failures += 1
            logger.error(f"Refresh of {self.provider.provider_name} timed out after {self.timeout}s")
        except Exception as e:
            self.failures += 1
            logger.error(f"Refresh of {self.provider.provider_name} failed: {e}")
        return None

    async def run_forever(self) -> None:
        """Run immediately, then once per period until stopped or cancelled."""
        self._running = True
        logger.info(
            f"Refreshing {self.provider.provider_name} every {self.frequency}s "
            f"(timeout {self.timeout}s)"
        )
        try:
            while self._running:
                await self.run_once()
                if not self._running:
                    break
                await asyncio.sleep(self.frequency)
        except asyncio.CancelledError:
            logger.info(f"Refresh of {self.provider.provider_name} cancelled")
            raise
        finally:
            self._running = False

    def start(self) -> asyncio.Task:
        """Schedule run_forever() as a background task on the running loop."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run_forever())
        return self._task

    async def stop(self) -> None:
        self._running = False
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
