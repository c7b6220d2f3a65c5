"""
Entity Provider - Synchronization protocol driver.

A provider is constructed, connected to the host catalog, and then run.
Each run discovers the remote items, processes every item as an
independent pipeline task (fetch -> infer -> build -> publish delta),
joins the results and publishes one terminating full mutation in
discovery order.

State machine:
    IDLE -> DISCOVERING -> PROCESSING -> FINALIZING -> DONE
    any state -> FAILED on a fatal error
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Generic, Optional, TypeVar

from opentelemetry import trace

from .. import __version__
from ..entities.model import Entity
from ..errors import NotConnectedError, ProviderError
from ..scheduler import FetchScheduler
from .mutations import DeferredEntity, DeltaMutation, EntityProviderConnection, FullMutation

logger = logging.getLogger(__name__)
tracer = trace.get_tracer("opendata_catalog.sync", __version__)

ItemT = TypeVar("ItemT")

PROGRESS_EVERY = 20


class ProviderState(Enum):
    """Run lifecycle states."""
    IDLE = "idle"
    DISCOVERING = "discovering"
    PROCESSING = "processing"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


_ACTIVE_STATES = (ProviderState.DISCOVERING, ProviderState.PROCESSING, ProviderState.FINALIZING)


@dataclass
class SyncReport:
    """Summary of one provider run."""
    provider: str
    items_discovered: int = 0
    items_processed: int = 0
    items_skipped: int = 0
    items_failed: int = 0
    entities_published: int = 0
    deltas_published: int = 0
    errors: list[str] = field(default_factory=list)
    scheduler: dict = field(default_factory=dict)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    duration_ms: int = 0

    def to_dict(self) -> dict:
        return {
            "provider": self.provider,
            "summary": {
                "itemsDiscovered": self.items_discovered,
                "itemsProcessed": self.items_processed,
                "itemsSkipped": self.items_skipped,
                "itemsFailed": self.items_failed,
                "entitiesPublished": self.entities_published,
                "deltasPublished": self.deltas_published,
            },
            "scheduler": self.scheduler,
            "errors": self.errors,
            "startedAt": self.started_at.isoformat(),
            "durationMs": self.duration_ms,
        }


class EntityProvider(ABC, Generic[ItemT]):
    """
    Base class for providers that mirror a remote catalog into the host.

    Subclasses supply discovery and the per-item pipeline; the base class
    owns the lifecycle, the fan-out/fan-in and mutation publishing.
    """

    def __init__(self, environment: str, scheduler: FetchScheduler):
        self.environment = environment
        self.scheduler = scheduler
        self._connection: Optional[EntityProviderConnection] = None
        self._state = ProviderState.IDLE

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Stable provider name, unique per environment."""
        pass

    @abstractmethod
    async def discover(self) -> list[ItemT]:
        """List remote items. Raising here aborts the run."""
        pass

    @abstractmethod
    async def process_item(self, item: ItemT) -> Optional[list[Entity]]:
        """
        Build the entities of one item.

        Returns:
            Entities of the item, or None when the item is deliberately skipped.
            Raising marks only this item as failed.
        """
        pass

    def item_id(self, item: ItemT) -> str:
        return str(item)

    @property
    def state(self) -> ProviderState:
        return self._state

    @property
    def location_key(self) -> str:
        return f"{self.provider_name}:{self.environment}"

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    async def connect(self, connection: EntityProviderConnection) -> None:
        """Attach the host catalog sink. Required before run()."""
        self._connection = connection
        logger.info(f"Provider {self.provider_name} connected")

    async def run(self) -> SyncReport:
        """
        Run one full synchronization.

        Raises:
            NotConnectedError: connect() was never called
            ProviderError: a run is already in progress
            DiscoveryError: the remote listing failed
        """
        if self._state in _ACTIVE_STATES:
            raise ProviderError(f"Provider {self.provider_name} is already running ({self._state.value})")
        if self._connection is None:
            self._transition_to(ProviderState.FAILED)
            raise NotConnectedError(self.provider_name)

        connection = self._connection
        report = SyncReport(provider=self.provider_name)
        start_time = time.monotonic()

        with tracer.start_as_current_span("provider.run") as span:
            span.set_attribute("provider", self.provider_name)
            try:
                self._transition_to(ProviderState.DISCOVERING)
                items = await self.discover()
                report.items_discovered = len(items)
                span.set_attribute("items", len(items))

                self._transition_to(ProviderState.PROCESSING)
                progress = {"done": 0}
                batches = await asyncio.gather(*(
                    self._run_pipeline(item, connection, report, progress, len(items))
                    for item in items
                ))

                # gather keeps submission order, so this is discovery order
                entities = [entity for batch in batches for entity in batch]

                self._transition_to(ProviderState.FINALIZING)
                await connection.apply_mutation(
                    FullMutation(entities=[self._defer(entity) for entity in entities])
                )
                report.entities_published = len(entities)
            except Exception as e:
                self._transition_to(ProviderState.FAILED, error=e)
                raise
            except asyncio.CancelledError:
                # abandoned mid-flight: deltas already sent stay, no full is sent
                self._transition_to(ProviderState.FAILED)
                logger.warning(f"Provider {self.provider_name} run cancelled before the full mutation")
                raise

            self._transition_to(ProviderState.DONE)

        report.scheduler = self.scheduler.stats()
        report.duration_ms = int((time.monotonic() - start_time) * 1000)
        logger.info(
            f"Provider {self.provider_name} published {report.entities_published} entities "
            f"from {report.items_processed} items "
            f"({report.items_skipped} skipped, {report.items_failed} failed) "
            f"in {report.duration_ms}ms"
        )
        return report

    async def _run_pipeline(
        self,
        item: ItemT,
        connection: EntityProviderConnection,
        report: SyncReport,
        progress: dict,
        total: int,
    ) -> list[Entity]:
        item_id = self.item_id(item)
        with tracer.start_as_current_span("provider.item") as span:
            span.set_attribute("item.id", item_id)
            try:
                entities = await self.process_item(item)
            except Exception as e:
                logger.error(f"Item {item_id} failed: {e}")
                report.items_failed += 1
                report.errors.append(f"{item_id}: {e}")
                entities = []
            else:
                if entities is None:
                    report.items_skipped += 1
                    entities = []
                else:
                    report.items_processed += 1
            finally:
                self._log_progress(progress, total)

            span.set_attribute("entities", len(entities))
            if not entities:
                return []

            try:
                await connection.apply_mutation(
                    DeltaMutation(added=[self._defer(entity) for entity in entities], removed=[])
                )
                report.deltas_published += 1
            except Exception as e:
                logger.error(f"Delta for {item_id} was not applied: {e}")
                report.errors.append(f"{item_id}: delta not applied: {e}")

            return entities

    def _defer(self, entity: Entity) -> DeferredEntity:
        return DeferredEntity(entity=entity, location_key=self.location_key)

    def _log_progress(self, progress: dict, total: int) -> None:
        progress["done"] += 1
        done = progress["done"]
        if done % PROGRESS_EVERY == 0 or done == total:
            logger.info(f"Progress: {done} of {total} ({round(done / total * 100)}%)")

    def _transition_to(self, state: ProviderState, error: Optional[Exception] = None) -> None:
        old_state = self._state
        self._state = state
        if error is not None:
            logger.error(f"Provider {self.provider_name}: {old_state.value} -> {state.value}: {error}")
        else:
            logger.debug(f"Provider {self.provider_name}: {old_state.value} -> {state.value}")
