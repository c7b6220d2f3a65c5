"""
Mutations - Messages published to the host catalog.

A run publishes zero or more Delta mutations while items complete,
followed by exactly one Full mutation that replaces the provider's
entity set. Entities missing from the Full are pruned by the host.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol, Union

from ..entities.model import Entity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeferredEntity:
    """An entity tagged with the location key of the provider that produced it."""
    entity: Entity
    location_key: str

    def to_dict(self) -> dict:
        return {"entity": self.entity.to_dict(), "locationKey": self.location_key}


@dataclass(frozen=True)
class FullMutation:
    """Replace the provider's entire entity set."""
    entities: list[DeferredEntity] = field(default_factory=list)
    type: str = field(default="full", init=False)

    def to_dict(self) -> dict:
        return {"type": self.type, "entities": [e.to_dict() for e in self.entities]}


@dataclass(frozen=True)
class DeltaMutation:
    """Incrementally add and remove entities."""
    added: list[DeferredEntity] = field(default_factory=list)
    removed: list[DeferredEntity] = field(default_factory=list)
    type: str = field(default="delta", init=False)

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "added": [e.to_dict() for e in self.added],
            "removed": [e.to_dict() for e in self.removed],
        }


Mutation = Union[FullMutation, DeltaMutation]


class EntityProviderConnection(Protocol):
    """Sink offered by the host catalog to a connected provider."""

    async def apply_mutation(self, mutation: Mutation) -> None:
        ...


class RecordingConnection:
    """
    In-memory connection that keeps every mutation it receives.

    Used by the CLI to capture a run and by tests to assert on the
    published mutations.
    """

    def __init__(self):
        self.mutations: list[Mutation] = []

    async def apply_mutation(self, mutation: Mutation) -> None:
        self.mutations.append(mutation)
        if isinstance(mutation, FullMutation):
            logger.debug(f"Recorded full mutation with {len(mutation.entities)} entities")
        else:
            logger.debug(f"Recorded delta mutation with {len(mutation.added)} added entities")

    @property
    def deltas(self) -> list[DeltaMutation]:
        return [m for m in self.mutations if isinstance(m, DeltaMutation)]

    @property
    def fulls(self) -> list[FullMutation]:
        return [m for m in self.mutations if isinstance(m, FullMutation)]

    @property
    def last_full(self) -> Optional[FullMutation]:
        fulls = self.fulls
        return fulls[-1] if fulls else None
