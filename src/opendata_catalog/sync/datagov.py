"""
Data Portal Provider - Mirror a CKAN data portal into the catalog.

Per dataset: fetch the detail record, infer a schema for every resource,
build Group/System/Component/API entities and publish them as a delta.
"""

import asyncio
import logging
from typing import Optional

import httpx

from ..config import DataPortalConfig
from ..entities.datasets import DatasetEntityBuilder
from ..entities.model import Entity
from ..scheduler import FetchScheduler
from ..schema.inference import SchemaInferenceEngine
from ..sources.ckan import PortalClient
from .provider import EntityProvider

logger = logging.getLogger(__name__)


class DataPortalProvider(EntityProvider[str]):
    """
    Provider for CKAN dataset catalogs.

    Items are dataset identifiers. Records whose declared type is not
    "dataset" (e.g. harvest sources) are skipped without error.

    Datasets of the same organization each emit their own Group entity;
    collapsing same-named entities is left to the host catalog.
    """

    def __init__(
        self,
        environment: str,
        client: PortalClient,
        scheduler: FetchScheduler,
        engine: Optional[SchemaInferenceEngine] = None,
        builder: Optional[DatasetEntityBuilder] = None,
    ):
        super().__init__(environment, scheduler)
        self.client = client
        self.engine = engine or SchemaInferenceEngine(client)
        self.builder = builder or DatasetEntityBuilder(client.config)

    @classmethod
    def create(
        cls,
        environment: str,
        http: httpx.AsyncClient,
        scheduler: FetchScheduler,
        config: Optional[DataPortalConfig] = None,
    ) -> "DataPortalProvider":
        """Wire a provider with its client, engine and builder from one config."""
        config = config or DataPortalConfig()
        client = PortalClient(http, scheduler, config)
        return cls(
            environment,
            client,
            scheduler,
            engine=SchemaInferenceEngine(client, config),
            builder=DatasetEntityBuilder(config),
        )

    @property
    def provider_name(self) -> str:
        return f"datagovlv-{self.environment}"

    async def discover(self) -> list[str]:
        return await self.client.list_identifiers()

    async def process_item(self, item: str) -> Optional[list[Entity]]:
        dataset = await self.client.fetch_detail(item)
        if not dataset.is_dataset:
            logger.warning(f"Ignore {item}: type {dataset.type} is not a dataset")
            return None

        probes = await asyncio.gather(*(
            self.engine.infer(resource) for resource in dataset.resources
        ))
        return self.builder.build_entities(dataset, probes)
