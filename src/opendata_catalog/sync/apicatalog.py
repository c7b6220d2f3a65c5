"""
API Catalog Provider - Mirror an API developer portal into the catalog.
"""

import logging
from typing import Optional

import httpx

from ..config import ApiCatalogConfig
from ..entities.apis import ApiEntityBuilder
from ..entities.model import Entity
from ..scheduler import FetchScheduler
from ..sources.devportal import ApiListItem, DevPortalClient
from .provider import EntityProvider

logger = logging.getLogger(__name__)


class ApiCatalogProvider(EntityProvider[ApiListItem]):
    """Provider for published APIs; each API yields a Group, Component and API."""

    def __init__(
        self,
        environment: str,
        client: DevPortalClient,
        scheduler: FetchScheduler,
        builder: Optional[ApiEntityBuilder] = None,
    ):
        super().__init__(environment, scheduler)
        self.client = client
        self.builder = builder or ApiEntityBuilder(client.config)

    @classmethod
    def create(
        cls,
        environment: str,
        http: httpx.AsyncClient,
        scheduler: FetchScheduler,
        config: Optional[ApiCatalogConfig] = None,
    ) -> "ApiCatalogProvider":
        config = config or ApiCatalogConfig()
        return cls(
            environment,
            DevPortalClient(http, scheduler, config),
            scheduler,
            builder=ApiEntityBuilder(config),
        )

    @property
    def provider_name(self) -> str:
        return f"apivissgovlv-{self.environment}"

    def item_id(self, item: ApiListItem) -> str:
        return item.id

    async def discover(self) -> list[ApiListItem]:
        return await self.client.list_apis()

    async def process_item(self, item: ApiListItem) -> Optional[list[Entity]]:
        api = await self.client.fetch_definition(item)
        logger.debug(f"Fetched API {api.name} ({api.version}) owned by {api.owner}")
        return self.builder.build_entities(api)
