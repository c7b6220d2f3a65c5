"""
Developer Portal Client - API discovery for WSO2-style API developer portals.

The portal publishes its own machine-readable definition for every API,
so no content-based schema inference is needed here.
"""

import logging
from typing import Any, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..config import ApiCatalogConfig
from ..errors import DiscoveryError, FetchError
from ..scheduler import FetchScheduler

logger = logging.getLogger(__name__)


class _UpstreamRecord(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    @field_validator("avgRating", mode="before", check_fields=False)
    @classmethod
    def _rating_as_text(cls, value: Any) -> Any:
        # ratings arrive as numbers or numeric strings
        return None if value is None else str(value)


class ApiListItem(_UpstreamRecord):
    """Row of the API listing."""
    id: str
    name: str
    description: Optional[str] = None
    context: str = ""
    version: str = ""
    type: str = "HTTP"
    provider: str = ""
    lifeCycleStatus: str = ""
    avgRating: Optional[str] = None


class BusinessInformation(_UpstreamRecord):
    """Ownership contacts of an API."""
    businessOwner: Optional[str] = None
    businessOwnerEmail: Optional[str] = None
    technicalOwner: Optional[str] = None
    technicalOwnerEmail: Optional[str] = None


class ApiDefinition(_UpstreamRecord):
    """Full API record including its definition document."""
    id: str
    name: str
    description: Optional[str] = None
    context: str = ""
    version: str = ""
    provider: str = ""
    apiDefinition: Optional[str] = None
    wsdlUri: Optional[str] = None
    lifeCycleStatus: str = ""
    type: str = "HTTP"
    tags: list[str] = Field(default_factory=list)
    avgRating: Optional[str] = None
    businessInformation: BusinessInformation = Field(default_factory=BusinessInformation)

    @property
    def owner(self) -> str:
        """Business owner, else technical owner, else the raw provider id."""
        info = self.businessInformation
        return info.businessOwner or info.technicalOwner or self.provider

    @property
    def owner_email(self) -> Optional[str]:
        info = self.businessInformation
        return info.businessOwnerEmail or info.technicalOwnerEmail


class DevPortalClient:
    """HTTP client for the developer portal REST API."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        scheduler: FetchScheduler,
        config: Optional[ApiCatalogConfig] = None,
    ):
        self.http = http
        self.scheduler = scheduler
        self.config = config or ApiCatalogConfig()

    async def list_apis(self) -> list[ApiListItem]:
        """
        List every API published on the portal.

        Raises:
            DiscoveryError: listing unreachable or malformed
        """
        url = self.config.list_url
        try:
            response = await self.http.get(url)
        except httpx.HTTPError as e:
            raise DiscoveryError(f"API listing unreachable: {e}", url=url) from e

        if response.status_code != 200:
            raise DiscoveryError(f"API listing returned {response.status_code}", url=url)

        try:
            items = [ApiListItem.model_validate(item) for item in response.json()["list"]]
        except (ValueError, KeyError, TypeError, ValidationError) as e:
            raise DiscoveryError(f"API listing is malformed: {e}", url=url) from e

        logger.info(f"Discovered {len(items)} APIs at {url}")
        return items

    async def fetch_definition(self, item: ApiListItem) -> ApiDefinition:
        """
        Fetch the full record of one API.

        Raises:
            FetchError: the record could not be fetched or validated
        """
        url = self.config.show_url(item.id)
        try:
            response = await self.scheduler.submit(lambda: self.http.get(url))
        except httpx.HTTPError as e:
            raise FetchError(f"API {item.id} unreachable: {e}", url=url) from e

        if response.status_code != 200:
            raise FetchError(
                f"API {item.id} returned {response.status_code}",
                url=url,
                status_code=response.status_code,
            )

        try:
            return ApiDefinition.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise FetchError(f"API {item.id} has an invalid record: {e}", url=url) from e
