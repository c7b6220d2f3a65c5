"""
CKAN Portal Client - Dataset discovery for CKAN-based open-data portals.

Lists dataset identifiers, fetches dataset detail records, probes the
datastore for structured schemas and downloads raw resource files.
"""

import logging
from typing import Any, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..config import DataPortalConfig
from ..errors import DiscoveryError, FetchError
from ..scheduler import FetchScheduler

logger = logging.getLogger(__name__)

DATASET_TYPE = "dataset"


class _UpstreamRecord(BaseModel):
    """Upstream records keep unknown fields but never rely on them."""
    model_config = ConfigDict(extra="allow", frozen=True)


class Tag(_UpstreamRecord):
    name: str


class Organization(_UpstreamRecord):
    """Organization owning one or more datasets."""
    id: str = ""
    name: str
    title: str = ""
    description: Optional[str] = None
    image_url: Optional[str] = None
    is_organization: bool = False


class Resource(_UpstreamRecord):
    """A single downloadable or queryable file of a dataset."""
    id: str
    name: Optional[str] = None
    description: Optional[str] = None
    url: str = ""
    format: Optional[str] = None
    state: Optional[str] = None

    @field_validator("url", mode="before")
    @classmethod
    def _null_url(cls, value: Any) -> Any:
        return "" if value is None else value


class Dataset(_UpstreamRecord):
    """A CKAN package with its organization and resources."""
    id: str = ""
    name: str
    title: str = ""
    notes: Optional[str] = None
    type: Optional[str] = None
    state: Optional[str] = None
    organization: Organization
    tags: list[Tag] = Field(default_factory=list)
    resources: list[Resource] = Field(default_factory=list)
    license_id: Optional[str] = None
    license_title: Optional[str] = None
    license_url: Optional[str] = None
    maintainer: Optional[str] = None
    maintainer_email: Optional[str] = None
    frequency: Optional[str] = None

    @property
    def is_dataset(self) -> bool:
        return self.type == DATASET_TYPE


class PortalClient:
    """
    HTTP client for the CKAN action API.

    Listing is a single direct call; everything else goes through the
    shared FetchScheduler.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        scheduler: FetchScheduler,
        config: Optional[DataPortalConfig] = None,
    ):
        self.http = http
        self.scheduler = scheduler
        self.config = config or DataPortalConfig()

    def show_url(self, name: str) -> str:
        return f"{self.config.show_url}?id={name}"

    async def list_identifiers(self) -> list[str]:
        """
        List every dataset identifier published by the portal.

        Raises:
            DiscoveryError: listing unreachable or malformed
        """
        url = self.config.list_url
        try:
            response = await self.http.get(url)
        except httpx.HTTPError as e:
            raise DiscoveryError(f"Dataset listing unreachable: {e}", url=url) from e

        if response.status_code != 200:
            raise DiscoveryError(
                f"Dataset listing returned {response.status_code}", url=url
            )

        try:
            data = response.json()
        except ValueError as e:
            raise DiscoveryError(f"Dataset listing is not JSON: {e}", url=url) from e

        names = data.get("result") if isinstance(data, dict) else None
        if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
            raise DiscoveryError("Dataset listing has no result list", url=url)

        logger.info(f"Discovered {len(names)} dataset identifiers at {url}")
        return names

    async def fetch_detail(self, name: str) -> Dataset:
        """
        Fetch and validate one dataset detail record.

        Raises:
            FetchError: the record could not be fetched or validated
        """
        url = self.show_url(name)
        try:
            response = await self.scheduler.submit(lambda: self.http.get(url))
        except httpx.HTTPError as e:
            raise FetchError(f"Dataset {name} unreachable: {e}", url=url) from e

        if response.status_code != 200:
            raise FetchError(
                f"Dataset {name} returned {response.status_code}",
                url=url,
                status_code=response.status_code,
            )

        try:
            return Dataset.model_validate(response.json()["result"])
        except (ValueError, KeyError, TypeError, ValidationError) as e:
            raise FetchError(f"Dataset {name} has an invalid detail record: {e}", url=url) from e

    async def datastore_schema(self, resource_id: str) -> Optional[dict[str, str]]:
        """
        Ask the datastore for the column types of one resource.

        Returns:
            Mapping of column name to datastore type in source order,
            or None when no structured schema is available
        """
        response = await self.scheduler.submit(
            lambda: self.http.post(
                self.config.info_url,
                json={"id": resource_id},
                headers={"Content-Type": "application/json;charset=utf-8"},
            )
        )
        if response.status_code != 200:
            if response.status_code == 404:
                logger.debug(f"No datastore schema for resource {resource_id}")
            else:
                logger.error(
                    f"Resource id: {resource_id} returned {response.status_code} - "
                    f"{response.reason_phrase}: {response.text}"
                )
            return None

        data = response.json()
        if data.get("success") is False:
            logger.error(f"Resource id: {resource_id} returned {data}")
            return None

        return data["result"]["schema"]

    async def download(self, url: str) -> Optional[bytes]:
        """
        Download a raw resource file.

        Returns:
            File content, or None when the server did not return 200
        """
        response = await self.scheduler.submit(lambda: self.http.get(url))
        if response.status_code != 200:
            if response.status_code != 404:
                logger.error(
                    f"Resource url: {url} returned {response.status_code} - "
                    f"{response.reason_phrase}"
                )
            return None
        return response.content
