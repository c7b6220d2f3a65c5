"""Shared fixtures: an in-memory fake of both portals behind httpx.MockTransport."""

import asyncio
import json
from typing import Any, Optional, Union

import httpx
import pytest

from opendata_catalog.config import ApiCatalogConfig, DataPortalConfig
from opendata_catalog.scheduler import FetchScheduler
from opendata_catalog.sync import (
    ApiCatalogProvider,
    DataPortalProvider,
    RecordingConnection,
    SyncReport,
)

DATA_API = DataPortalConfig().base_url
DEVPORTAL_API = ApiCatalogConfig().base_url
GEOJSON_URL = DataPortalConfig().geojson_schema_url
GEOJSON_SCHEMA = '{"title": "GeoJSON", "oneOf": []}'
FILES = "https://files.example.org"

# A route value is a payload, a bare status code, a ready response,
# or an exception to raise from the transport.
Route = Union[dict, list, bytes, int, httpx.Response, Exception]


def make_resource(
    resource_id: str,
    url: str,
    name: Optional[str] = None,
    state: str = "active",
    **extra: Any,
) -> dict:
    return {
        "id": resource_id,
        "name": name if name is not None else resource_id.upper(),
        "url": url,
        "format": url.rsplit(".", 1)[-1].upper(),
        "state": state,
        **extra,
    }


def make_dataset(
    name: str,
    resources: Optional[list[dict]] = None,
    type: str = "dataset",
    org: str = "riga-city",
    state: str = "active",
    tags: Optional[list[str]] = None,
    **extra: Any,
) -> dict:
    return {
        "id": f"id-{name}",
        "name": name,
        "title": name.replace("-", " ").title(),
        "notes": f"About {name}",
        "type": type,
        "state": state,
        "organization": {
            "id": f"id-{org}",
            "name": org,
            "title": org.replace("-", " ").title(),
            "description": f"{org} organization",
            "image_url": f"{org}.png",
            "is_organization": True,
        },
        "tags": [{"name": tag} for tag in (tags or [])],
        "resources": resources or [],
        "license_id": "cc-by",
        "license_title": "Creative Commons Attribution",
        "maintainer": "Open Data Team",
        "maintainer_email": "opendata@example.org",
        **extra,
    }


class FakePortal:
    """Routes CKAN, datastore, developer portal and file requests."""

    def __init__(self):
        self.listing: Route = []
        self.datasets: dict[str, Route] = {}
        self.datastore: dict[str, Route] = {}
        self.files: dict[str, Route] = {GEOJSON_URL: GEOJSON_SCHEMA.encode("utf-8")}
        self.apis: Route = []
        self.api_details: dict[str, Route] = {}
        self.delays: dict[str, float] = {}
        self.requests: list[httpx.Request] = []

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def add_dataset(self, dataset: dict) -> dict:
        self.datasets[dataset["name"]] = dataset
        self.listing = list(self.listing) + [dataset["name"]]
        return dataset

    def add_api(self, item: dict, detail: Optional[Route] = None) -> None:
        self.apis = list(self.apis) + [item]
        self.api_details[item["id"]] = item if detail is None else detail

    def requested(self, url: str) -> int:
        return sum(1 for request in self.requests if str(request.url) == url)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)

        if url == f"{DATA_API}/package_list":
            return self._respond(self.listing, wrap="result")
        if url.startswith(f"{DATA_API}/package_show"):
            name = request.url.params["id"]
            if name in self.delays:
                await asyncio.sleep(self.delays[name])
            return self._respond(self.datasets.get(name, 404), wrap="result")
        if url == f"{DATA_API}/datastore_info":
            resource_id = json.loads(request.content)["id"]
            route = self.datastore.get(resource_id, 404)
            if isinstance(route, dict):
                route = {"success": True, "result": {"schema": route}}
            return self._respond(route)
        if url.startswith(f"{DEVPORTAL_API}/apis?"):
            return self._respond(self.apis, wrap="list")
        if url.startswith(f"{DEVPORTAL_API}/apis/"):
            api_id = url.rsplit("/", 1)[-1]
            return self._respond(self.api_details.get(api_id, 404))
        return self._respond(self.files.get(url, 404))

    @staticmethod
    def _respond(route: Route, wrap: Optional[str] = None) -> httpx.Response:
        if isinstance(route, Exception):
            raise route
        if isinstance(route, httpx.Response):
            return route
        if isinstance(route, int):
            return httpx.Response(route, text="nope")
        if isinstance(route, bytes):
            return httpx.Response(200, content=route)
        return httpx.Response(200, json={wrap: route} if wrap else route)


@pytest.fixture
def portal() -> FakePortal:
    return FakePortal()


async def sync_data_portal(
    portal: FakePortal,
    config: Optional[DataPortalConfig] = None,
    concurrency: int = 10,
    environment: str = "test",
) -> tuple[RecordingConnection, SyncReport, DataPortalProvider]:
    """Run a connected data portal provider once against the fake portal."""
    connection = RecordingConnection()
    scheduler = FetchScheduler(concurrency)
    async with httpx.AsyncClient(transport=portal.transport) as http:
        provider = DataPortalProvider.create(environment, http, scheduler, config)
        await provider.connect(connection)
        report = await provider.run()
    return connection, report, provider


async def sync_api_catalog(
    portal: FakePortal,
    config: Optional[ApiCatalogConfig] = None,
    environment: str = "test",
) -> tuple[RecordingConnection, SyncReport, ApiCatalogProvider]:
    connection = RecordingConnection()
    async with httpx.AsyncClient(transport=portal.transport) as http:
        provider = ApiCatalogProvider.create(environment, http, FetchScheduler(), config)
        await provider.connect(connection)
        report = await provider.run()
    return connection, report, provider
