"""
API Entity Builder - Map developer portal APIs into catalog entities.

Ownership resolves business owner -> technical owner -> provider id.
"""

from typing import Optional

from ..config import ApiCatalogConfig
from ..sources.devportal import ApiDefinition
from .model import (
    ANNOTATION_VIEW_URL,
    ApiSpec,
    ComponentSpec,
    Entity,
    EntityKind,
    EntityLink,
    EntityMetadata,
    GroupProfile,
    GroupSpec,
    lifecycle_for,
    location_annotations,
)

PUBLISHED = "PUBLISHED"


class ApiEntityBuilder:
    """Builds the entity set of one published API."""

    def __init__(self, config: Optional[ApiCatalogConfig] = None):
        self.config = config or ApiCatalogConfig()

    def annotations(self, api: ApiDefinition) -> dict[str, str]:
        return location_annotations(self.config.show_url(api.id))

    def overview_url(self, api: ApiDefinition) -> str:
        return f"{self.config.portal_url}/apis/{api.id}/overview"

    def build_group(self, api: ApiDefinition) -> Entity:
        return Entity(
            kind=EntityKind.GROUP,
            metadata=EntityMetadata(name=api.owner, annotations=self.annotations(api)),
            spec=GroupSpec(
                type="bureaucrat",
                profile=GroupProfile(
                    email=api.owner_email,
                    picture=f"{self.config.show_url(api.id)}/thumbnail",
                ),
                children=[],
            ),
        )

    def build_component(self, api: ApiDefinition) -> Entity:
        overview = self.overview_url(api)
        return Entity(
            kind=EntityKind.COMPONENT,
            metadata=EntityMetadata(
                name=api.name,
                description=api.description,
                tags=api.tags,
                annotations={
                    "version": api.version,
                    "provider": api.provider,
                    "avgRating": api.avgRating,
                    **self.annotations(api),
                    ANNOTATION_VIEW_URL: f"url:{overview}",
                },
                links=[EntityLink(url=overview, title="Backlink to the developer portal")],
            ),
            spec=ComponentSpec(
                type=api.type,
                owner=api.owner,
                lifecycle=lifecycle_for(api.lifeCycleStatus, PUBLISHED),
                providesApis=[api.name],
            ),
        )

    def build_api(self, api: ApiDefinition) -> Entity:
        description = api.description or ""
        if api.wsdlUri:
            description += f"\n\n!!! WSDL: {self.config.wsdl_base_url}{api.wsdlUri}"
        return Entity(
            kind=EntityKind.API,
            metadata=EntityMetadata(
                name=api.name,
                description=description,
                annotations=self.annotations(api),
                links=[EntityLink(url=self.overview_url(api), title="Backlink to the developer portal")],
            ),
            spec=ApiSpec(
                type="WSDL" if api.wsdlUri else "swagger",
                lifecycle=lifecycle_for(api.lifeCycleStatus, PUBLISHED),
                owner=api.owner,
                definition=api.apiDefinition or "",
            ),
        )

    def build_entities(self, api: ApiDefinition) -> list[Entity]:
        """Group, Component and API of one published API, in that order."""
        return [self.build_group(api), self.build_component(api), self.build_api(api)]
