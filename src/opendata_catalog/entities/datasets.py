"""
Dataset Entity Builder - Map CKAN datasets into catalog entities.

Each accepted dataset becomes one Group (its organization), one System,
one Component and one API per resource. All functions here are pure:
schema probes are done beforehand and passed in.
"""

from typing import Optional, Sequence

from ..config import DataPortalConfig
from ..schema.inference import SchemaProbeResult
from ..sources.ckan import Dataset, Resource
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
    SystemSpec,
    lifecycle_for,
    location_annotations,
)

BOM_WARNING = "\n\n> :warning: **Datu fails satur BOM baitus!**"


class DatasetEntityBuilder:
    """Builds the entity set of one dataset."""

    def __init__(self, config: Optional[DataPortalConfig] = None):
        self.config = config or DataPortalConfig()

    def annotations(self, dataset: Dataset) -> dict[str, str]:
        return location_annotations(f"{self.config.show_url}?id={dataset.name}")

    def view_url(self, dataset: Dataset) -> str:
        return f"{self.config.portal_url}/dataset/{dataset.name}"

    def build_group(self, dataset: Dataset) -> Entity:
        org = dataset.organization
        picture = (
            self.config.image_url_template.format(image=org.image_url)
            if org.image_url
            else None
        )
        return Entity(
            kind=EntityKind.GROUP,
            metadata=EntityMetadata(
                name=org.name,
                title=org.title,
                description=org.description,
                annotations=self.annotations(dataset),
            ),
            spec=GroupSpec(
                type="organization" if org.is_organization else "non-organization",
                profile=GroupProfile(email=dataset.maintainer_email, picture=picture),
                children=[],
            ),
        )

    def build_system(self, dataset: Dataset) -> Entity:
        return Entity(
            kind=EntityKind.SYSTEM,
            metadata=EntityMetadata(
                name=dataset.name,
                title=dataset.title,
                description=dataset.notes,
                annotations=self.annotations(dataset),
            ),
            spec=SystemSpec(owner=dataset.organization.name),
        )

    def build_component(self, dataset: Dataset, provided_apis: Sequence[str]) -> Entity:
        """
        Build the dataset component.

        Args:
            dataset: Source dataset
            provided_apis: Names of the API entities built for this dataset
        """
        view_url = self.view_url(dataset)
        return Entity(
            kind=EntityKind.COMPONENT,
            metadata=EntityMetadata(
                name=dataset.name,
                title=dataset.title,
                description=dataset.notes,
                labels={
                    "license_title": dataset.license_title,
                    "license_id": dataset.license_id,
                    "license_url": dataset.license_url,
                    "maintainer": dataset.maintainer,
                    "frequency": dataset.frequency,
                },
                tags=[tag.name for tag in dataset.tags],
                annotations={
                    **self.annotations(dataset),
                    ANNOTATION_VIEW_URL: f"url:{view_url}",
                },
                links=[EntityLink(url=view_url, title="Link to the data portal")],
            ),
            spec=ComponentSpec(
                type=dataset.type,
                owner=dataset.organization.name,
                lifecycle=lifecycle_for(dataset.state),
                system=dataset.name,
                providesApis=list(provided_apis),
            ),
        )

    def build_api(self, dataset: Dataset, resource: Resource, probe: SchemaProbeResult) -> Entity:
        links = [EntityLink(url=resource.url, title="Link to the data file")] if resource.url else []
        return Entity(
            kind=EntityKind.API,
            metadata=EntityMetadata(
                name=resource.id,
                title=resource.name or resource.url,
                description=(resource.description or "") + (BOM_WARNING if probe.has_bom else ""),
                annotations=self.annotations(dataset),
                links=links,
                url=resource.url,
                format=resource.format,
            ),
            spec=ApiSpec(
                type=probe.kind.value,
                lifecycle=lifecycle_for(resource.state),
                owner=dataset.organization.name,
                definition=probe.definition,
                system=dataset.name,
                startsWithBom=probe.has_bom,
                charset=probe.charset,
            ),
        )

    def build_apis(self, dataset: Dataset, probes: Sequence[SchemaProbeResult]) -> list[Entity]:
        """One API per resource; probes are aligned with dataset.resources."""
        if len(probes) != len(dataset.resources):
            raise ValueError(
                f"Dataset {dataset.name} has {len(dataset.resources)} resources "
                f"but {len(probes)} schema results"
            )
        return [
            self.build_api(dataset, resource, probe)
            for resource, probe in zip(dataset.resources, probes)
        ]

    def build_entities(self, dataset: Dataset, probes: Sequence[SchemaProbeResult]) -> list[Entity]:
        """Group, System, Component and APIs of one dataset, in that order."""
        apis = self.build_apis(dataset, probes)
        return [
            self.build_group(dataset),
            self.build_system(dataset),
            self.build_component(dataset, [api.name for api in apis]),
            *apis,
        ]
