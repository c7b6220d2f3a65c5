"""Catalog entity model and builders."""

from .apis import ApiEntityBuilder
from .datasets import BOM_WARNING, DatasetEntityBuilder
from .model import (
    ANNOTATION_LOCATION,
    ANNOTATION_ORIGIN_LOCATION,
    ANNOTATION_VIEW_URL,
    API_VERSION,
    ApiSpec,
    ComponentSpec,
    Entity,
    EntityKind,
    EntityLink,
    EntityMetadata,
    GroupProfile,
    GroupSpec,
    Lifecycle,
    SystemSpec,
    lifecycle_for,
    normalize_tags,
)

__all__ = [
    # Model
    "Entity",
    "EntityKind",
    "EntityMetadata",
    "EntityLink",
    "GroupSpec",
    "GroupProfile",
    "SystemSpec",
    "ComponentSpec",
    "ApiSpec",
    "Lifecycle",
    "lifecycle_for",
    "normalize_tags",
    "API_VERSION",
    "ANNOTATION_LOCATION",
    "ANNOTATION_ORIGIN_LOCATION",
    "ANNOTATION_VIEW_URL",
    # Builders
    "DatasetEntityBuilder",
    "ApiEntityBuilder",
    "BOM_WARNING",
]
