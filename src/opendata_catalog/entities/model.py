"""
Catalog entity model.

Entities follow the backstage.io/v1beta1 envelope:
``{apiVersion, kind, metadata, spec}``. Field names are kept in the
catalog's camelCase wire format.
"""

from enum import Enum
from typing import Any, Iterable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

API_VERSION = "backstage.io/v1beta1"

ANNOTATION_LOCATION = "backstage.io/managed-by-location"
ANNOTATION_ORIGIN_LOCATION = "backstage.io/managed-by-origin-location"
ANNOTATION_VIEW_URL = "backstage.io/view-url"


class EntityKind(str, Enum):
    GROUP = "Group"
    SYSTEM = "System"
    COMPONENT = "Component"
    API = "API"


class Lifecycle(str, Enum):
    PRODUCTION = "production"
    EXPERIMENTAL = "experimental"


def lifecycle_for(state: Optional[str], live_state: str = "active") -> Lifecycle:
    """Production iff the upstream state equals the live state."""
    return Lifecycle.PRODUCTION if state == live_state else Lifecycle.EXPERIMENTAL


def normalize_tags(tags: Iterable[str]) -> list[str]:
    """Lowercase tags and drop duplicates, keeping first-seen order."""
    return list(dict.fromkeys(tag.lower() for tag in tags))


def location_annotations(url: str) -> dict[str, str]:
    """Location and origin-location annotations pointing at a remote record."""
    return {
        ANNOTATION_LOCATION: f"url:{url}",
        ANNOTATION_ORIGIN_LOCATION: f"url:{url}",
    }


class EntityLink(BaseModel):
    url: str
    title: Optional[str] = None


class EntityMetadata(BaseModel):
    """Entity metadata. Extra keys (e.g. url, format) are carried through."""
    model_config = ConfigDict(extra="allow")

    name: str
    title: Optional[str] = None
    description: Optional[str] = None
    labels: dict[str, str] = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list)
    annotations: dict[str, str] = Field(default_factory=dict)
    links: list[EntityLink] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def _normalize_tags(cls, value: list[str]) -> list[str]:
        return normalize_tags(value)

    @field_validator("labels", "annotations", mode="before")
    @classmethod
    def _drop_empty_values(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {k: v for k, v in value.items() if v is not None}
        return value


class GroupProfile(BaseModel):
    email: Optional[str] = None
    picture: Optional[str] = None


class GroupSpec(BaseModel):
    type: str
    profile: GroupProfile = Field(default_factory=GroupProfile)
    children: list[str] = Field(default_factory=list)


class SystemSpec(BaseModel):
    owner: str


class ComponentSpec(BaseModel):
    type: str
    owner: str
    lifecycle: Lifecycle
    system: Optional[str] = None
    providesApis: list[str] = Field(default_factory=list)


class ApiSpec(BaseModel):
    type: str
    lifecycle: Lifecycle
    owner: str
    definition: str
    system: Optional[str] = None
    startsWithBom: Optional[bool] = None
    charset: Optional[str] = None


class Entity(BaseModel):
    """A catalog entity of any supported kind."""
    apiVersion: str = API_VERSION
    kind: EntityKind
    metadata: EntityMetadata
    spec: Union[GroupSpec, SystemSpec, ComponentSpec, ApiSpec]

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def ref(self) -> str:
        """Entity reference in ``kind:name`` form."""
        return f"{self.kind.value.lower()}:{self.metadata.name}"

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)
