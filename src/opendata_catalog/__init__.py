"""
Open Data Catalog Sync - Mirror open-data portals into a software catalog.

Datasets of a CKAN data portal and APIs of a developer portal are
discovered, enriched with inferred schemas, and published to the host
catalog as Group, System, Component and API entities.
"""

__version__ = "0.3.0"

from .config import SyncConfig, load_config
from .errors import (
    CatalogSyncError,
    ConfigError,
    DiscoveryError,
    FetchError,
    NotConnectedError,
    ProviderError,
    SchemaProbeError,
)
from .scheduler import FetchScheduler

# Sources
from .sources import DevPortalClient, PortalClient

# Schema inference
from .schema import SchemaInferenceEngine, SchemaKind, SchemaProbeResult

# Entities
from .entities import ApiEntityBuilder, DatasetEntityBuilder, Entity, EntityKind

# Sync
from .sync import (
    ApiCatalogProvider,
    DataPortalProvider,
    DeltaMutation,
    EntityProvider,
    FullMutation,
    RecordingConnection,
    ScheduledRefresh,
    SyncReport,
)

__all__ = [
    "__version__",
    # Config
    "SyncConfig",
    "load_config",
    # Errors
    "CatalogSyncError",
    "ConfigError",
    "ProviderError",
    "NotConnectedError",
    "DiscoveryError",
    "FetchError",
    "SchemaProbeError",
    # Scheduling
    "FetchScheduler",
    # Sources
    "PortalClient",
    "DevPortalClient",
    # Schema inference
    "SchemaInferenceEngine",
    "SchemaKind",
    "SchemaProbeResult",
    # Entities
    "Entity",
    "EntityKind",
    "DatasetEntityBuilder",
    "ApiEntityBuilder",
    # Sync
    "EntityProvider",
    "DataPortalProvider",
    "ApiCatalogProvider",
    "FullMutation",
    "DeltaMutation",
    "RecordingConnection",
    "ScheduledRefresh",
    "SyncReport",
]
