"""
Sync - Entity providers and the mutations they publish.
"""

from .apicatalog import ApiCatalogProvider
from .datagov import DataPortalProvider
from .mutations import (
    DeferredEntity,
    DeltaMutation,
    EntityProviderConnection,
    FullMutation,
    Mutation,
    RecordingConnection,
)
from .provider import EntityProvider, ProviderState, SyncReport
from .refresh import ScheduledRefresh

__all__ = [
    # Providers
    "EntityProvider",
    "ProviderState",
    "SyncReport",
    "DataPortalProvider",
    "ApiCatalogProvider",
    # Mutations
    "DeferredEntity",
    "FullMutation",
    "DeltaMutation",
    "Mutation",
    "EntityProviderConnection",
    "RecordingConnection",
    # Scheduling
    "ScheduledRefresh",
]
