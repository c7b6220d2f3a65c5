"""
Sources - Discovery clients and upstream record models.

- CKAN data portals: dataset listing, detail records, datastore schemas
- API developer portals: API listing and definition records
"""

from .ckan import (
    Dataset,
    Organization,
    PortalClient,
    Resource,
    Tag,
)
from .devportal import (
    ApiDefinition,
    ApiListItem,
    BusinessInformation,
    DevPortalClient,
)

__all__ = [
    # CKAN
    "PortalClient",
    "Dataset",
    "Organization",
    "Resource",
    "Tag",
    # Developer portal
    "DevPortalClient",
    "ApiListItem",
    "ApiDefinition",
    "BusinessInformation",
]
