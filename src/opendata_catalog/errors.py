"""
Error types for catalog synchronization.

Only NotConnectedError and DiscoveryError are allowed to abort a run;
every other error is degraded at the smallest item it belongs to.
"""

from typing import Optional


class CatalogSyncError(Exception):
    """Base class for all catalog sync errors."""
    pass


class ConfigError(CatalogSyncError):
    """Raised when the configuration file cannot be used."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class ProviderError(CatalogSyncError):
    """Raised when a provider is used outside its lifecycle."""
    pass


class NotConnectedError(ProviderError):
    """Raised when run() is called before the provider is connected to a sink."""

    def __init__(self, provider_name: str):
        super().__init__(f"Provider {provider_name} is not connected to a catalog")
        self.provider_name = provider_name


class DiscoveryError(CatalogSyncError):
    """Raised when the remote catalog listing is unreachable or malformed."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class FetchError(CatalogSyncError):
    """Raised when a single remote record or file cannot be fetched."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class SchemaProbeError(CatalogSyncError):
    """Raised when a schema probe fails for one resource."""

    def __init__(self, message: str, resource_id: Optional[str] = None):
        super().__init__(message)
        self.resource_id = resource_id
