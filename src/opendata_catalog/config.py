"""
Sync Configuration - Configuration models for portal providers.

Configuration can be loaded from a YAML file; keys are accepted in
both snake_case and camelCase.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "catalog-sync.yaml"
CONFIG_ENV_VAR = "CATALOG_SYNC_CONFIG"


def _get(data: dict, snake: str, camel: str, default: Any) -> Any:
    return data.get(snake, data.get(camel, default))


@dataclass
class SchedulerConfig:
    """Fetch scheduler configuration."""
    concurrency: int = 10
    timeout_seconds: float = 60.0

    @classmethod
    def from_dict(cls, data: dict) -> "SchedulerConfig":
        return cls(
            concurrency=int(data.get("concurrency", 10)),
            timeout_seconds=float(_get(data, "timeout_seconds", "timeoutSeconds", 60.0)),
        )


@dataclass
class DataPortalConfig:
    """CKAN data portal configuration."""
    base_url: str = "https://data.gov.lv/dati/lv/api/3/action"
    portal_url: str = "https://data.gov.lv/dati/lv"
    image_url_template: str = "https://data.gov.lv/dati/uploads/group/{image}"
    geojson_schema_url: str = "https://geojson.org/schema/GeoJSON.json"
    content_probing: bool = True
    enabled: bool = True

    @property
    def list_url(self) -> str:
        return f"{self.base_url}/package_list"

    @property
    def show_url(self) -> str:
        return f"{self.base_url}/package_show"

    @property
    def info_url(self) -> str:
        return f"{self.base_url}/datastore_info"

    @classmethod
    def from_dict(cls, data: dict) -> "DataPortalConfig":
        defaults = cls()
        return cls(
            base_url=_get(data, "base_url", "baseUrl", defaults.base_url).rstrip("/"),
            portal_url=_get(data, "portal_url", "portalUrl", defaults.portal_url).rstrip("/"),
            image_url_template=_get(
                data, "image_url_template", "imageUrlTemplate", defaults.image_url_template
            ),
            geojson_schema_url=_get(
                data, "geojson_schema_url", "geojsonSchemaUrl", defaults.geojson_schema_url
            ),
            content_probing=bool(_get(data, "content_probing", "contentProbing", True)),
            enabled=bool(data.get("enabled", True)),
        )


@dataclass
class ApiCatalogConfig:
    """API developer portal configuration."""
    base_url: str = "https://api.viss.gov.lv/api/am/devportal/v2"
    portal_url: str = "https://api.viss.gov.lv/devportal"
    wsdl_base_url: str = "https://api.viss.gov.lv"
    page_limit: int = 1000
    enabled: bool = False

    @property
    def list_url(self) -> str:
        return f"{self.base_url}/apis?limit={self.page_limit}&offset=0"

    def show_url(self, api_id: str) -> str:
        return f"{self.base_url}/apis/{api_id}"

    @classmethod
    def from_dict(cls, data: dict) -> "ApiCatalogConfig":
        defaults = cls()
        return cls(
            base_url=_get(data, "base_url", "baseUrl", defaults.base_url).rstrip("/"),
            portal_url=_get(data, "portal_url", "portalUrl", defaults.portal_url).rstrip("/"),
            wsdl_base_url=_get(data, "wsdl_base_url", "wsdlBaseUrl", defaults.wsdl_base_url),
            page_limit=int(_get(data, "page_limit", "pageLimit", defaults.page_limit)),
            enabled=bool(data.get("enabled", False)),
        )


@dataclass
class RefreshConfig:
    """Periodic refresh configuration."""
    frequency_minutes: float = 60.0
    timeout_minutes: float = 20.0

    @classmethod
    def from_dict(cls, data: dict) -> "RefreshConfig":
        return cls(
            frequency_minutes=float(_get(data, "frequency_minutes", "frequencyMinutes", 60.0)),
            timeout_minutes=float(_get(data, "timeout_minutes", "timeoutMinutes", 20.0)),
        )


@dataclass
class SyncConfig:
    """
    Main sync configuration.

    Determines which portals are synchronized, how hard they are hit,
    and how often the refresh runs.
    """
    environment: str = "production"
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    data_portal: DataPortalConfig = field(default_factory=DataPortalConfig)
    api_catalog: ApiCatalogConfig = field(default_factory=ApiCatalogConfig)
    refresh: RefreshConfig = field(default_factory=RefreshConfig)

    @classmethod
    def from_dict(cls, data: dict) -> "SyncConfig":
        """Create config from dictionary."""
        if not isinstance(data, dict):
            raise ConfigError(f"Expected a mapping at the top level, got {type(data).__name__}")

        try:
            return cls(
                environment=str(data.get("environment", "production")),
                scheduler=SchedulerConfig.from_dict(data.get("scheduler") or {}),
                data_portal=DataPortalConfig.from_dict(
                    _get(data, "data_portal", "dataPortal", None) or {}
                ),
                api_catalog=ApiCatalogConfig.from_dict(
                    _get(data, "api_catalog", "apiCatalog", None) or {}
                ),
                refresh=RefreshConfig.from_dict(data.get("refresh") or {}),
            )
        except (TypeError, ValueError, AttributeError) as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "environment": self.environment,
            "scheduler": {
                "concurrency": self.scheduler.concurrency,
                "timeoutSeconds": self.scheduler.timeout_seconds,
            },
            "dataPortal": {
                "baseUrl": self.data_portal.base_url,
                "portalUrl": self.data_portal.portal_url,
                "imageUrlTemplate": self.data_portal.image_url_template,
                "geojsonSchemaUrl": self.data_portal.geojson_schema_url,
                "contentProbing": self.data_portal.content_probing,
                "enabled": self.data_portal.enabled,
            },
            "apiCatalog": {
                "baseUrl": self.api_catalog.base_url,
                "portalUrl": self.api_catalog.portal_url,
                "wsdlBaseUrl": self.api_catalog.wsdl_base_url,
                "pageLimit": self.api_catalog.page_limit,
                "enabled": self.api_catalog.enabled,
            },
            "refresh": {
                "frequencyMinutes": self.refresh.frequency_minutes,
                "timeoutMinutes": self.refresh.timeout_minutes,
            },
        }


def load_config(config_path: Optional[str] = None) -> SyncConfig:
    """
    Load sync configuration from a YAML file.

    Args:
        config_path: Path to config file. When omitted, ./catalog-sync.yaml
            and $CATALOG_SYNC_CONFIG are tried in that order.

    Returns:
        SyncConfig, with defaults when no file is found
    """
    if config_path is None:
        possible_paths = [Path(DEFAULT_CONFIG_FILE)]
        if os.environ.get(CONFIG_ENV_VAR):
            possible_paths.append(Path(os.environ[CONFIG_ENV_VAR]))
        for path in possible_paths:
            if path.exists():
                config_path = str(path)
                break

    if config_path is None:
        logger.warning("No config file found, using defaults")
        return SyncConfig()

    if not Path(config_path).exists():
        raise ConfigError(f"Config file not found: {config_path}", path=config_path)

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Malformed YAML in {config_path}: {e}", path=config_path) from e

    config = SyncConfig.from_dict(data or {})
    logger.info(f"Loaded config from {config_path}")
    return config
