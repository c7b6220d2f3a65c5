"""
Schema Inference Engine - Derive a typed schema description for a resource.

Strategies are tried in order and the first one that yields a schema wins:

1. Structured probe against the portal datastore
2. Content probe dispatched by file extension (.json, .csv, .xml, .geojson)
3. Fallback to an "unknown" placeholder

Every strategy may fail; a failure is converted into an "error" result
for that one resource and never reaches the dataset pipeline.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import urlsplit

from opentelemetry import trace

from .. import __version__
from ..config import DataPortalConfig
from ..errors import SchemaProbeError
from ..sources.ckan import PortalClient, Resource
from .csv_sniffer import sniff_csv
from .json_schema import infer_json_schema

logger = logging.getLogger(__name__)
tracer = trace.get_tracer("opendata_catalog.schema", __version__)


class SchemaKind(str, Enum):
    """Kinds of schema description an API entity can carry."""
    AVRO = "avro"
    JSON_SCHEMA = "json-schema"
    XML = "xml"
    UNKNOWN = "unknown"
    ERROR = "error"
    SOLVED = "solved"


@dataclass(frozen=True)
class SchemaProbeResult:
    """Schema description of one resource."""
    kind: SchemaKind
    definition: str
    has_bom: Optional[bool] = None
    charset: Optional[str] = None

    @classmethod
    def unknown(cls) -> "SchemaProbeResult":
        return cls(kind=SchemaKind.UNKNOWN, definition="unknown")

    @classmethod
    def error(cls, exc: BaseException) -> "SchemaProbeResult":
        return cls(kind=SchemaKind.ERROR, definition=f"{type(exc).__name__}: {exc}")


# Datastore column type -> avro type
TYPE_MAPPING: dict[str, str] = {
    "number": "double",
    "text": "string",
    "date": "string",
}

UTF16_LE_BOM = b"\xff\xfe"
UTF8_BOM = b"\xef\xbb\xbf"


def decode_with_bom(data: bytes) -> tuple[str, bool, str]:
    """
    Decode bytes, detecting and stripping a leading byte-order mark.

    Returns:
        Tuple of (text, has_bom, charset)
    """
    if data.startswith(UTF16_LE_BOM):
        return data[len(UTF16_LE_BOM):].decode("utf-16-le", errors="replace"), True, "utf-16"
    if data.startswith(UTF8_BOM):
        return data[len(UTF8_BOM):].decode("utf-8", errors="replace"), True, "utf-8-sig"
    return data.decode("utf-8", errors="replace"), False, "utf-8"


def _pretty(document: dict) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False)


def _extension(url: str) -> str:
    path = urlsplit(url).path.lower()
    dot = path.rfind(".")
    return path[dot:] if dot > path.rfind("/") else ""


class SchemaInferenceEngine:
    """
    Runs the strategy chain for each resource of a dataset.

    One engine is shared by a whole run so that the GeoJSON reference
    schema is downloaded at most once.
    """

    def __init__(self, client: PortalClient, config: Optional[DataPortalConfig] = None):
        self.client = client
        self.config = config or client.config
        self._geojson_schema: Optional[str] = None
        self._geojson_lock = asyncio.Lock()

    async def infer(self, resource: Resource) -> SchemaProbeResult:
        """Infer the schema of one resource. Never raises."""
        with tracer.start_as_current_span("infer_schema") as span:
            span.set_attribute("resource.id", resource.id)

            try:
                result = await self.probe_datastore(resource.id)
                if result is None:
                    result = await self.probe_content(resource.url)
            except Exception as e:
                logger.error(f"Resource id failed: {resource.id}: {e}")
                result = SchemaProbeResult.error(e)

            if result is None:
                logger.warning(
                    f"Not found schema for {resource.name} - {resource.id} - {resource.url}"
                )
                result = SchemaProbeResult.unknown()

            span.set_attribute("schema.kind", result.kind.value)
            return result

    async def probe_datastore(self, resource_id: str) -> Optional[SchemaProbeResult]:
        """Structured probe: map datastore column types to an avro record."""
        columns = await self.client.datastore_schema(resource_id)
        if columns is None:
            return None

        fields = []
        for name, column_type in columns.items():
            avro_type = TYPE_MAPPING.get(column_type)
            if avro_type is None:
                logger.warning(f"Unmapped type {column_type} from {resource_id}, using string")
                avro_type = "string"
            fields.append({"name": name, "type": avro_type})

        return SchemaProbeResult(
            kind=SchemaKind.AVRO,
            definition=_pretty({
                "type": "record",
                "name": "Row",
                "namespace": resource_id,
                "fields": fields,
            }),
        )

    async def probe_content(self, url: str) -> Optional[SchemaProbeResult]:
        """Content probe dispatched by the file extension of the resource URL."""
        extension = _extension(url)

        if extension in (".json", ".csv") and not self.config.content_probing:
            return SchemaProbeResult(kind=SchemaKind.SOLVED, definition="enable")
        if extension == ".json":
            return await self.probe_json(url)
        if extension == ".csv":
            return await self.probe_csv(url)
        if extension == ".xml":
            # opaque, XML structure is not extracted
            return SchemaProbeResult(kind=SchemaKind.XML, definition="xml")
        if extension == ".geojson":
            return SchemaProbeResult(
                kind=SchemaKind.JSON_SCHEMA,
                definition=await self.geojson_schema(),
            )
        return None

    async def probe_json(self, url: str) -> Optional[SchemaProbeResult]:
        data = await self.client.download(url)
        if data is None:
            return None

        text, has_bom, charset = decode_with_bom(data)
        return SchemaProbeResult(
            kind=SchemaKind.JSON_SCHEMA,
            definition=_pretty(infer_json_schema(json.loads(text))),
            has_bom=has_bom,
            charset=charset,
        )

    async def probe_csv(self, url: str) -> Optional[SchemaProbeResult]:
        data = await self.client.download(url)
        if data is None:
            return None

        schema = sniff_csv(data.decode("utf-8-sig", errors="replace"), source=url)
        return SchemaProbeResult(kind=SchemaKind.AVRO, definition=_pretty(schema.to_avro()))

    async def geojson_schema(self) -> str:
        """The GeoJSON reference schema, downloaded once per engine."""
        async with self._geojson_lock:
            if self._geojson_schema is None:
                url = self.config.geojson_schema_url
                data = await self.client.download(url)
                if data is None:
                    raise SchemaProbeError(f"GeoJSON reference schema unavailable at {url}")
                self._geojson_schema = data.decode("utf-8")
            return self._geojson_schema
