"""Tests for the schema inference strategy chain."""

import asyncio
import json
from typing import Optional

import httpx

from conftest import FILES, GEOJSON_SCHEMA, GEOJSON_URL, FakePortal
from opendata_catalog.config import DataPortalConfig
from opendata_catalog.scheduler import FetchScheduler
from opendata_catalog.schema import SchemaInferenceEngine, SchemaKind, decode_with_bom
from opendata_catalog.sources.ckan import PortalClient, Resource


async def infer_all(
    portal: FakePortal,
    resources: list[Resource],
    config: Optional[DataPortalConfig] = None,
):
    async with httpx.AsyncClient(transport=portal.transport) as http:
        client = PortalClient(http, FetchScheduler(), config)
        engine = SchemaInferenceEngine(client)
        return await asyncio.gather(*(engine.infer(resource) for resource in resources))


def infer_one(portal: FakePortal, resource: Resource, config: Optional[DataPortalConfig] = None):
    return asyncio.run(infer_all(portal, [resource], config))[0]


def test_decode_with_bom():
    assert decode_with_bom(b'\xef\xbb\xbf{"a": 1}') == ('{"a": 1}', True, "utf-8-sig")
    assert decode_with_bom(b"\xff\xfe" + "[]".encode("utf-16-le")) == ("[]", True, "utf-16")
    assert decode_with_bom("āžē".encode("utf-8")) == ("āžē", False, "utf-8")


def test_datastore_types_are_mapped_to_avro(portal):
    portal.datastore["r1"] = {"id": "text", "amount": "number", "day": "date", "flag": "bool"}

    result = infer_one(portal, Resource(id="r1", url=f"{FILES}/r1.csv"))

    assert result.kind is SchemaKind.AVRO
    assert json.loads(result.definition) == {
        "type": "record",
        "name": "Row",
        "namespace": "r1",
        "fields": [
            {"name": "id", "type": "string"},
            {"name": "amount", "type": "double"},
            {"name": "day", "type": "string"},
            {"name": "flag", "type": "string"},
        ],
    }
    # a structured schema short-circuits the content probe
    assert portal.requested(f"{FILES}/r1.csv") == 0


def test_datastore_404_falls_back_to_csv_content(portal):
    portal.files[f"{FILES}/r1.csv"] = b"id;name\n1;x"

    result = infer_one(portal, Resource(id="r1", url=f"{FILES}/r1.csv"))

    assert result.kind is SchemaKind.AVRO
    assert json.loads(result.definition)["csv_delimiter"] == ";"


def test_datastore_failure_payload_falls_back(portal):
    portal.datastore["r1"] = httpx.Response(200, json={"success": False, "error": "busy"})
    portal.files[f"{FILES}/r1.csv"] = b"a,b\n1,2"

    result = infer_one(portal, Resource(id="r1", url=f"{FILES}/r1.csv"))

    assert result.kind is SchemaKind.AVRO
    assert json.loads(result.definition)["csv_delimiter"] == ","


def test_no_schema_anywhere_is_unknown(portal):
    portal.datastore["r1"] = 500

    result = infer_one(portal, Resource(id="r1", url=f"{FILES}/report.pdf"))

    assert result.kind is SchemaKind.UNKNOWN
    assert result.definition == "unknown"


def test_missing_file_is_unknown(portal):
    result = infer_one(portal, Resource(id="r1", url=f"{FILES}/gone.json"))

    assert result.kind is SchemaKind.UNKNOWN


def test_json_content_with_bom(portal):
    portal.files[f"{FILES}/r1.json"] = b'\xef\xbb\xbf[{"name": "Riga", "population": 605273}]'

    result = infer_one(portal, Resource(id="r1", url=f"{FILES}/r1.json"))

    assert result.kind is SchemaKind.JSON_SCHEMA
    assert result.has_bom is True
    assert result.charset == "utf-8-sig"
    schema = json.loads(result.definition)
    assert schema["items"]["properties"]["population"] == {"type": "integer"}


def test_invalid_json_becomes_error(portal):
    portal.files[f"{FILES}/r1.json"] = b"{not json"

    result = infer_one(portal, Resource(id="r1", url=f"{FILES}/r1.json"))

    assert result.kind is SchemaKind.ERROR
    assert result.definition.startswith("JSONDecodeError:")


def test_transport_error_becomes_error(portal):
    portal.files[f"{FILES}/r1.csv"] = httpx.ConnectError("connection refused")

    result = infer_one(portal, Resource(id="r1", url=f"{FILES}/r1.csv"))

    assert result.kind is SchemaKind.ERROR
    assert "connection refused" in result.definition


def test_extension_is_case_insensitive_and_ignores_query(portal):
    url = f"{FILES}/DATA.CSV?download=1"
    portal.files[url] = b"a;b\n1;2"

    result = infer_one(portal, Resource(id="r1", url=url))

    assert result.kind is SchemaKind.AVRO


def test_xml_is_opaque(portal):
    result = infer_one(portal, Resource(id="r1", url=f"{FILES}/feed.xml"))

    assert result.kind is SchemaKind.XML
    assert result.definition == "xml"
    assert portal.requested(f"{FILES}/feed.xml") == 0


def test_geojson_reference_schema_downloaded_once(portal):
    resources = [Resource(id=f"g{i}", url=f"{FILES}/layer{i}.geojson") for i in range(4)]

    results = asyncio.run(infer_all(portal, resources))

    assert [r.kind for r in results] == [SchemaKind.JSON_SCHEMA] * 4
    assert all(r.definition == GEOJSON_SCHEMA for r in results)
    assert portal.requested(GEOJSON_URL) == 1


def test_geojson_reference_unavailable_is_error(portal):
    portal.files[GEOJSON_URL] = 503

    result = infer_one(portal, Resource(id="g1", url=f"{FILES}/layer.geojson"))

    assert result.kind is SchemaKind.ERROR
    assert result.definition.startswith("SchemaProbeError:")


def test_content_probing_disabled_marks_solved(portal):
    config = DataPortalConfig(content_probing=False)
    portal.files[f"{FILES}/r1.csv"] = b"a;b\n1;2"

    result = infer_one(portal, Resource(id="r1", url=f"{FILES}/r1.csv"), config)

    assert result.kind is SchemaKind.SOLVED
    assert result.definition == "enable"
    assert portal.requested(f"{FILES}/r1.csv") == 0


def test_json_content_with_utf16_bom(portal):
    portal.files[f"{FILES}/r1.json"] = b"\xff\xfe" + '{"name": "Rīga"}'.encode("utf-16-le")

    result = infer_one(portal, Resource(id="r1", url=f"{FILES}/r1.json"))

    assert result.kind is SchemaKind.JSON_SCHEMA
    assert result.has_bom is True
    assert result.charset == "utf-16"
    assert json.loads(result.definition)["properties"] == {"name": {"type": "string"}}
