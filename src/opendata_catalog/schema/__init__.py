"""Schema inference for portal resources."""

from .csv_sniffer import DELIMITER_ATTEMPTS, CsvField, CsvSchema, sniff_csv
from .inference import (
    SchemaInferenceEngine,
    SchemaKind,
    SchemaProbeResult,
    decode_with_bom,
)
from .json_schema import infer_json_schema

__all__ = [
    "SchemaInferenceEngine",
    "SchemaKind",
    "SchemaProbeResult",
    "decode_with_bom",
    "sniff_csv",
    "CsvSchema",
    "CsvField",
    "DELIMITER_ATTEMPTS",
    "infer_json_schema",
]
