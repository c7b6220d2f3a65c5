"""
CSV Sniffer - Delimiter detection and field typing for CSV resources.

Delimiter/quote-mode combinations are tried in a fixed priority order and
the first one that yields more than one column wins. Only the header row
and one sample row are parsed, so huge files cost no more than small ones.
The order is part of the contract: the same ambiguous input always
resolves to the same delimiter.
"""

import csv
import io
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Iterator, Optional

logger = logging.getLogger(__name__)

# (delimiter, relax_quotes)
DELIMITER_ATTEMPTS: tuple[tuple[str, bool], ...] = (
    (";", False),
    (",", False),
    ("|", False),
    ("\t", False),
    # Cells like '=""; ="Nē"; =""' only parse with relaxed quoting
    (";", True),
    (",", True),
    ("|", True),
    ("\t", True),
)

UNKNOWN_DELIMITER = "unknown"
COMMENT_PREFIX = "#"

_NUMBER = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?\s*$|^\s*[+-]?Infinity\s*$")


@dataclass
class CsvField:
    name: str
    type: str = "string"

    def to_dict(self) -> dict:
        return {"name": self.name, "type": self.type}


@dataclass
class CsvSchema:
    """Outcome of sniffing one CSV document."""
    delimiter: str
    fields: list[CsvField] = field(default_factory=list)
    found: bool = False

    def to_avro(self) -> dict:
        return {
            "type": "record",
            "name": "Row",
            "csv_delimiter": self.delimiter,
            "fields": [f.to_dict() for f in self.fields],
        }


def value_type(value: Optional[str]) -> str:
    """Avro type of one sample cell: long, double or string."""
    if value is None or not _NUMBER.match(value):
        return "string"
    number = float(value.strip().replace("Infinity", "inf"))
    if math.isfinite(number) and number.is_integer():
        return "long"
    return "double"


def _record_lines(text: str) -> Iterator[str]:
    for line in io.StringIO(text):
        if not line.startswith(COMMENT_PREFIX):
            yield line


def _stray_quote(text: str, delimiter: str) -> bool:
    """
    True when a quote appears inside an unquoted field of the first two records.

    csv.reader(strict=True) only rejects characters after a closing quote,
    so quotes that do not open a field are checked here.
    """
    records = 0
    in_quotes = False
    for line in _record_lines(text):
        if not in_quotes and not line.strip("\r\n"):
            continue
        field_start = not in_quotes
        index = 0
        while index < len(line):
            char = line[index]
            if in_quotes:
                if char == '"':
                    if line[index + 1:index + 2] == '"':
                        index += 2
                        continue
                    in_quotes = False
            elif char == delimiter:
                field_start = True
            elif char == '"':
                if not field_start:
                    return True
                in_quotes = True
                field_start = False
            elif char not in "\r\n":
                field_start = False
            index += 1
        if not in_quotes:
            records += 1
            if records == 2:
                break
    return False


def parse_head(
    text: str, delimiter: str, relax_quotes: bool
) -> tuple[list[str], Optional[list[str]]]:
    """
    Parse the header row and at most one data row.

    Raises:
        csv.Error: the text does not parse under this combination
    """
    if not relax_quotes and _stray_quote(text, delimiter):
        raise csv.Error(f"Invalid opening quote with delimiter {delimiter!r}")

    reader = csv.reader(
        _record_lines(text),
        delimiter=delimiter,
        quotechar='"',
        doublequote=True,
        strict=not relax_quotes,
    )

    records: list[list[str]] = []
    for record in reader:
        if not record:
            continue
        records.append(record)
        if len(records) == 2:
            break

    if not records:
        raise csv.Error("No header row")

    header = records[0]
    row = records[1] if len(records) > 1 else None
    if row is not None and len(row) != len(header):
        raise csv.Error(
            f"Invalid record length: expected {len(header)} columns, got {len(row)}"
        )
    return header, row


def sniff_csv(text: str, source: str = "") -> CsvSchema:
    """
    Detect the delimiter and field types of a CSV document.

    Args:
        text: Decoded CSV content
        source: Resource URL, used only in log messages

    Returns:
        CsvSchema; ``found`` is False when no combination produced more than
        one column and the single-field fallback (or nothing) was used
    """
    schema = CsvSchema(delimiter=",")

    for delimiter, relax_quotes in DELIMITER_ATTEMPTS:
        try:
            header, row = parse_head(text, delimiter, relax_quotes)
        except csv.Error:
            continue

        if len(header) == 1:
            schema = CsvSchema(
                delimiter=UNKNOWN_DELIMITER,
                fields=[CsvField(name=header[0])],
            )
            continue

        return CsvSchema(
            delimiter=delimiter,
            fields=[
                CsvField(
                    name=name,
                    type="string" if row is None else value_type(row[index]),
                )
                for index, name in enumerate(header)
            ],
            found=True,
        )

    if not schema.fields:
        logger.warning(f"No fields found for {source}")
    else:
        logger.warning(f"Single field fallback for {source}: {schema.fields[0].name}")
    return schema
