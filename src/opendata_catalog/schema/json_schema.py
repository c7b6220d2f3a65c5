"""
JSON Schema inference from a parsed JSON value tree.

Produces a draft-04 schema describing the structure of one sample
document. Array items are merged into a single item schema.
"""

from typing import Any

DRAFT_04 = "http://json-schema.org/draft-04/schema#"


def infer_json_schema(value: Any) -> dict:
    """
    Infer a JSON schema for a parsed JSON value.

    Args:
        value: Result of json.loads

    Returns:
        Schema dictionary with a top-level $schema key
    """
    return {"$schema": DRAFT_04, **_infer(value)}


def _infer(value: Any) -> dict:
    # bool is a subclass of int, so it must be checked first
    if isinstance(value, bool):
        return {"type": "boolean"}
    if value is None:
        return {"type": "null"}
    if isinstance(value, int):
        return {"type": "integer"}
    if isinstance(value, float):
        return {"type": "number"}
    if isinstance(value, str):
        return {"type": "string"}
    if isinstance(value, dict):
        return {
            "type": "object",
            "properties": {key: _infer(item) for key, item in value.items()},
            "required": list(value.keys()),
        }
    if isinstance(value, list):
        items: dict = {}
        for element in value:
            element_schema = _infer(element)
            items = element_schema if not items else _merge(items, element_schema)
        return {"type": "array", "items": items}
    raise TypeError(f"Unsupported JSON value type: {type(value).__name__}")


def _merge(left: dict, right: dict) -> dict:
    """Merge two item schemas into one that accepts both."""
    if left == right:
        return left

    left_type, right_type = left.get("type"), right.get("type")

    if left_type == "object" and right_type == "object":
        properties = dict(left["properties"])
        for key, schema in right["properties"].items():
            properties[key] = _merge(properties[key], schema) if key in properties else schema
        right_required = set(right["required"])
        return {
            "type": "object",
            "properties": properties,
            "required": [key for key in left["required"] if key in right_required],
        }

    if left_type == "array" and right_type == "array":
        if not left["items"] or not right["items"]:
            return {"type": "array", "items": left["items"] or right["items"]}
        return {"type": "array", "items": _merge(left["items"], right["items"])}

    if {left_type, right_type} == {"integer", "number"}:
        return {"type": "number"}

    variants = left.get("anyOf", [left]) + right.get("anyOf", [right])
    unique: list[dict] = []
    for variant in variants:
        if variant not in unique:
            unique.append(variant)
    return {"anyOf": unique}
