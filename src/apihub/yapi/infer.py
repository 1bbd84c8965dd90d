"""Response schema inference.

Derives a field list from a single sampled JSON response. This is a shape
heuristic, not a JSON-Schema generator: arrays are described by their first
element only, and ``null`` is reported as a string.
"""

import json
from typing import Any

from apihub.model.local import APIBody, APIParam

# nesting below this depth is reported without children
MAX_DEPTH = 32


def guess_type(value: Any) -> str:
    """Map a decoded JSON value to a field type tag."""
    if value is None:
        return "string"
    # bool is a subclass of int
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, dict):
        return "object"
    if isinstance(value, list):
        return "array"
    return "string"


def guess_data_type(value: Any) -> str:
    if isinstance(value, dict):
        return "object"
    if isinstance(value, list):
        return "array"
    return "string"


def extract_schema(value: Any, depth: int = 0) -> list[APIParam]:
    """Recursively describe an object (or the first element of an array).

    Scalars produce no fields. Past ``MAX_DEPTH`` levels of nesting, fields are
    listed with their type but without children.
    """
    if depth >= MAX_DEPTH:
        return []
    if isinstance(value, list):
        return extract_schema(value[0], depth + 1) if value else []
    if not isinstance(value, dict):
        return []

    params = []
    for key, item in value.items():
        param = APIParam(name=key, type=guess_type(item), param_type="body")
        if isinstance(item, (dict, list)):
            param.children = extract_schema(item, depth + 1)
        params.append(param)
    return params


def parse_response(raw: str) -> tuple[list[APIParam] | None, APIBody | None]:
    """Infer response fields and body from a raw response sample.

    Returns ``(None, None)`` when ``raw`` is not valid JSON or is nested too
    deeply for the decoder.
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError, RecursionError):
        return None, None

    schema = extract_schema(data)
    body = APIBody(
        type="json",
        data_type=guess_data_type(data),
        fields=schema,
        json_schema=raw,
    )
    return schema, body
