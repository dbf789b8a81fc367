"""
Canonical type tables.

JSON Schema primitive names and HTML input types are both normalized into
a small shared vocabulary so tool parameters can be compared against the
fields that feed them.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Final


class CanonicalType(StrEnum):
    """Shared type vocabulary for schema and HTML types."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"
    NULL = "null"
    ANY = "any"


JSON_SCHEMA_TO_CANONICAL: Final[dict[str, CanonicalType]] = {
    "string": CanonicalType.STRING,
    "number": CanonicalType.NUMBER,
    "integer": CanonicalType.NUMBER,
    "boolean": CanonicalType.BOOLEAN,
    "array": CanonicalType.ARRAY,
    "object": CanonicalType.OBJECT,
    "null": CanonicalType.NULL,
}

HTML_INPUT_TO_CANONICAL: Final[dict[str, CanonicalType]] = {
    "text": CanonicalType.STRING,
    "email": CanonicalType.STRING,
    "url": CanonicalType.STRING,
    "tel": CanonicalType.STRING,
    "password": CanonicalType.STRING,
    "search": CanonicalType.STRING,
    "textarea": CanonicalType.STRING,
    "date": CanonicalType.STRING,
    "time": CanonicalType.STRING,
    "datetime-local": CanonicalType.STRING,
    "month": CanonicalType.STRING,
    "week": CanonicalType.STRING,
    "color": CanonicalType.STRING,
    "file": CanonicalType.STRING,
    "number": CanonicalType.NUMBER,
    "range": CanonicalType.NUMBER,
    "checkbox": CanonicalType.BOOLEAN,
    "radio": CanonicalType.STRING,
    "select": CanonicalType.STRING,
    "select-multiple": CanonicalType.ARRAY,
}


def canonical_from_schema(schema_type: Any) -> CanonicalType:
    """
    Resolve a JSON Schema ``type`` value to a canonical type.

    Args:
        schema_type: The raw ``type`` value; a string, a list of strings
            (``["string", "null"]``) or anything malformed.

    Returns:
        The canonical type, or ``ANY`` when the value is missing, unknown
        or ambiguous.
    """
    if isinstance(schema_type, list):
        members = [t for t in schema_type if isinstance(t, str) and t != "null"]
        if len(members) != 1:
            return CanonicalType.ANY
        schema_type = members[0]

    if not isinstance(schema_type, str):
        return CanonicalType.ANY
    return JSON_SCHEMA_TO_CANONICAL.get(schema_type.strip().lower(), CanonicalType.ANY)


def canonical_from_html(input_type: str | None) -> CanonicalType:
    """Resolve a raw HTML input type to a canonical type; unknown types are strings."""
    if not input_type:
        return CanonicalType.STRING
    return HTML_INPUT_TO_CANONICAL.get(input_type.strip().lower(), CanonicalType.STRING)


def is_compatible(expected: CanonicalType, actual: CanonicalType) -> bool:
    """``ANY`` on either side is compatible with everything."""
    if CanonicalType.ANY in (expected, actual):
        return True
    return expected == actual
