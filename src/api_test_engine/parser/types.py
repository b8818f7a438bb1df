"""Map OpenAPI ``type``/``format`` pairs onto semantic types.

The same table is used for parameters, request bodies, responses and
component schemas.
"""

from typing import Any

from .base import ResolvedType, SchemaKind

_SIMPLE_TYPES: dict[str, ResolvedType] = {
    "string": ResolvedType.STRING,
    "boolean": ResolvedType.BOOLEAN,
    "array": ResolvedType.LIST,
    "object": ResolvedType.OBJECT,
}

_NUMBER_FORMATS: dict[str, ResolvedType] = {
    "float": ResolvedType.FLOAT,
    "double": ResolvedType.DOUBLE,
}


def declared_type(schema: dict[str, Any] | None) -> str | None:
    """Return the schema's declared type name, lower-cased.

    OpenAPI 3.1 allows a list such as ``["string", "null"]``; the first
    non-null entry wins.
    """
    if not schema:
        return None
    raw = schema.get("type")
    if isinstance(raw, list):
        raw = next((t for t in raw if t != "null"), None)
    if not isinstance(raw, str):
        return None
    return raw.lower()


def resolve_type(schema: dict[str, Any] | None) -> ResolvedType:
    """Resolve a raw schema to its semantic type."""
    type_name = declared_type(schema)
    if type_name is None:
        return ResolvedType.OBJECT
    fmt = str(schema.get("format") or "").lower()

    if type_name == "integer":
        return ResolvedType.LONG if fmt == "int64" else ResolvedType.INTEGER
    if type_name == "number":
        return _NUMBER_FORMATS.get(fmt, ResolvedType.DOUBLE)
    return _SIMPLE_TYPES.get(type_name, ResolvedType.OBJECT)


def schema_kind(schema: dict[str, Any] | None) -> SchemaKind:
    """Structural kind of a raw schema; anything unrecognised is an object."""
    type_name = declared_type(schema)
    if type_name is None:
        return SchemaKind.OBJECT
    try:
        return SchemaKind(type_name)
    except ValueError:
        return SchemaKind.OBJECT
