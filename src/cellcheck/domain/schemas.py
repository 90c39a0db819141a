"""Pure type-reference to JSON-schema mapping used when no schema file exists."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from cellcheck.utils.hashing import JSONValue

PRIMITIVE_SCHEMAS: Final[dict[str, dict[str, str]]] = {
    "string": {"type": "string"},
    "number": {"type": "number"},
    "boolean": {"type": "boolean"},
    "object": {"type": "object"},
    "array": {"type": "array"},
    "any": {},
    "void": {"type": "null"},
}


def primitive_schema(type_ref: str) -> dict[str, str] | None:
    schema = PRIMITIVE_SCHEMAS.get(type_ref)
    return None if schema is None else dict(schema)


def schema_for_reference(type_ref: str) -> JSONValue:
    """Built-in schema for ``type_ref``, else ``{"type": type_ref}``."""

    schema = primitive_schema(type_ref)
    if schema is not None:
        return schema
    return {"type": type_ref}


__all__ = ["PRIMITIVE_SCHEMAS", "primitive_schema", "schema_for_reference"]
