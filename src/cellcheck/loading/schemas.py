"""Resolve contract type references to JSON schemas from a project's ``types/`` directory."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog

from cellcheck.constants import DEFAULT_TYPES_DIR, SCHEMA_FILE_SUFFIX
from cellcheck.domain.schemas import primitive_schema
from cellcheck.errors import LoadError
from cellcheck.utils.hashing import JSONValue


class SchemaResolver:
    """Looks up ``<types_dir>/<Name>.schema.json``, then primitives, then a fallback.

    Resolved schemas are cached per reference for the lifetime of the resolver.
    """

    __slots__ = ("_types_root", "_cache", "_logger")

    def __init__(
        self,
        project_root: str | Path,
        *,
        types_dir: str = DEFAULT_TYPES_DIR,
        logger: Any | None = None,
    ) -> None:
        self._types_root = Path(project_root) / types_dir
        self._cache: dict[str, JSONValue] = {}
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    @property
    def types_root(self) -> Path:
        return self._types_root

    def resolve(self, type_ref: str) -> JSONValue:
        if type_ref in self._cache:
            return self._cache[type_ref]
        schema = self._resolve_uncached(type_ref)
        self._cache[type_ref] = schema
        return schema

    def _resolve_uncached(self, type_ref: str) -> JSONValue:
        if type_ref and "/" not in type_ref and "\\" not in type_ref:
            candidate = self._types_root / f"{type_ref}{SCHEMA_FILE_SUFFIX}"
            if candidate.is_file():
                return _read_schema(candidate)

        builtin = primitive_schema(type_ref)
        if builtin is not None:
            return dict(builtin)

        self._logger.debug(
            "schema_reference_unresolved", type_ref=type_ref, types_root=str(self._types_root)
        )
        return {"type": type_ref}


def _read_schema(path: Path) -> JSONValue:
    try:
        payload: JSONValue = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise LoadError(f"unable to read schema file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise LoadError(f"invalid JSON in schema file {path}: {exc}") from exc
    return payload


__all__ = ["SchemaResolver"]
