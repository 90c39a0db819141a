"""
cellcheck - hashing utilities

File: src/cellcheck/utils/hashing.py
Last updated: 2026-10-19

Purpose
- Provide deterministic SHA-256 helpers and canonical JSON serialization used
  by the signature engine.

Functional requirements
- Canonical JSON sorts keys and uses compact separators so logically equal
  schemas always serialize to identical text.
- Fingerprint format checks are case-sensitive: only lowercase hex is valid.

Non-functional requirements
- Standard library only; behavior is cross-platform deterministic.
"""

from __future__ import annotations

import hashlib
import json

from cellcheck.constants import FINGERPRINT_PATTERN

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]

__all__ = [
    "JSONScalar",
    "JSONValue",
    "canonical_json",
    "is_fingerprint",
    "sha256_bytes",
    "sha256_text",
]


def sha256_bytes(data: bytes) -> str:
    """Return SHA-256 hex digest for raw bytes."""

    return hashlib.sha256(data).hexdigest()


def sha256_text(text: str, *, encoding: str = "utf-8") -> str:
    """Return SHA-256 hex digest for text encoded with ``encoding``."""

    return sha256_bytes(text.encode(encoding))


def canonical_json(value: object) -> str:
    """Serialize ``value`` with sorted keys and no insignificant whitespace."""

    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def is_fingerprint(value: object) -> bool:
    """True when ``value`` is exactly 64 lowercase hex characters."""

    return isinstance(value, str) and FINGERPRINT_PATTERN.fullmatch(value) is not None
