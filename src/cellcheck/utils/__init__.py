"""Utility exports for hashing and canonical serialization."""

from cellcheck.utils.hashing import (
    JSONScalar,
    JSONValue,
    canonical_json,
    is_fingerprint,
    sha256_bytes,
    sha256_text,
)

__all__ = [
    "JSONScalar",
    "JSONValue",
    "canonical_json",
    "is_fingerprint",
    "sha256_bytes",
    "sha256_text",
]
