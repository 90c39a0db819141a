"""
cellcheck - shared constants

File: src/cellcheck/constants.py
Last updated: 2026-10-19

Purpose
- Single home for closed enumerations, numeric limits, and naming conventions
  shared by the parser, the signature engine, budgets, and validation checks.

Functional requirements
- Kind names are exact-case and never extended.
- Limits are module-level ``Final`` values so tests can reference them directly.
"""

from __future__ import annotations

import re
from typing import Final

KIND_TRANSFORMER: Final[str] = "Transformer"
KIND_REACTOR: Final[str] = "Reactor"
KIND_KEEPER: Final[str] = "Keeper"
KIND_CHANNEL: Final[str] = "Channel"

CELL_KINDS: Final[tuple[str, ...]] = (
    KIND_TRANSFORMER,
    KIND_REACTOR,
    KIND_KEEPER,
    KIND_CHANNEL,
)

# Kinds driven by the budget state machine; the others are exempt.
METERED_KINDS: Final[frozenset[str]] = frozenset({KIND_TRANSFORMER, KIND_REACTOR})

MAX_BUDGET_UNITS: Final[int] = 1_000_000
DEFAULT_FINGERPRINT_PREFIX: Final[int] = 16
MIN_FINGERPRINT_PREFIX: Final[int] = 8
FINGERPRINT_HEX_LENGTH: Final[int] = 64

KEEPER_REQUIRED_OPERATIONS: Final[frozenset[str]] = frozenset({"get", "set"})

SEMVER_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^\d+\.\d+\.\d+(-[0-9A-Za-z.-]+)?(\+[0-9A-Za-z.-]+)?$"
)
FINGERPRINT_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[0-9a-f]{64}$")

CELL_FILE_EXTENSIONS: Final[tuple[str, ...]] = (".fc", ".yaml", ".yml", ".json")
PROJECT_MARKERS: Final[tuple[str, ...]] = ("cellcheck.toml", "fractal.json")
DEFAULT_TYPES_DIR: Final[str] = "types"
SCHEMA_FILE_SUFFIX: Final[str] = ".schema.json"

UNNAMED_CELL: Final[str] = "<unnamed>"

__all__ = [
    "CELL_FILE_EXTENSIONS",
    "CELL_KINDS",
    "DEFAULT_FINGERPRINT_PREFIX",
    "DEFAULT_TYPES_DIR",
    "FINGERPRINT_HEX_LENGTH",
    "FINGERPRINT_PATTERN",
    "KEEPER_REQUIRED_OPERATIONS",
    "KIND_CHANNEL",
    "KIND_KEEPER",
    "KIND_REACTOR",
    "KIND_TRANSFORMER",
    "MAX_BUDGET_UNITS",
    "METERED_KINDS",
    "MIN_FINGERPRINT_PREFIX",
    "PROJECT_MARKERS",
    "SCHEMA_FILE_SUFFIX",
    "SEMVER_PATTERN",
    "UNNAMED_CELL",
]
