"""
cellcheck config package public API.

File: src/cellcheck/config/__init__.py
Last updated: 2026-10-19

Purpose
- Export config loading/validation entrypoints and the typed settings value.

Functional requirements
- Support loading from ``cellcheck.toml`` + ``CELLCHECK_`` env overrides.
- Fail fast with clear structured validation/load errors.
"""

from cellcheck.config.loader import (
    DEFAULT_CONFIG_FILE,
    ENV_PREFIX,
    dump_effective_config,
    load_config,
    load_settings,
)
from cellcheck.config.schema import (
    DEFAULT_CONFIG,
    CellcheckSettings,
    ConfigValidationError,
    ConfigValidationIssue,
    assert_valid_config,
    default_config,
    merge_config,
    validate_config,
)

__all__ = [
    "CellcheckSettings",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "DEFAULT_CONFIG",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "assert_valid_config",
    "default_config",
    "dump_effective_config",
    "load_config",
    "load_settings",
    "merge_config",
    "validate_config",
]
