"""
cellcheck - configuration schema and validation

File: src/cellcheck/config/schema.py
Last updated: 2026-10-19

Purpose
- Define the built-in configuration defaults and strict validation rules for
  ``cellcheck.toml``.

Functional requirements
- Validate config payloads and report every issue with its dotted field path.
- ``budget.max_units`` may lower the 1,000,000 ceiling but never raise it.
- ``checks.enabled`` must be a subset of the built-in check ids.
- Convert a validated payload into a typed ``CellcheckSettings`` value.

Non-functional requirements
- Deterministic merge and validation order so messages are reproducible.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final, TypedDict

from cellcheck.constants import (
    DEFAULT_FINGERPRINT_PREFIX,
    DEFAULT_TYPES_DIR,
    FINGERPRINT_HEX_LENGTH,
    MAX_BUDGET_UNITS,
    MIN_FINGERPRINT_PREFIX,
)
from cellcheck.errors import ConfigLoadError
from cellcheck.validation.base import ValidationContext
from cellcheck.validation.pipeline import DEFAULT_CHECK_IDS

LOG_LEVELS: Final[tuple[str, ...]] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class BudgetConfig(TypedDict):
    max_units: int


class SignatureConfig(TypedDict):
    prefix_length: int


class ChecksConfig(TypedDict):
    enabled: list[str]


class ScanConfig(TypedDict):
    enabled: bool


class LoggingConfig(TypedDict):
    level: str
    json: bool


class ProjectConfig(TypedDict):
    types_dir: str


class CellcheckConfig(TypedDict):
    budget: BudgetConfig
    signature: SignatureConfig
    checks: ChecksConfig
    scan: ScanConfig
    logging: LoggingConfig
    project: ProjectConfig


DEFAULT_CONFIG: Final[CellcheckConfig] = {
    "budget": {"max_units": MAX_BUDGET_UNITS},
    "signature": {"prefix_length": DEFAULT_FINGERPRINT_PREFIX},
    "checks": {"enabled": list(DEFAULT_CHECK_IDS)},
    "scan": {"enabled": True},
    "logging": {"level": "INFO", "json": False},
    "project": {"types_dir": DEFAULT_TYPES_DIR},
}


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


class ConfigValidationError(ConfigLoadError):
    """Raised when a merged config payload fails validation."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        if not self.issues:
            rendered = "unknown validation failure"
        else:
            rendered = "\n".join(f"- {item.path}: {item.message}" for item in self.issues)
        super().__init__(f"invalid config:\n{rendered}")


class _IssueCollector:
    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: list[ConfigValidationIssue] = []

    def add(self, path: str, message: str) -> None:
        self._items.append(ConfigValidationIssue(path=path, message=message))

    def items(self) -> tuple[ConfigValidationIssue, ...]:
        return tuple(self._items)


@dataclass(frozen=True, slots=True)
class CellcheckSettings:
    """Typed view of a validated configuration payload."""

    max_units: int = MAX_BUDGET_UNITS
    prefix_length: int = DEFAULT_FINGERPRINT_PREFIX
    enabled_checks: tuple[str, ...] = DEFAULT_CHECK_IDS
    scan_enabled: bool = True
    log_level: str = "INFO"
    log_json: bool = False
    types_dir: str = DEFAULT_TYPES_DIR

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> CellcheckSettings:
        validated = assert_valid_config(config)
        return cls(
            max_units=validated["budget"]["max_units"],
            prefix_length=validated["signature"]["prefix_length"],
            enabled_checks=tuple(validated["checks"]["enabled"]),
            scan_enabled=validated["scan"]["enabled"],
            log_level=validated["logging"]["level"],
            log_json=validated["logging"]["json"],
            types_dir=validated["project"]["types_dir"],
        )

    def to_validation_context(
        self,
        *,
        name_hints: Mapping[str, str] | None = None,
        scanner: Any | None = None,
    ) -> ValidationContext:
        return ValidationContext(
            name_hints=dict(name_hints or {}),
            scanner=scanner if self.scan_enabled else None,
            max_units_ceiling=self.max_units,
            prefix_length=self.prefix_length,
        )


def default_config() -> CellcheckConfig:
    """Return a deep copy of the built-in defaults."""

    return copy.deepcopy(DEFAULT_CONFIG)


def merge_config(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Deterministically deep-merge ``overlay`` onto ``base``."""

    merged: dict[str, Any] = copy.deepcopy(dict(base))
    _merge_into(merged, overlay)
    return merged


def validate_config(config: Mapping[str, object] | object) -> tuple[ConfigValidationIssue, ...]:
    issues = _IssueCollector()
    if not isinstance(config, Mapping):
        issues.add("<root>", f"expected object, got {type(config).__name__}")
        return issues.items()

    _reject_unknown_keys(config, set(DEFAULT_CONFIG), "", issues)
    budget = _section(config, "budget", issues)
    if budget is not None:
        _reject_unknown_keys(budget, {"max_units"}, "budget", issues)
        _as_int(
            budget.get("max_units"),
            "budget.max_units",
            issues,
            minimum=1,
            maximum=MAX_BUDGET_UNITS,
        )

    signature = _section(config, "signature", issues)
    if signature is not None:
        _reject_unknown_keys(signature, {"prefix_length"}, "signature", issues)
        _as_int(
            signature.get("prefix_length"),
            "signature.prefix_length",
            issues,
            minimum=MIN_FINGERPRINT_PREFIX,
            maximum=FINGERPRINT_HEX_LENGTH,
        )

    checks = _section(config, "checks", issues)
    if checks is not None:
        _reject_unknown_keys(checks, {"enabled"}, "checks", issues)
        _validate_check_ids(checks.get("enabled"), "checks.enabled", issues)

    scan = _section(config, "scan", issues)
    if scan is not None:
        _reject_unknown_keys(scan, {"enabled"}, "scan", issues)
        _as_bool(scan.get("enabled"), "scan.enabled", issues)

    logging_section = _section(config, "logging", issues)
    if logging_section is not None:
        _reject_unknown_keys(logging_section, {"level", "json"}, "logging", issues)
        level = logging_section.get("level")
        if not isinstance(level, str) or level.strip().upper() not in LOG_LEVELS:
            expected = ", ".join(LOG_LEVELS)
            issues.add("logging.level", f"invalid value {level!r}; expected one of: {expected}")
        _as_bool(logging_section.get("json"), "logging.json", issues)

    project = _section(config, "project", issues)
    if project is not None:
        _reject_unknown_keys(project, {"types_dir"}, "project", issues)
        types_dir = project.get("types_dir")
        if not isinstance(types_dir, str) or not types_dir.strip():
            issues.add("project.types_dir", "must be a non-empty string")
        elif "\x00" in types_dir:
            issues.add("project.types_dir", "must not contain NUL bytes")

    return issues.items()


def assert_valid_config(config: Mapping[str, object] | object) -> dict[str, Any]:
    """Validate ``config`` and return a normalized copy, raising on any issue."""

    issues = validate_config(config)
    if issues:
        raise ConfigValidationError(issues)
    assert isinstance(config, Mapping)
    normalized = merge_config({}, config)
    normalized["logging"]["level"] = normalized["logging"]["level"].strip().upper()
    normalized["checks"]["enabled"] = [
        check_id for check_id in DEFAULT_CHECK_IDS if check_id in normalized["checks"]["enabled"]
    ]
    return normalized


def _section(
    payload: Mapping[str, object], key: str, issues: _IssueCollector
) -> Mapping[str, object] | None:
    value = payload.get(key)
    if value is None:
        issues.add(key, "missing required section")
        return None
    if not isinstance(value, Mapping):
        issues.add(key, f"expected object, got {type(value).__name__}")
        return None
    return value


def _validate_check_ids(value: object, path: str, issues: _IssueCollector) -> None:
    if not isinstance(value, list):
        issues.add(path, f"expected list, got {type(value).__name__}")
        return
    for position, item in enumerate(value):
        if item not in DEFAULT_CHECK_IDS:
            expected = ", ".join(DEFAULT_CHECK_IDS)
            issues.add(
                f"{path}[{position}]", f"unknown check {item!r}; expected one of: {expected}"
            )


def _as_bool(value: object, path: str, issues: _IssueCollector) -> None:
    if not isinstance(value, bool):
        issues.add(path, f"expected boolean, got {type(value).__name__}")


def _as_int(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    minimum: int,
    maximum: int,
) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        issues.add(path, f"expected integer, got {type(value).__name__}")
        return
    if value < minimum:
        issues.add(path, f"must be >= {minimum}")
    elif value > maximum:
        issues.add(path, f"must be <= {maximum}")


def _reject_unknown_keys(
    payload: Mapping[str, object],
    allowed: set[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(payload):
        if key not in allowed:
            issues.add(f"{path}.{key}" if path else key, "unknown field")


def _merge_into(target: dict[str, Any], overlay: Mapping[str, object]) -> None:
    for key in sorted(overlay):
        value = overlay[key]
        if isinstance(value, Mapping):
            existing = target.get(key)
            if not isinstance(existing, dict):
                existing = {}
                target[key] = existing
            _merge_into(existing, value)
        else:
            target[key] = copy.deepcopy(value)


__all__ = [
    "CellcheckConfig",
    "CellcheckSettings",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "DEFAULT_CONFIG",
    "LOG_LEVELS",
    "assert_valid_config",
    "default_config",
    "merge_config",
    "validate_config",
]
