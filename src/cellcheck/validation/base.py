"""
cellcheck - validation check interface

File: src/cellcheck/validation/base.py
Last updated: 2026-10-19

Purpose
- Defines the check interface: a pure function over an indexed cell tree that
  returns violations, wrapped into a ``ValidationResult``.

What should be included in this file
- Violation records with cell name, message, rule id, and a stable code.
- ``SignatureMismatch`` carrying stored and recomputed fingerprint prefixes.
- The per-run ``ValidationContext`` and the deterministic check registry.

Functional requirements
- Results and violations export stable-key dictionaries for reporting.
- Violations are values; nothing in a check raises on malformed cells.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import NoReturn

from cellcheck.constants import (
    DEFAULT_FINGERPRINT_PREFIX,
    FINGERPRINT_HEX_LENGTH,
    MAX_BUDGET_UNITS,
    MIN_FINGERPRINT_PREFIX,
)
from cellcheck.domain.models import Cell
from cellcheck.domain.tree import CellIndex, CellNode
from cellcheck.scanning.scanner import PatternScanner

CheckFunction = Callable[[CellIndex, "ValidationContext"], Iterable["Violation"]]


class CheckId(StrEnum):
    TYPE_TAXONOMY = "type-taxonomy"
    CONTRACT_COMPLETENESS = "contract-completeness"
    COMPOSITION_TOPOLOGY = "composition-topology"
    SELF_SIMILARITY = "self-similarity"
    CONTEXT_MAP = "context-map"
    SIGNATURE_INTEGRITY = "signature-integrity"
    BUDGET_SANITY = "budget-sanity"
    PROVENANCE_COMPLETENESS = "provenance-completeness"
    LOGIC_SCAN = "logic-scan"


class RuleId(StrEnum):
    """Architectural principle a violation traces to; used to group reports."""

    CELL_KIND = "I"
    CONTRACT = "II"
    COMPOSITION = "III"
    SELF_SIMILARITY = "IV"
    CONTEXT_MAP = "V"
    HOLOGRAPHIC = "IX"
    SIGNATURE = "X"


@dataclass(frozen=True, slots=True)
class Violation:
    """One constitutional finding against one cell."""

    cell_name: str
    message: str
    rule_id: str
    code: str
    path: str | None = None

    def sort_key(self) -> tuple[str, str, str, str]:
        return (self.path or "", self.rule_id, self.code, self.message)

    def to_dict(self) -> dict[str, object]:
        return {
            "cell_name": self.cell_name,
            "message": self.message,
            "rule_id": self.rule_id,
            "code": self.code,
            "path": self.path,
        }


@dataclass(frozen=True, slots=True)
class SignatureMismatch(Violation):
    """Integrity failure with fingerprint prefixes for diagnosis."""

    stored_prefix: str = ""
    computed_prefix: str = ""

    def to_dict(self) -> dict[str, object]:
        payload = Violation.to_dict(self)
        payload["stored_prefix"] = self.stored_prefix
        payload["computed_prefix"] = self.computed_prefix
        return payload


@dataclass(frozen=True, slots=True)
class ValidationResult:
    check_name: str
    passed: bool
    violations: tuple[Violation, ...] = ()

    @classmethod
    def from_violations(cls, check_name: str, violations: Iterable[Violation]) -> ValidationResult:
        collected = tuple(violations)
        return cls(check_name=check_name, passed=not collected, violations=collected)

    def to_dict(self) -> dict[str, object]:
        return {
            "check_name": self.check_name,
            "passed": self.passed,
            "violations": [violation.to_dict() for violation in self.violations],
        }


@dataclass(frozen=True, slots=True)
class ValidationContext:
    """Per-run inputs that are not part of the cell tree itself.

    ``name_hints`` maps a tree path (names joined by ``/``) to the source file
    name the cell was loaded from.
    """

    name_hints: Mapping[str, str] = field(default_factory=dict)
    scanner: PatternScanner | None = None
    max_units_ceiling: int = MAX_BUDGET_UNITS
    prefix_length: int = DEFAULT_FINGERPRINT_PREFIX

    def __post_init__(self) -> None:
        ceiling = self.max_units_ceiling
        if isinstance(ceiling, bool) or not isinstance(ceiling, int):
            _fail("ValidationContext.max_units_ceiling", "expected integer")
        if not 1 <= ceiling <= MAX_BUDGET_UNITS:
            _fail("ValidationContext.max_units_ceiling", f"must be within [1, {MAX_BUDGET_UNITS}]")
        prefix = self.prefix_length
        if isinstance(prefix, bool) or not isinstance(prefix, int):
            _fail("ValidationContext.prefix_length", "expected integer")
        if not MIN_FINGERPRINT_PREFIX <= prefix <= FINGERPRINT_HEX_LENGTH:
            _fail(
                "ValidationContext.prefix_length",
                f"must be within [{MIN_FINGERPRINT_PREFIX}, {FINGERPRINT_HEX_LENGTH}]",
            )
        if self.scanner is not None and not isinstance(self.scanner, PatternScanner):
            _fail("ValidationContext.scanner", "must implement PatternScanner")


@dataclass(frozen=True, slots=True)
class Check:
    """A registered check. Calling it on a cell (or index) yields a result."""

    check_id: CheckId
    check_name: str
    evaluate: CheckFunction

    def __call__(
        self, root: Cell | CellIndex, context: ValidationContext | None = None
    ) -> ValidationResult:
        index = root if isinstance(root, CellIndex) else CellIndex(root)
        effective = context if context is not None else ValidationContext()
        return ValidationResult.from_violations(self.check_name, self.evaluate(index, effective))


class CheckRegistry:
    """Deterministic check registry keyed by ``CheckId``."""

    def __init__(self) -> None:
        self._checks: dict[str, Check] = {}

    def register(self, check: Check) -> None:
        existing = self._checks.get(check.check_id.value)
        if existing is not None:
            _fail("check_id", f"already registered by '{existing.check_name}'")
        self._checks[check.check_id.value] = check

    def contains(self, check_id: str) -> bool:
        return check_id in self._checks

    def get(self, check_id: str) -> Check:
        check = self._checks.get(check_id)
        if check is None:
            known = ", ".join(self.registered_ids())
            _fail("check_id", f"unknown check {check_id!r}; registered: [{known}]")
        return check

    def registered_ids(self) -> tuple[str, ...]:
        return tuple(check_id.value for check_id in CheckId if check_id.value in self._checks)

    def checks(self) -> tuple[Check, ...]:
        return tuple(
            self._checks[check_id.value] for check_id in CheckId if check_id.value in self._checks
        )


BUILTIN_CHECKS = CheckRegistry()


def register_check(check_id: CheckId, check_name: str) -> Callable[[CheckFunction], Check]:
    """Decorator registering a check function with the built-in registry."""

    def decorator(function: CheckFunction) -> Check:
        check = Check(check_id=check_id, check_name=check_name, evaluate=function)
        BUILTIN_CHECKS.register(check)
        return check

    return decorator


def violation_at(node: CellNode, *, rule_id: RuleId, code: str, message: str) -> Violation:
    return Violation(
        cell_name=node.name, message=message, rule_id=rule_id.value, code=code, path=node.path
    )


def _fail(path: str, message: str) -> NoReturn:
    raise ValueError(f"{path}: {message}")


__all__ = [
    "BUILTIN_CHECKS",
    "Check",
    "CheckFunction",
    "CheckId",
    "CheckRegistry",
    "RuleId",
    "SignatureMismatch",
    "ValidationContext",
    "ValidationResult",
    "Violation",
    "register_check",
    "violation_at",
]
