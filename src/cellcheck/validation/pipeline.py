"""
cellcheck - validation pipeline

File: src/cellcheck/validation/pipeline.py
Last updated: 2026-10-19

Purpose
- Run every selected check over one cell tree and aggregate the results into
  a deterministic ``PipelineReport``.

Normative behavior
- Checks are independent; all selected checks always run and all violations
  are reported. There is no short-circuiting across checks.
- A tree is accepted only if every check passes.
- When the validation context carries a pattern scanner, logic bodies are
  scanned and reported as an additional ``logic-scan`` result.
- The tree is indexed once and shared by all checks; indexing terminates on
  cyclic input.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Final

import structlog

from cellcheck.domain.models import Cell
from cellcheck.domain.tree import CellIndex
from cellcheck.validation import checks as _builtin_checks
from cellcheck.validation.base import (
    BUILTIN_CHECKS,
    Check,
    CheckId,
    CheckRegistry,
    ValidationContext,
    ValidationResult,
    Violation,
)

DEFAULT_CHECK_IDS: Final[tuple[str, ...]] = (
    CheckId.TYPE_TAXONOMY.value,
    CheckId.CONTRACT_COMPLETENESS.value,
    CheckId.COMPOSITION_TOPOLOGY.value,
    CheckId.SELF_SIMILARITY.value,
    CheckId.CONTEXT_MAP.value,
    CheckId.SIGNATURE_INTEGRITY.value,
    CheckId.BUDGET_SANITY.value,
    CheckId.PROVENANCE_COMPLETENESS.value,
)


@dataclass(frozen=True, slots=True)
class PipelineReport:
    """Aggregate outcome of one pipeline run."""

    root_name: str
    results: tuple[ValidationResult, ...]
    cell_count: int

    @property
    def accepted(self) -> bool:
        return all(result.passed for result in self.results)

    @property
    def failed_checks(self) -> tuple[str, ...]:
        return tuple(result.check_name for result in self.results if not result.passed)

    @property
    def violations(self) -> tuple[Violation, ...]:
        return tuple(violation for result in self.results for violation in result.violations)

    def to_dict(self) -> dict[str, object]:
        return {
            "root": self.root_name,
            "accepted": self.accepted,
            "cell_count": self.cell_count,
            "violation_count": len(self.violations),
            "results": [result.to_dict() for result in self.results],
        }


class ValidationPipeline:
    """Runs a fixed, ordered selection of registered checks."""

    def __init__(
        self,
        *,
        registry: CheckRegistry | None = None,
        check_ids: Iterable[str] | None = None,
        logger: Any | None = None,
    ) -> None:
        self._registry = registry if registry is not None else BUILTIN_CHECKS
        selected = DEFAULT_CHECK_IDS if check_ids is None else tuple(check_ids)
        ordered = [check_id for check_id in DEFAULT_CHECK_IDS if check_id in selected]
        ordered.extend(check_id for check_id in selected if check_id not in DEFAULT_CHECK_IDS)
        self._checks: tuple[Check, ...] = tuple(
            self._registry.get(check_id) for check_id in ordered
        )
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    @property
    def check_ids(self) -> tuple[str, ...]:
        return tuple(check.check_id.value for check in self._checks)

    def run(self, root: Cell, context: ValidationContext | None = None) -> PipelineReport:
        effective = context if context is not None else ValidationContext()
        index = CellIndex(root)

        stages: list[Check] = list(self._checks)
        if effective.scanner is not None:
            stages.append(_builtin_checks.logic_scan_check)

        results: list[ValidationResult] = []
        for check in stages:
            result = check(index, effective)
            self._logger.debug(
                "validation_check_completed",
                check=check.check_id.value,
                passed=result.passed,
                violations=len(result.violations),
            )
            results.append(result)

        report = PipelineReport(root_name=root.name, results=tuple(results), cell_count=len(index))
        self._logger.info(
            "validation_pipeline_completed",
            root=report.root_name,
            accepted=report.accepted,
            cells=report.cell_count,
            failed_checks=list(report.failed_checks),
            cycles=len(index.cycles),
        )
        return report


def run_pipeline(
    root: Cell,
    context: ValidationContext | None = None,
    *,
    check_ids: Iterable[str] | None = None,
) -> PipelineReport:
    """Validate ``root`` with the built-in checks."""

    return ValidationPipeline(check_ids=check_ids).run(root, context)


__all__ = [
    "DEFAULT_CHECK_IDS",
    "PipelineReport",
    "ValidationPipeline",
    "run_pipeline",
]
