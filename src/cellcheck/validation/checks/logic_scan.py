"""Forward logic bodies to the configured pattern scanner and collect its findings.

Not part of the registered checks: it only runs when a scanner is supplied.
"""

from __future__ import annotations

from collections.abc import Iterator

from cellcheck.domain.tree import CellIndex
from cellcheck.validation.base import (
    Check,
    CheckId,
    RuleId,
    ValidationContext,
    Violation,
    violation_at,
)


def _scan(index: CellIndex, context: ValidationContext) -> Iterator[Violation]:
    scanner = context.scanner
    if scanner is None:
        return
    for node in index.walk():
        for section, body in node.cell.logic:
            for finding in scanner.scan(body):
                yield violation_at(
                    node,
                    rule_id=RuleId.COMPOSITION,
                    code=f"logic-scan.{finding.pattern_label}",
                    message=f"logic.{section}: {finding.message}",
                )


logic_scan_check = Check(check_id=CheckId.LOGIC_SCAN, check_name="Logic Scan", evaluate=_scan)

__all__ = ["logic_scan_check"]
