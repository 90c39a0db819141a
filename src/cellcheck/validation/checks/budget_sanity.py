"""Budget ceilings must be sane, and metered cells must expose what is left.

Transformers and Reactors report a finite, non-negative ``remaining`` through
health. Any configured ``max_units`` must be a positive integer no larger
than the configured ceiling, so a huge ceiling cannot defeat the limiter.
"""

from __future__ import annotations

import math
from collections.abc import Iterator

from cellcheck.budget import coerce_max_units
from cellcheck.constants import METERED_KINDS
from cellcheck.domain.tree import CellIndex, CellNode
from cellcheck.validation.base import (
    CheckId,
    RuleId,
    ValidationContext,
    Violation,
    register_check,
    violation_at,
)


def _budget_violation(node: CellNode, code: str, message: str) -> Violation:
    return violation_at(node, rule_id=RuleId.CONTRACT, code=f"budget.{code}", message=message)


def _remaining(node: CellNode, max_units: int | None) -> Iterator[Violation]:
    health = node.cell.health
    if health is None:
        yield _budget_violation(
            node, "health-missing", "No health report; remaining budget is not observable"
        )
        return
    remaining = health.remaining
    if remaining is None:
        yield _budget_violation(
            node, "remaining-missing", "Health report omits the remaining budget"
        )
        return
    if isinstance(remaining, bool) or not isinstance(remaining, (int, float)):
        yield _budget_violation(
            node, "remaining-type", f"Remaining budget must be a number, got {remaining!r}"
        )
        return
    if not math.isfinite(remaining):
        yield _budget_violation(
            node, "remaining-infinite", f"Remaining budget must be finite, got {remaining!r}"
        )
        return
    if remaining < 0:
        yield _budget_violation(
            node, "remaining-negative", f"Remaining budget must be >= 0, got {remaining!r}"
        )
        return
    if max_units is not None and remaining > max_units:
        yield _budget_violation(
            node,
            "remaining-exceeds",
            f"Remaining budget {remaining!r} exceeds max_units {max_units}",
        )


@register_check(CheckId.BUDGET_SANITY, "Budget Sanity Check")
def budget_sanity_check(index: CellIndex, context: ValidationContext) -> Iterator[Violation]:
    for node in index.walk():
        budget = node.cell.budget
        max_units: int | None = None
        if budget is not None and budget.max_units is not None:
            try:
                max_units = coerce_max_units(budget.max_units, ceiling=context.max_units_ceiling)
            except ValueError as exc:
                yield _budget_violation(node, "max-units", str(exc))

        kind = node.cell.kind
        if kind is not None and kind.value in METERED_KINDS:
            yield from _remaining(node, max_units)


__all__ = ["budget_sanity_check"]
