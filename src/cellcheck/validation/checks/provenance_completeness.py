"""Every cell at every depth carries all four provenance fields, none blank."""

from __future__ import annotations

from collections.abc import Iterator

from cellcheck.domain.tree import CellIndex
from cellcheck.validation.base import (
    CheckId,
    RuleId,
    ValidationContext,
    Violation,
    register_check,
    violation_at,
)

PROVENANCE_FIELDS = ("source", "trigger", "justification", "parent_fingerprint")


@register_check(CheckId.PROVENANCE_COMPLETENESS, "Provenance Completeness Check")
def provenance_completeness_check(
    index: CellIndex, context: ValidationContext
) -> Iterator[Violation]:
    for node in index.walk():
        provenance = node.cell.provenance
        if provenance is None:
            yield violation_at(
                node,
                rule_id=RuleId.CONTRACT,
                code="provenance.missing",
                message="Cell has no provenance record",
            )
            continue
        for field_name in PROVENANCE_FIELDS:
            value = getattr(provenance, field_name)
            if not isinstance(value, str) or not value.strip():
                yield violation_at(
                    node,
                    rule_id=RuleId.CONTRACT,
                    code="provenance.blank-field",
                    message=f"Provenance field {field_name!r} is missing or blank",
                )


__all__ = ["PROVENANCE_FIELDS", "provenance_completeness_check"]
