"""
cellcheck - signature integrity check

File: src/cellcheck/validation/checks/signature_integrity.py
Last updated: 2026-10-19

Purpose
- Re-derive every cell's fingerprint with the signature engine and compare it
  to the stored one, recursing into every child.

Functional requirements
- Mismatches are reported as ``SignatureMismatch`` with stored and recomputed
  prefixes (length from the validation context).
- A malformed stored fingerprint is reported once; the comparison for that
  cell is skipped but its children are still checked.
"""

from __future__ import annotations

from collections.abc import Iterator

from cellcheck.domain.tree import CellIndex, CellNode
from cellcheck.signature import verify_detailed
from cellcheck.utils.hashing import is_fingerprint
from cellcheck.validation.base import (
    CheckId,
    RuleId,
    SignatureMismatch,
    ValidationContext,
    Violation,
    register_check,
    violation_at,
)


def _signature_violation(node: CellNode, code: str, message: str) -> Violation:
    return violation_at(node, rule_id=RuleId.SIGNATURE, code=f"signature.{code}", message=message)


def _check_node(node: CellNode, prefix_length: int) -> Iterator[Violation]:
    cell = node.cell
    signature = cell.signature
    if signature is None:
        yield _signature_violation(node, "missing", "Cell has no signature")
        return
    if not is_fingerprint(signature.fingerprint):
        yield _signature_violation(
            node,
            "format",
            f"Invalid signature fingerprint format: {signature.fingerprint[:20]!r}",
        )
        return

    outcome = verify_detailed(cell)
    if not outcome.fingerprint_matches:
        stored = signature.fingerprint[:prefix_length]
        computed = outcome.computed[:prefix_length]
        yield SignatureMismatch(
            cell_name=node.name,
            message=f"Signature mismatch: stored {stored}... != computed {computed}...",
            rule_id=RuleId.SIGNATURE.value,
            code="signature.mismatch",
            path=node.path,
            stored_prefix=stored,
            computed_prefix=computed,
        )

    if not cell.is_composed:
        if signature.child_fingerprints is not None:
            yield _signature_violation(
                node, "leaf-children", "Leaf cell signature carries child fingerprints"
            )
    elif not outcome.child_count_matches:
        stored_count = len(signature.child_fingerprints or ())
        yield _signature_violation(
            node,
            "children-count",
            f"Signature child fingerprint count mismatch: {stored_count} in signature vs "
            f"{len(outcome.expected_children)} actual",
        )
    else:
        mismatch = outcome.first_child_mismatch
        if mismatch is not None:
            yield _signature_violation(
                node,
                "children-mismatch",
                f"Signature child fingerprint mismatch at index {mismatch}",
            )

    if signature.computed_at is None or not signature.computed_at.strip():
        yield _signature_violation(
            node, "timestamp-missing", "Signature is missing its computed_at timestamp"
        )


@register_check(CheckId.SIGNATURE_INTEGRITY, "Signature Integrity Check")
def signature_integrity_check(
    index: CellIndex, context: ValidationContext
) -> Iterator[Violation]:
    for node in index.walk():
        yield from _check_node(node, context.prefix_length)


__all__ = ["signature_integrity_check"]
