"""Composition must not degrade the contract: a composed cell looks like a leaf from outside."""

from __future__ import annotations

from collections.abc import Iterator

from cellcheck.domain.models import contract_type_refs
from cellcheck.domain.tree import CellIndex, CellNode
from cellcheck.validation.base import (
    CheckId,
    RuleId,
    ValidationContext,
    Violation,
    register_check,
    violation_at,
)


def _similarity_violation(node: CellNode, code: str, message: str) -> Violation:
    return violation_at(
        node, rule_id=RuleId.SELF_SIMILARITY, code=f"self-similarity.{code}", message=message
    )


def _own_interface(node: CellNode) -> Iterator[Violation]:
    cell = node.cell
    if cell.identity is None or not cell.identity.name.strip():
        yield _similarity_violation(node, "identity", "Composed cell lacks its own identity")

    input_ref, output_ref = ("", "") if cell.contract is None else contract_type_refs(cell.contract)
    if not input_ref.strip():
        yield _similarity_violation(
            node, "input", "Composed cell lacks its own input declaration"
        )
    if not output_ref.strip():
        yield _similarity_violation(
            node, "output", "Composed cell lacks its own output declaration"
        )

    if cell.signature is None or not cell.signature.child_fingerprints:
        yield _similarity_violation(
            node,
            "signature-children",
            "Composed cell's signature does not include child fingerprints",
        )


def _children_complete(index: CellIndex, node: CellNode) -> Iterator[Violation]:
    parent_name = node.name
    for child in index.children_of(node.node_id):
        identity = child.cell.identity
        if identity is None or not identity.name.strip():
            yield _similarity_violation(
                node, "child-identity", f"Child cell within {parent_name!r} lacks identity"
            )
        provenance = child.cell.provenance
        if provenance is None or not provenance.justification.strip():
            yield _similarity_violation(
                child,
                "child-provenance",
                f"Child cell {child.name!r} within {parent_name!r} lacks a provenance "
                "justification",
            )


@register_check(CheckId.SELF_SIMILARITY, "Self-Similarity Check")
def self_similarity_check(index: CellIndex, context: ValidationContext) -> Iterator[Violation]:
    for node in index.walk():
        if not node.cell.is_composed:
            continue
        yield from _own_interface(node)
        yield from _children_complete(index, node)


__all__ = ["self_similarity_check"]
