"""The published context map must be enough to reconstruct a subtree's shape."""

from __future__ import annotations

from collections.abc import Iterator

from cellcheck.domain.models import CellKind
from cellcheck.domain.tree import CellIndex, CellNode
from cellcheck.validation.base import (
    CheckId,
    RuleId,
    ValidationContext,
    Violation,
    register_check,
    violation_at,
)


def _map_violation(node: CellNode, rule_id: RuleId, code: str, message: str) -> Violation:
    return violation_at(node, rule_id=rule_id, code=f"context-map.{code}", message=message)


def _self_description(node: CellNode) -> Iterator[Violation]:
    cell = node.cell
    context_map = cell.context_map
    if context_map is None:
        return

    if context_map.identity is None or not context_map.identity.name.strip():
        yield _map_violation(
            node, RuleId.HOLOGRAPHIC, "identity-missing", "Context map is missing the cell identity"
        )
    elif cell.identity is not None and context_map.identity != cell.identity:
        yield _map_violation(
            node,
            RuleId.HOLOGRAPHIC,
            "identity-mismatch",
            "Context map identity does not match the cell identity",
        )

    if not context_map.fingerprint.strip():
        yield _map_violation(
            node,
            RuleId.CONTEXT_MAP,
            "fingerprint-missing",
            "Context map is missing the fingerprint",
        )
    elif cell.signature is not None and context_map.fingerprint != cell.signature.fingerprint:
        yield _map_violation(
            node,
            RuleId.CONTEXT_MAP,
            "fingerprint-mismatch",
            "Context map fingerprint does not match the cell signature",
        )


def _subtree_shape(node: CellNode) -> Iterator[Violation]:
    cell = node.cell
    context_map = cell.context_map
    if context_map is None or not cell.is_composed:
        return

    listed_children = set(context_map.children)
    listed_channels = set(context_map.channels)
    for child in cell.children:
        if child.name not in listed_children:
            yield _map_violation(
                node,
                RuleId.HOLOGRAPHIC,
                "child-omitted",
                f"Context map does not list child {child.name!r}",
            )
        if child.kind is CellKind.CHANNEL and child.name not in listed_channels:
            yield _map_violation(
                node,
                RuleId.CONTEXT_MAP,
                "channel-omitted",
                f"Context map does not list channel {child.name!r}",
            )


@register_check(CheckId.CONTEXT_MAP, "Context Map Check")
def context_map_check(index: CellIndex, context: ValidationContext) -> Iterator[Violation]:
    for node in index.walk():
        if node.cell.context_map is None:
            yield _map_violation(
                node, RuleId.CONTEXT_MAP, "missing", "Cell publishes no context map"
            )
            continue
        yield from _self_description(node)
        yield from _subtree_shape(node)


__all__ = ["context_map_check"]
