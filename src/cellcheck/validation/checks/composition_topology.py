"""Sibling communication must be mediated by a Channel; children must be published.

A cell with two or more non-Channel children needs at least one Channel child.
Every child must appear in the parent's published child names, and Channel
children also in its published channel names. Declared channel topology may
only reference existing children, and composition cycles found while indexing
are reported here.
"""

from __future__ import annotations

from collections import Counter
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


def _composition_violation(node: CellNode, code: str, message: str) -> Violation:
    return violation_at(
        node, rule_id=RuleId.COMPOSITION, code=f"composition.{code}", message=message
    )


def _mediation(node: CellNode) -> Iterator[Violation]:
    children = node.cell.children
    non_channel = [child for child in children if child.kind is not CellKind.CHANNEL]
    has_channel = any(child.kind is CellKind.CHANNEL for child in children)
    if len(non_channel) >= 2 and not has_channel:
        names = ", ".join(child.name for child in non_channel)
        yield _composition_violation(
            node,
            "unmediated-siblings",
            f"{len(non_channel)} non-Channel children ({names}) but no Channel to mediate "
            "sibling communication",
        )


def _published(node: CellNode) -> Iterator[Violation]:
    context_map = node.cell.context_map
    published_children = set(() if context_map is None else context_map.children)
    published_channels = set(() if context_map is None else context_map.channels)
    for child in node.cell.children:
        if child.name not in published_children:
            yield _composition_violation(
                node,
                "child-unpublished",
                f"Child {child.name!r} is not listed in the published child names",
            )
        if child.kind is CellKind.CHANNEL and child.name not in published_channels:
            yield _composition_violation(
                node,
                "channel-unpublished",
                f"Channel child {child.name!r} is not listed in the published channel names",
            )


def _unique_names(node: CellNode) -> Iterator[Violation]:
    counts = Counter(child.name for child in node.cell.children)
    for name in sorted(name for name, count in counts.items() if count > 1):
        yield _composition_violation(
            node,
            "duplicate-child",
            f"Child name {name!r} is used by {counts[name]} siblings",
        )


def _topology(node: CellNode) -> Iterator[Violation]:
    kinds = {child.name: child.kind for child in node.cell.children}
    for declaration in node.cell.channel_topology:
        alias = declaration.channel_alias
        if kinds.get(alias) is not CellKind.CHANNEL:
            yield _composition_violation(
                node,
                "topology-channel",
                f"Topology channel {alias!r} is not a Channel child of this cell",
            )
        for edge in declaration.edges:
            for endpoint in (edge.from_alias, edge.to_alias):
                if endpoint not in kinds:
                    yield _composition_violation(
                        node,
                        "topology-endpoint",
                        f"Topology edge on {alias!r} references unknown child {endpoint!r}",
                    )


@register_check(CheckId.COMPOSITION_TOPOLOGY, "Composition Topology Check")
def composition_topology_check(
    index: CellIndex, context: ValidationContext
) -> Iterator[Violation]:
    cycles_by_parent: dict[int, list[str]] = {}
    for cycle in index.cycles:
        cycles_by_parent.setdefault(cycle.parent_id, []).append(cycle.describe())

    for node in index.walk():
        for description in cycles_by_parent.get(node.node_id, ()):
            yield _composition_violation(
                node, "cyclic", f"Cyclic composition: {description}"
            )
        if not node.cell.is_composed:
            continue
        yield from _mediation(node)
        yield from _published(node)
        yield from _unique_names(node)
        yield from _topology(node)


__all__ = ["composition_topology_check"]
