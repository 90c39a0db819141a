"""Arena index over a cell tree with integer node ids and external parent lookup.

Cells never hold references to their parents. Parent, sibling, and path
queries are answered here by id, and traversal is iterative with an ancestor
set so a cell that reappears beneath itself is recorded as a cycle and not
descended into again.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from cellcheck.domain.models import Cell, CellKind

PATH_SEPARATOR = "/"


@dataclass(frozen=True, slots=True)
class CellNode:
    """One arena slot. ``node_id`` is the pre-order position."""

    node_id: int
    cell: Cell
    parent_id: int | None
    child_ids: tuple[int, ...]
    depth: int
    path: str

    @property
    def name(self) -> str:
        return self.cell.name


@dataclass(frozen=True, slots=True)
class CompositionCycle:
    """A child edge that points back at an ancestor of its parent."""

    parent_id: int
    names: tuple[str, ...]

    def describe(self) -> str:
        return " -> ".join(self.names)


class CellIndex:
    """Pre-order arena of every reachable cell in a tree."""

    __slots__ = ("_nodes", "_cycles")

    def __init__(self, root: Cell) -> None:
        self._nodes: list[CellNode] = []
        self._cycles: list[CompositionCycle] = []
        self._build(root)

    @property
    def root(self) -> CellNode:
        return self._nodes[0]

    @property
    def cycles(self) -> tuple[CompositionCycle, ...]:
        return tuple(self._cycles)

    def __len__(self) -> int:
        return len(self._nodes)

    def node(self, node_id: int) -> CellNode:
        return self._nodes[node_id]

    def walk(self) -> Iterator[CellNode]:
        """Yield nodes depth-first, parents before children, siblings in order."""
        yield from self._nodes

    def parent_of(self, node_id: int) -> CellNode | None:
        parent_id = self._nodes[node_id].parent_id
        return None if parent_id is None else self._nodes[parent_id]

    def children_of(self, node_id: int) -> tuple[CellNode, ...]:
        return tuple(self._nodes[child_id] for child_id in self._nodes[node_id].child_ids)

    def siblings_of(self, node_id: int) -> tuple[CellNode, ...]:
        parent = self.parent_of(node_id)
        if parent is None:
            return ()
        return tuple(
            self._nodes[child_id] for child_id in parent.child_ids if child_id != node_id
        )

    def channel_children_of(self, node_id: int) -> tuple[CellNode, ...]:
        return tuple(
            child for child in self.children_of(node_id) if child.cell.kind is CellKind.CHANNEL
        )

    def _build(self, root: Cell) -> None:
        # Each frame: (cell, parent_id, ancestor object ids, ancestor names).
        # Child ids are patched in after the whole subtree has been numbered.
        child_lists: list[list[int]] = []
        pending: list[tuple[Cell, int | None, frozenset[int], tuple[str, ...]]] = [
            (root, None, frozenset(), ())
        ]
        raw: list[tuple[Cell, int | None, int, str]] = []

        while pending:
            cell, parent_id, ancestors, names = pending.pop()
            node_id = len(raw)
            path_names = (*names, cell.name)
            raw.append((cell, parent_id, len(names), PATH_SEPARATOR.join(path_names)))
            child_lists.append([])
            if parent_id is not None:
                child_lists[parent_id].append(node_id)

            lineage = ancestors | {id(cell)}
            descend: list[Cell] = []
            for child in cell.children:
                if id(child) in lineage:
                    self._cycles.append(
                        CompositionCycle(parent_id=node_id, names=(*path_names, child.name))
                    )
                    continue
                descend.append(child)
            for child in reversed(descend):
                pending.append((child, node_id, lineage, path_names))

        for node_id, (cell, parent_id, depth, path) in enumerate(raw):
            self._nodes.append(
                CellNode(
                    node_id=node_id,
                    cell=cell,
                    parent_id=parent_id,
                    child_ids=tuple(child_lists[node_id]),
                    depth=depth,
                    path=path,
                )
            )


__all__ = ["CellIndex", "CellNode", "CompositionCycle", "PATH_SEPARATOR"]
