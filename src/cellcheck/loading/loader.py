"""
cellcheck - project loader

File: src/cellcheck/loading/loader.py
Last updated: 2026-10-19

Purpose
- Turn a root cell file plus the files it references into one owned ``Cell``
  tree ready for validation or signing.

Functional requirements
- Child ``path_reference`` values resolve against the project root: the
  nearest ancestor directory holding a project marker, else the root file's
  directory.
- A file that reappears on the current resolution path raises
  ``CyclicCompositionError``; the same file may still be shared by siblings.
- Each loaded cell publishes a ``ContextMap`` and carries a health snapshot
  (the document's own, or a fresh one derived from its budget).
- Contract type references resolve to JSON schemas through ``SchemaResolver``.
- ``LoadedTree.origins`` maps tree paths to source files so the type-taxonomy
  check can compare file names against declared kinds.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Final

import structlog

from cellcheck.budget import BudgetMeter
from cellcheck.constants import (
    CELL_FILE_EXTENSIONS,
    DEFAULT_TYPES_DIR,
    METERED_KINDS,
    PROJECT_MARKERS,
)
from cellcheck.domain.models import (
    Cell,
    CellKind,
    ChildReference,
    ContextMap,
    HealthReport,
    HealthStatus,
    contract_type_refs,
)
from cellcheck.domain.tree import PATH_SEPARATOR
from cellcheck.errors import CyclicCompositionError, LoadError
from cellcheck.loading.schemas import SchemaResolver
from cellcheck.parsing.parser import ParsedCell, parse_cell_document

_ENCODING: Final[str] = "utf-8"


@dataclass(frozen=True, slots=True)
class LoadedTree:
    """A loaded cell tree together with where each cell came from."""

    root: Cell
    origins: Mapping[str, Path]
    project_root: Path

    @property
    def name_hints(self) -> dict[str, str]:
        return {tree_path: origin.name for tree_path, origin in self.origins.items()}


def find_project_root(start: str | Path) -> Path:
    """Return the nearest directory at or above ``start`` holding a project marker."""

    candidate = Path(start).expanduser().resolve()
    base = candidate if candidate.is_dir() else candidate.parent
    for directory in (base, *base.parents):
        if any((directory / marker).is_file() for marker in PROJECT_MARKERS):
            return directory
    return base


def load_cell_tree(
    path: str | Path,
    *,
    project_root: str | Path | None = None,
    types_dir: str = DEFAULT_TYPES_DIR,
    logger: Any | None = None,
) -> LoadedTree:
    """Load ``path`` and every cell it transitively references."""

    loader = CellTreeLoader(
        project_root=find_project_root(path) if project_root is None else Path(project_root),
        types_dir=types_dir,
        logger=logger,
    )
    return loader.load(path)


class CellTreeLoader:
    __slots__ = ("_project_root", "_schemas", "_logger")

    def __init__(
        self,
        *,
        project_root: str | Path,
        types_dir: str = DEFAULT_TYPES_DIR,
        logger: Any | None = None,
    ) -> None:
        self._project_root = Path(project_root).expanduser().resolve()
        self._logger = logger if logger is not None else structlog.get_logger(__name__)
        self._schemas = SchemaResolver(self._project_root, types_dir=types_dir, logger=self._logger)

    @property
    def project_root(self) -> Path:
        return self._project_root

    def load(self, path: str | Path) -> LoadedTree:
        origins: dict[str, Path] = {}
        root_path = Path(path).expanduser().resolve()
        root = self._load_file(root_path, parent=None, lineage=(), visiting=(), origins=origins)
        return LoadedTree(root=root, origins=origins, project_root=self._project_root)

    def resolve_reference(self, reference: str) -> Path:
        """Map a ``path_reference`` to an existing file under the project root."""

        base = (self._project_root / reference).resolve()
        if base.is_file():
            return base
        for extension in CELL_FILE_EXTENSIONS:
            candidate = base.with_name(base.name + extension)
            if candidate.is_file():
                return candidate
        raise LoadError(
            f"child reference {reference!r} does not resolve to a file under {self._project_root}"
        )

    def _load_file(
        self,
        path: Path,
        *,
        parent: str | None,
        lineage: tuple[str, ...],
        visiting: tuple[Path, ...],
        origins: dict[str, Path],
    ) -> Cell:
        if path in visiting:
            cycle = [_display(item, self._project_root) for item in visiting]
            cycle = cycle[cycle.index(_display(path, self._project_root)) :]
            raise CyclicCompositionError((*cycle, _display(path, self._project_root)))

        parsed = parse_cell_document(_read_text(path), source=str(path))
        cell = parsed.cell
        tree_names = (*lineage, cell.name)
        origins[PATH_SEPARATOR.join(tree_names)] = path

        children = tuple(
            self._load_file(
                self.resolve_reference(reference.path_reference),
                parent=cell.name,
                lineage=tree_names,
                visiting=(*visiting, path),
                origins=origins,
            )
            for reference in parsed.child_references
        )
        loaded = self._assemble(parsed, children, parent=parent)
        self._logger.debug(
            "cell_loaded",
            cell=loaded.name,
            path=str(path),
            children=len(children),
        )
        return loaded

    def _assemble(
        self, parsed: ParsedCell, children: tuple[Cell, ...], *, parent: str | None
    ) -> Cell:
        cell = parsed.cell.with_children(children)
        input_schema, output_schema = None, None
        if cell.contract is not None:
            input_ref, output_ref = contract_type_refs(cell.contract)
            input_schema = self._schemas.resolve(input_ref)
            output_schema = self._schemas.resolve(output_ref)
        return replace(
            cell,
            health=cell.health if cell.health is not None else initial_health(cell),
            context_map=publish_context_map(cell, parsed.child_references, parent=parent),
            input_schema=input_schema,
            output_schema=output_schema,
        )


def publish_context_map(
    cell: Cell, child_references: tuple[ChildReference, ...], *, parent: str | None
) -> ContextMap:
    """Build the published summary of ``cell`` from its declared structure."""

    channels = [declaration.channel_alias for declaration in cell.channel_topology]
    for reference, child in zip(child_references, cell.children, strict=False):
        if child.kind is CellKind.CHANNEL and reference.local_alias not in channels:
            channels.append(reference.local_alias)
    return ContextMap(
        identity=cell.identity,
        fingerprint="" if cell.signature is None else cell.signature.fingerprint,
        parent=parent,
        children=tuple(reference.local_alias for reference in child_references),
        channels=tuple(channels),
    )


def initial_health(cell: Cell) -> HealthReport | None:
    """Health of a cell that has not run yet.

    Budget-exempt kinds are always healthy. Metered kinds report a full meter,
    or nothing when their budget is unusable.
    """

    kind = cell.kind
    if kind is None:
        return None
    if kind.value not in METERED_KINDS:
        return HealthReport(status=HealthStatus.HEALTHY.value)
    try:
        return BudgetMeter.for_cell(cell, owner=None).health()
    except ValueError:
        return None


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding=_ENCODING)
    except FileNotFoundError as exc:
        raise LoadError(f"cell file not found: {path}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise LoadError(f"unable to read cell file {path}: {exc}") from exc


def _display(path: Path, project_root: Path) -> str:
    try:
        return path.relative_to(project_root).as_posix()
    except ValueError:
        return path.as_posix()


__all__ = [
    "CellTreeLoader",
    "LoadedTree",
    "find_project_root",
    "initial_health",
    "load_cell_tree",
    "publish_context_map",
]
