"""Every cell declares exactly one of the four kinds, in exact case."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import PurePosixPath

from cellcheck.constants import CELL_FILE_EXTENSIONS, CELL_KINDS
from cellcheck.domain.tree import CellIndex, CellNode
from cellcheck.validation.base import (
    CheckId,
    RuleId,
    ValidationContext,
    Violation,
    register_check,
    violation_at,
)

_KIND_LIST = ", ".join(CELL_KINDS)
_KIND_SEGMENTS = frozenset(kind.lower() for kind in CELL_KINDS)
_EXEMPT_PREFIXES = ("app.", "index.")


def file_kind_segment(file_name: str) -> str | None:
    """``greeter.transformer.fc`` -> ``transformer``; ``None`` without a kind segment.

    Entry-point files (``app.*`` and ``index.*``) and names whose last segment
    is not a kind name carry no kind segment.
    """

    base = PurePosixPath(file_name.replace("\\", "/")).name
    if base.startswith(_EXEMPT_PREFIXES):
        return None
    for extension in CELL_FILE_EXTENSIONS:
        if base.endswith(extension):
            base = base[: -len(extension)]
            break
    parts = base.split(".")
    if len(parts) < 2 or parts[-1].lower() not in _KIND_SEGMENTS:
        return None
    return parts[-1].lower()


def _check_name_hint(node: CellNode, kind: str, file_name: str) -> Iterator[Violation]:
    segment = file_kind_segment(file_name)
    if segment is not None and segment != kind.lower():
        yield violation_at(
            node,
            rule_id=RuleId.CELL_KIND,
            code="kind.file-name-mismatch",
            message=f"File name suggests kind {segment!r} but cell declares kind {kind!r}",
        )


@register_check(CheckId.TYPE_TAXONOMY, "Type Taxonomy Check")
def type_taxonomy_check(index: CellIndex, context: ValidationContext) -> Iterator[Violation]:
    for node in index.walk():
        identity = node.cell.identity
        if identity is None:
            yield violation_at(
                node,
                rule_id=RuleId.CELL_KIND,
                code="kind.missing",
                message="Cell has no identity, so its kind cannot be classified",
            )
            continue
        if identity.cell_kind is None:
            yield violation_at(
                node,
                rule_id=RuleId.CELL_KIND,
                code="kind.invalid",
                message=(
                    f"Invalid kind {identity.kind!r}; expected one of {_KIND_LIST} (exact case)"
                ),
            )
            continue
        hint = context.name_hints.get(node.path)
        if hint:
            yield from _check_name_hint(node, identity.kind, hint)


__all__ = ["file_kind_segment", "type_taxonomy_check"]
