"""
cellcheck - signature engine

File: src/cellcheck/signature.py
Last updated: 2026-10-19

Purpose
- Compute and verify the content-addressed fingerprint of a cell, folding in
  the stored fingerprints of its children.

Functional requirements
- ``own_content`` is the ordered concatenation of name, lowercase kind,
  version, canonical input schema, canonical output schema, and the provenance
  source, trigger, and justification.
- Composed cells append their children's fingerprints sorted lexicographically,
  so child order never affects the result while child content always does.
- ``fingerprint`` and ``verify`` are pure. ``sign`` and ``sign_tree`` return new
  cells and never touch the input.

Non-functional requirements
- No I/O. Schemas come from the cell when the loader resolved them, otherwise
  from the built-in type-reference mapping.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from cellcheck.domain.models import Cell, Signature, contract_type_refs
from cellcheck.domain.schemas import schema_for_reference
from cellcheck.domain.tree import CellIndex
from cellcheck.errors import CyclicCompositionError
from cellcheck.utils.hashing import canonical_json, sha256_text

if TYPE_CHECKING:
    from cellcheck.utils.hashing import JSONValue

_logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class SignatureVerification:
    """Outcome of recomputing a cell's signature against the stored one."""

    stored: str | None
    computed: str
    stored_children: tuple[str, ...] | None
    expected_children: tuple[str, ...]

    @property
    def fingerprint_matches(self) -> bool:
        return self.stored == self.computed

    @property
    def child_count_matches(self) -> bool:
        return len(self.stored_children or ()) == len(self.expected_children)

    @property
    def first_child_mismatch(self) -> int | None:
        """Index of the first differing child fingerprint, when counts agree."""
        if not self.child_count_matches:
            return None
        for index, (stored, expected) in enumerate(
            zip(self.stored_children or (), self.expected_children, strict=True)
        ):
            if stored != expected:
                return index
        return None

    @property
    def ok(self) -> bool:
        return (
            self.fingerprint_matches
            and self.child_count_matches
            and self.first_child_mismatch is None
        )


def declared_schemas(cell: Cell) -> tuple[JSONValue, JSONValue]:
    """Input and output schemas folded into the fingerprint."""

    if cell.contract is None:
        input_ref, output_ref = "", ""
    else:
        input_ref, output_ref = contract_type_refs(cell.contract)
    input_schema = (
        cell.input_schema if cell.input_schema is not None else schema_for_reference(input_ref)
    )
    output_schema = (
        cell.output_schema if cell.output_schema is not None else schema_for_reference(output_ref)
    )
    return input_schema, output_schema


def own_content(cell: Cell) -> str:
    identity = cell.identity
    provenance = cell.provenance
    input_schema, output_schema = declared_schemas(cell)
    parts = (
        "" if identity is None else identity.name,
        "" if identity is None else identity.kind.lower(),
        "" if identity is None else identity.version,
        canonical_json(input_schema),
        canonical_json(output_schema),
        "" if provenance is None else provenance.source,
        "" if provenance is None else provenance.trigger,
        "" if provenance is None else provenance.justification,
    )
    return "".join(parts)


def child_fingerprints(cell: Cell) -> tuple[str, ...]:
    """Sorted stored fingerprints of the direct children.

    A child without a signature contributes an empty string, which can never
    match a real fingerprint.
    """

    return tuple(
        sorted(
            "" if child.signature is None else child.signature.fingerprint
            for child in cell.children
        )
    )


def fingerprint(cell: Cell) -> str:
    content = own_content(cell)
    if cell.is_composed:
        content += "".join(child_fingerprints(cell))
    return sha256_text(content)


def verify_detailed(cell: Cell) -> SignatureVerification:
    signature = cell.signature
    return SignatureVerification(
        stored=None if signature is None else signature.fingerprint,
        computed=fingerprint(cell),
        stored_children=None if signature is None else signature.child_fingerprints,
        expected_children=child_fingerprints(cell),
    )


def verify(cell: Cell) -> bool:
    return verify_detailed(cell).ok


def utc_timestamp(now: datetime | None = None) -> str:
    moment = datetime.now(tz=UTC) if now is None else now.astimezone(UTC)
    return moment.isoformat(timespec="seconds").replace("+00:00", "Z")


def sign(cell: Cell, *, computed_at: str | None = None) -> Cell:
    """Return a copy of ``cell`` carrying a freshly computed signature."""

    signature = Signature(
        fingerprint=fingerprint(cell),
        child_fingerprints=child_fingerprints(cell) if cell.is_composed else None,
        computed_at=computed_at if computed_at is not None else utc_timestamp(),
    )
    _logger.debug("cell_signed", cell=cell.name, fingerprint=signature.fingerprint)
    signed = cell.with_signature(signature)
    if cell.context_map is not None:
        published = replace(cell.context_map, fingerprint=signature.fingerprint)
        signed = replace(signed, context_map=published)
    return signed


def sign_tree(cell: Cell, *, computed_at: str | None = None) -> Cell:
    """Sign every cell bottom-up so parents fold in their children's new fingerprints."""

    index = CellIndex(cell)
    if index.cycles:
        raise CyclicCompositionError(index.cycles[0].names)

    timestamp = computed_at if computed_at is not None else utc_timestamp()
    signed: dict[int, Cell] = {}
    for node in reversed(list(index.walk())):
        children = tuple(signed[child_id] for child_id in node.child_ids)
        signed[node.node_id] = sign(node.cell.with_children(children), computed_at=timestamp)
    return signed[index.root.node_id]


__all__ = [
    "SignatureVerification",
    "child_fingerprints",
    "declared_schemas",
    "fingerprint",
    "own_content",
    "sign",
    "sign_tree",
    "utc_timestamp",
    "verify",
    "verify_detailed",
]
