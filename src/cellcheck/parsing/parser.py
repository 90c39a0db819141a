"""
cellcheck - source parser

File: src/cellcheck/parsing/parser.py
Last updated: 2026-10-19

Purpose
- Convert one structured cell document (YAML or JSON text) into a ``Cell``
  plus the unresolved child references it declares.

Functional requirements
- Structural only: a missing required section (identity, contract,
  provenance) or a wrong value shape raises ``ParseError``; semantic problems
  are left for validation. An absent signature parses as an unsigned cell.
- Coercion is permissive. Text fields accept any scalar and keep its string
  form. Numeric fields keep numbers as numbers and anything else as text.
- Absent optional sections stay empty. Nothing is inferred.
- Children are ``(path_reference, local_alias)`` pairs; resolving them into
  cells is the loader's job.

Non-functional requirements
- ``yaml.safe_load`` only; documents never construct arbitrary objects.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Any, Final

import structlog
import yaml

from cellcheck.domain.models import (
    BudgetSpec,
    Cell,
    CellKind,
    ChannelContract,
    ChannelTopology,
    ChildReference,
    Contract,
    HealthReport,
    Identity,
    KeeperContract,
    OpaqueContract,
    ProvenanceRecord,
    ReactorContract,
    Signature,
    TopologyEdge,
    TransformerContract,
    parse_kind,
)
from cellcheck.errors import ParseError

ROOT_KEY: Final[str] = "cell"
REQUIRED_SECTIONS: Final[tuple[str, ...]] = ("identity", "contract", "provenance")
LOGIC_SECTIONS: Final[tuple[str, ...]] = ("process", "on", "get", "set", "delete")
_INLINE_LOGIC_SECTION: Final[str] = "body"

_logger = structlog.get_logger(__name__)

Scalar = str | int | float | bool | None
Numeric = int | float | str | None


@dataclass(frozen=True, slots=True)
class ParsedCell:
    """A parsed cell whose children are still unresolved references."""

    cell: Cell
    child_references: tuple[ChildReference, ...] = ()


def parse_cell_document(text: str, *, source: str | None = None) -> ParsedCell:
    """Parse YAML (or JSON) text into a ``ParsedCell``."""

    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ParseError(f"document is not valid YAML: {exc}", path=source) from exc
    return parse_cell_mapping(document, source=source)


def parse_cell_mapping(document: object, *, source: str | None = None) -> ParsedCell:
    root = _unwrap_root(document, source)
    for section in REQUIRED_SECTIONS:
        if root.get(section) is None:
            raise ParseError(f"missing required section {section!r}", path=_at(source, section))

    identity = _parse_identity(root["identity"], _at(source, "identity"))
    contract = _parse_contract(parse_kind(identity.kind), root["contract"], _at(source, "contract"))
    cell = Cell(
        identity=identity,
        contract=contract,
        provenance=_parse_provenance(root["provenance"], _at(source, "provenance")),
        signature=_parse_signature(root.get("signature"), _at(source, "signature")),
        health=_parse_health(root.get("health"), _at(source, "health")),
        channel_topology=_parse_topology(
            root.get("channel_topology"), _at(source, "channel_topology")
        ),
        logic=_parse_logic(root.get("logic"), _at(source, "logic")),
    )
    references = _parse_children(root.get("children"), _at(source, "children"))
    _logger.debug("cell_parsed", cell=cell.name, source=source, children=len(references))
    return ParsedCell(cell=cell, child_references=references)


def cell_to_document(
    cell: Cell, child_references: Sequence[ChildReference] = ()
) -> dict[str, object]:
    """Inverse of ``parse_cell_mapping`` for one cell (children stay references)."""

    body: dict[str, object] = {}
    if cell.identity is not None:
        body["identity"] = cell.identity.to_dict()
    if cell.contract is not None:
        body["contract"] = cell.contract.to_dict()
    if cell.provenance is not None:
        body["provenance"] = cell.provenance.to_dict()
    if cell.logic:
        body["logic"] = {section: text for section, text in cell.logic}
    if cell.signature is not None:
        body["signature"] = cell.signature.to_dict()
    if cell.health is not None:
        body["health"] = cell.health.to_dict()
    if child_references:
        body["children"] = [
            {"path_reference": ref.path_reference, "local_alias": ref.local_alias}
            for ref in child_references
        ]
    if cell.channel_topology:
        body["channel_topology"] = [
            {
                "channel_alias": declaration.channel_alias,
                "edges": [
                    {"from_alias": edge.from_alias, "to_alias": edge.to_alias}
                    for edge in declaration.edges
                ],
            }
            for declaration in cell.channel_topology
        ]
    return {ROOT_KEY: body}


def dump_cell_document(cell: Cell, child_references: Sequence[ChildReference] = ()) -> str:
    return yaml.safe_dump(
        cell_to_document(cell, child_references), sort_keys=False, allow_unicode=True
    )


def _unwrap_root(document: object, source: str | None) -> Mapping[str, Any]:
    if not isinstance(document, Mapping):
        raise ParseError("document root must be a mapping", path=source)
    if ROOT_KEY in document and len(document) == 1:
        inner = document[ROOT_KEY]
        if not isinstance(inner, Mapping):
            raise ParseError(f"{ROOT_KEY!r} must be a mapping", path=_at(source, ROOT_KEY))
        return inner
    return document


def _parse_identity(raw: object, path: str) -> Identity:
    section = _expect_mapping(raw, path)
    kind_raw = section.get("kind", section.get("type"))
    return Identity(
        name=_text(section.get("name"), f"{path}.name"),
        kind=_text(kind_raw, f"{path}.kind"),
        version=_text(section.get("version"), f"{path}.version"),
    )


def _parse_budget(raw: object, path: str) -> BudgetSpec | None:
    if raw is None:
        return None
    section = _expect_mapping(raw, path)
    return BudgetSpec(
        max_units=_numeric(section.get("max_units"), f"{path}.max_units"),
        exhaustion_action=(
            None
            if section.get("exhaustion_action") is None
            else _text(section.get("exhaustion_action"), f"{path}.exhaustion_action")
        ),
    )


def _parse_contract(kind: CellKind | None, raw: object, path: str) -> Contract:
    section = _expect_mapping(raw, path)
    budget = _parse_budget(section.get("budget"), f"{path}.budget")

    def field(name: str) -> str:
        return _text(section.get(name), f"{path}.{name}")

    if kind is CellKind.TRANSFORMER:
        return TransformerContract(
            input_type=field("input_type"), output_type=field("output_type"), budget=budget
        )
    if kind is CellKind.REACTOR:
        return ReactorContract(listens_to=field("listens_to"), emits=field("emits"), budget=budget)
    if kind is CellKind.KEEPER:
        return KeeperContract(
            state_type=field("state_type"),
            operations=_text_list(section.get("operations"), f"{path}.operations"),
            budget=budget,
        )
    if kind is CellKind.CHANNEL:
        return ChannelContract(
            carries=field("carries"),
            mode=field("mode"),
            buffer_capacity=_numeric(section.get("buffer_capacity"), f"{path}.buffer_capacity"),
            budget=budget,
        )
    fields = tuple(
        (str(key), _text(value, f"{path}.{key}"))
        for key, value in sorted(section.items(), key=lambda item: str(item[0]))
        if key != "budget" and not isinstance(value, (Mapping, list))
    )
    return OpaqueContract(fields=fields, budget=budget)


def _parse_provenance(raw: object, path: str) -> ProvenanceRecord:
    section = _expect_mapping(raw, path)
    return ProvenanceRecord(
        source=_text(section.get("source"), f"{path}.source"),
        trigger=_text(section.get("trigger"), f"{path}.trigger"),
        justification=_text(section.get("justification"), f"{path}.justification"),
        parent_fingerprint=_text(section.get("parent_fingerprint"), f"{path}.parent_fingerprint"),
    )


def _parse_signature(raw: object, path: str) -> Signature | None:
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        return Signature(fingerprint=_text(raw, path))
    children_raw = raw.get("child_fingerprints")
    computed_at = raw.get("computed_at")
    return Signature(
        fingerprint=_text(raw.get("fingerprint"), f"{path}.fingerprint"),
        child_fingerprints=(
            None
            if children_raw is None
            else _text_list(children_raw, f"{path}.child_fingerprints")
        ),
        computed_at=None if computed_at is None else _text(computed_at, f"{path}.computed_at"),
    )


def _parse_health(raw: object, path: str) -> HealthReport | None:
    if raw is None:
        return None
    section = _expect_mapping(raw, path)
    message = section.get("message")
    return HealthReport(
        status=_text(section.get("status"), f"{path}.status"),
        remaining=_numeric(section.get("remaining"), f"{path}.remaining"),
        message=None if message is None else _text(message, f"{path}.message"),
    )


def _parse_children(raw: object, path: str) -> tuple[ChildReference, ...]:
    if raw is None:
        return ()
    references: list[ChildReference] = []
    for position, item in enumerate(_expect_list(raw, path)):
        entry = _expect_mapping(item, f"{path}[{position}]")
        reference = _text(entry.get("path_reference"), f"{path}[{position}].path_reference")
        alias = _text(entry.get("local_alias"), f"{path}[{position}].local_alias")
        references.append(ChildReference(path_reference=reference, local_alias=alias))
    return tuple(references)


def _parse_topology(raw: object, path: str) -> tuple[ChannelTopology, ...]:
    if raw is None:
        return ()
    declarations: list[ChannelTopology] = []
    for position, item in enumerate(_expect_list(raw, path)):
        item_path = f"{path}[{position}]"
        entry = _expect_mapping(item, item_path)
        edges: list[TopologyEdge] = []
        edges_raw = entry.get("edges")
        if edges_raw is not None:
            edge_items = _expect_list(edges_raw, f"{item_path}.edges")
            for edge_position, edge_item in enumerate(edge_items):
                edge_path = f"{item_path}.edges[{edge_position}]"
                edge = _expect_mapping(edge_item, edge_path)
                edges.append(
                    TopologyEdge(
                        from_alias=_text(edge.get("from_alias"), f"{edge_path}.from_alias"),
                        to_alias=_text(edge.get("to_alias"), f"{edge_path}.to_alias"),
                    )
                )
        declarations.append(
            ChannelTopology(
                channel_alias=_text(entry.get("channel_alias"), f"{item_path}.channel_alias"),
                edges=tuple(edges),
            )
        )
    return tuple(declarations)


def _parse_logic(raw: object, path: str) -> tuple[tuple[str, str], ...]:
    if raw is None:
        return ()
    if not isinstance(raw, Mapping):
        return ((_INLINE_LOGIC_SECTION, _text(raw, path)),)
    return tuple(
        (section, _text(raw[section], f"{path}.{section}"))
        for section in LOGIC_SECTIONS
        if raw.get(section) is not None
    )


def _expect_mapping(value: object, path: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ParseError(f"expected mapping, got {_type_name(value)}", path=path)
    return value


def _expect_list(value: object, path: str) -> list[object]:
    if not isinstance(value, list):
        raise ParseError(f"expected list, got {_type_name(value)}", path=path)
    return value


def _text(value: object, path: str) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        moment = value if value.tzinfo is not None else value.replace(tzinfo=UTC)
        return moment.astimezone(UTC).isoformat().replace("+00:00", "Z")
    if isinstance(value, (int, float, date)):
        return str(value)
    raise ParseError(f"expected scalar, got {_type_name(value)}", path=path)


def _text_list(value: object, path: str) -> tuple[str, ...]:
    return tuple(
        _text(item, f"{path}[{position}]")
        for position, item in enumerate(_expect_list(value, path))
    )


def _numeric(value: object, path: str) -> Numeric:
    if value is None or isinstance(value, (int, float)):
        return value
    return _text(value, path)


def _type_name(value: object) -> str:
    if value is None:
        return "null"
    if isinstance(value, Mapping):
        return "mapping"
    if isinstance(value, list):
        return "list"
    return type(value).__name__


def _at(source: str | None, section: str) -> str:
    return section if source is None else f"{source}:{section}"


__all__ = [
    "LOGIC_SECTIONS",
    "ParsedCell",
    "REQUIRED_SECTIONS",
    "ROOT_KEY",
    "cell_to_document",
    "dump_cell_document",
    "parse_cell_document",
    "parse_cell_mapping",
]
