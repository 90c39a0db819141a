"""
cellcheck - unit tests for the cell document parser

File: tests/unit/parsing/test_parser.py
Last updated: 2026-10-19

Purpose
- Verify structural parsing, permissive coercion, and ParseError paths.

What this test file should cover
- Each cell kind maps to its contract shape; unknown kinds keep an opaque one.
- Missing required sections fail with a ``source:section`` path.
- Re-parsing a dumped signed cell reproduces the same fingerprint.
"""

from __future__ import annotations

import textwrap

import pytest

from cellcheck.domain.models import (
    ChannelContract,
    ChildReference,
    KeeperContract,
    OpaqueContract,
    TransformerContract,
)
from cellcheck.errors import ParseError
from cellcheck.parsing.parser import (
    cell_to_document,
    dump_cell_document,
    parse_cell_document,
    parse_cell_mapping,
)
from cellcheck.signature import fingerprint, sign, verify
from tests.builders import FIXED_TIMESTAMP, transformer

GREETER = textwrap.dedent(
    """
    cell:
      identity:
        name: greeter
        kind: Transformer
        version: 1.2.0
      contract:
        input_type: string
        output_type: Greeting
        budget:
          max_units: 50
          exhaustion_action: halt
      provenance:
        source: designer
        trigger: feature request
        justification: greet users
        parent_fingerprint: genesis
      logic:
        process: "return 'hi ' + input;"
      signature:
        fingerprint: abc
        computed_at: 2026-01-01T00:00:00Z
      health:
        status: healthy
        remaining: 50
      children:
        - path_reference: cells/formatter.transformer
          local_alias: formatter
        - path_reference: cells/bus.channel
          local_alias: bus
      channel_topology:
        - channel_alias: bus
          edges:
            - from_alias: formatter
              to_alias: greeter
    """
)


def test_parses_a_complete_transformer() -> None:
    parsed = parse_cell_document(GREETER, source="greeter.transformer.fc")
    cell = parsed.cell

    assert cell.name == "greeter"
    assert cell.identity is not None
    assert cell.identity.version == "1.2.0"
    assert isinstance(cell.contract, TransformerContract)
    assert cell.contract.output_type == "Greeting"
    assert cell.budget is not None
    assert cell.budget.max_units == 50
    assert cell.signature is not None
    assert cell.signature.computed_at == "2026-01-01T00:00:00Z"
    assert cell.signature.child_fingerprints is None
    assert cell.health is not None
    assert cell.health.remaining == 50
    assert cell.logic == (("process", "return 'hi ' + input;"),)
    assert cell.children == ()
    assert parsed.child_references == (
        ChildReference(path_reference="cells/formatter.transformer", local_alias="formatter"),
        ChildReference(path_reference="cells/bus.channel", local_alias="bus"),
    )
    assert cell.channel_topology[0].channel_alias == "bus"
    assert cell.channel_topology[0].edges[0].from_alias == "formatter"


def test_unwrapped_documents_and_type_alias_are_accepted() -> None:
    parsed = parse_cell_mapping(
        {
            "identity": {"name": "store", "type": "Keeper", "version": "1.0.0"},
            "contract": {"state_type": "object", "operations": ["get", "set"]},
            "provenance": {},
            "signature": "deadbeef",
        }
    )

    assert parsed.cell.identity is not None
    assert parsed.cell.identity.kind == "Keeper"
    assert isinstance(parsed.cell.contract, KeeperContract)
    assert parsed.cell.contract.operations == ("get", "set")
    assert parsed.cell.contract.budget is None
    assert parsed.cell.signature is not None
    assert parsed.cell.signature.fingerprint == "deadbeef"
    assert parsed.cell.provenance is not None
    assert parsed.cell.provenance.parent_fingerprint == ""
    assert parsed.cell.health is None


def test_scalars_are_coerced_to_text() -> None:
    parsed = parse_cell_mapping(
        {
            "identity": {"name": 42, "kind": "Channel", "version": 1.5},
            "contract": {"carries": True, "mode": "fifo", "buffer_capacity": "eight"},
            "provenance": {"source": "x"},
            "signature": {"fingerprint": "f"},
        }
    )
    cell = parsed.cell

    assert cell.name == "42"
    assert cell.identity is not None
    assert cell.identity.version == "1.5"
    assert isinstance(cell.contract, ChannelContract)
    assert cell.contract.carries == "true"
    assert cell.contract.buffer_capacity == "eight"


def test_unknown_kind_keeps_an_opaque_contract() -> None:
    parsed = parse_cell_mapping(
        {
            "identity": {"name": "w", "kind": "transformer", "version": "1.0.0"},
            "contract": {"output_type": "b", "input_type": "a", "budget": {"max_units": 3}},
            "provenance": {},
            "signature": {"fingerprint": "f"},
        }
    )

    contract = parsed.cell.contract
    assert isinstance(contract, OpaqueContract)
    assert contract.fields == (("input_type", "a"), ("output_type", "b"))
    assert contract.budget is not None
    assert contract.budget.max_units == 3
    assert contract.budget.exhaustion_action is None


def test_inline_logic_becomes_a_body_section() -> None:
    document = GREETER.replace('process: "return \'hi \' + input;"', "ignored: x")
    parsed = parse_cell_document(document)

    assert parsed.cell.logic == ()

    inline = parse_cell_mapping(
        {
            "identity": {"name": "w", "kind": "Reactor", "version": "1.0.0"},
            "contract": {"listens_to": "Tick", "emits": "Tock"},
            "provenance": {},
            "signature": {"fingerprint": "f"},
            "logic": "emit('Tock');",
        }
    )
    assert inline.cell.logic == (("body", "emit('Tock');"),)


@pytest.mark.parametrize("section", ["identity", "contract", "provenance"])
def test_missing_required_section_is_a_parse_error(section: str) -> None:
    document = {
        "identity": {"name": "w", "kind": "Transformer", "version": "1.0.0"},
        "contract": {"input_type": "a", "output_type": "b"},
        "provenance": {},
        "signature": {"fingerprint": "f"},
    }
    del document[section]

    with pytest.raises(ParseError) as exc_info:
        parse_cell_mapping(document, source="w.transformer.fc")

    assert exc_info.value.path == f"w.transformer.fc:{section}"
    assert section in str(exc_info.value)


def test_missing_signature_parses_as_unsigned_cell() -> None:
    parsed = parse_cell_mapping(
        {
            "identity": {"name": "w", "kind": "Transformer", "version": "1.0.0"},
            "contract": {"input_type": "a", "output_type": "b"},
            "provenance": {"source": "designer"},
            "logic": {"process": "return input;"},
        },
        source="w.transformer.fc",
    )

    assert parsed.cell.signature is None
    assert parsed.cell.logic == (("process", "return input;"),)
    assert verify(sign(parsed.cell))


@pytest.mark.parametrize(
    ("text", "message"),
    [
        ("- just\n- a list\n", "must be a mapping"),
        ("cell: [1, 2]\n", "'cell' must be a mapping"),
        ("cell: {identity: {name: [1]}}\n", "missing required section"),
        ("key: [unclosed\n", "not valid YAML"),
    ],
)
def test_malformed_documents_raise(text: str, message: str) -> None:
    with pytest.raises(ParseError, match=message):
        parse_cell_document(text)


def test_non_scalar_field_reports_its_path() -> None:
    with pytest.raises(ParseError) as exc_info:
        parse_cell_mapping(
            {
                "identity": {"name": ["a"], "kind": "Transformer", "version": "1.0.0"},
                "contract": {},
                "provenance": {},
                "signature": {"fingerprint": "f"},
            }
        )

    assert exc_info.value.path == "identity.name"
    assert "expected scalar" in str(exc_info.value)


def test_children_must_be_a_list() -> None:
    document = GREETER.replace("  children:\n", "  children: nope\n  unused:\n")

    with pytest.raises(ParseError, match="expected list"):
        parse_cell_document(document)


def test_dumped_cell_reparses_to_the_same_fingerprint() -> None:
    signed = sign(transformer("greeter", output_type="Greeting"), computed_at=FIXED_TIMESTAMP)

    reparsed = parse_cell_document(dump_cell_document(signed)).cell

    assert reparsed == signed
    assert fingerprint(reparsed) == fingerprint(signed)
    assert verify(reparsed)


def test_cell_to_document_keeps_child_references() -> None:
    references = (ChildReference(path_reference="cells/a", local_alias="a"),)

    document = cell_to_document(transformer("root"), references)

    body = document["cell"]
    assert isinstance(body, dict)
    assert body["children"] == [{"path_reference": "cells/a", "local_alias": "a"}]
    assert "signature" not in body
