"""
cellcheck - unit tests for the signature engine

File: tests/unit/signature/test_signature.py
Last updated: 2026-10-19

Purpose
- Verify fingerprint determinism, sensitivity to identity/schema/provenance,
  invariance under child order, and pure verification.

What this test file should cover
- Known-content fingerprint equals sha256 of the documented concatenation.
- Child fingerprints fold in sorted order.
- ``sign``/``sign_tree`` never mutate their input.
- Hypothesis properties for order invariance and provenance sensitivity.
"""

from __future__ import annotations

import hashlib
from dataclasses import replace

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from cellcheck.domain.models import Signature
from cellcheck.errors import CyclicCompositionError
from cellcheck.signature import (
    child_fingerprints,
    declared_schemas,
    fingerprint,
    own_content,
    sign,
    sign_tree,
    utc_timestamp,
    verify,
    verify_detailed,
)
from tests.builders import (
    FIXED_TIMESTAMP,
    channel,
    child_named,
    keeper,
    pipeline_tree,
    provenance,
    transformer,
)

_TEXT = st.text(min_size=1, max_size=24)


def test_leaf_fingerprint_matches_documented_concatenation() -> None:
    cell = transformer("greeter", input_type="string", output_type="Greeting")
    expected_content = (
        "greeter"
        "transformer"
        "1.0.0"
        '{"type":"string"}'
        '{"type":"Greeting"}'
        "designer"
        "feature request"
        "needed by the pipeline"
    )

    assert own_content(cell) == expected_content
    digest = hashlib.sha256(expected_content.encode("utf-8")).hexdigest()
    assert fingerprint(cell) == digest


def test_declared_schemas_prefer_resolved_schemas() -> None:
    cell = replace(transformer("greeter"), input_schema={"type": "object", "required": ["x"]})

    assert declared_schemas(cell) == ({"type": "object", "required": ["x"]}, {"type": "string"})


def test_parent_fingerprint_excludes_parent_fingerprint_field() -> None:
    cell = transformer("greeter")
    moved = replace(cell, provenance=provenance(parent_fingerprint="elsewhere"))

    assert fingerprint(cell) == fingerprint(moved)


def test_composed_fingerprint_folds_sorted_child_fingerprints() -> None:
    tree = pipeline_tree()
    children = sorted(child.signature.fingerprint for child in tree.children if child.signature)

    assert child_fingerprints(tree) == tuple(children)
    assert fingerprint(tree) == hashlib.sha256(
        (own_content(tree) + "".join(children)).encode("utf-8")
    ).hexdigest()


def test_unsigned_child_contributes_empty_string() -> None:
    parent = transformer("p", children=(transformer("a"), channel("bus")))

    assert "" in child_fingerprints(parent)


def test_sign_is_pure_and_verifiable() -> None:
    cell = transformer("greeter")
    signed = sign(cell, computed_at=FIXED_TIMESTAMP)

    assert cell.signature is None
    assert signed.signature == Signature(
        fingerprint=fingerprint(cell), child_fingerprints=None, computed_at=FIXED_TIMESTAMP
    )
    assert verify(signed)
    assert not verify(cell)


def test_sign_tree_signs_bottom_up() -> None:
    tree = pipeline_tree()

    for child in tree.children:
        assert verify(child)
    assert verify(tree)
    assert tree.signature is not None
    assert tree.signature.child_fingerprints == child_fingerprints(tree)
    assert tree.context_map is not None
    assert tree.context_map.fingerprint == tree.signature.fingerprint


def test_sign_tree_rejects_cycles() -> None:
    loop = transformer("loop")
    object.__setattr__(loop, "children", (loop,))

    with pytest.raises(CyclicCompositionError, match="loop -> loop"):
        sign_tree(loop)


def test_tampering_with_a_child_breaks_the_parent() -> None:
    tree = pipeline_tree()
    parse = child_named(tree, "parse")
    assert parse.identity is not None
    tampered_child = replace(parse, identity=replace(parse.identity, version="1.0.1"))
    resigned_child = sign(tampered_child, computed_at=FIXED_TIMESTAMP)
    tampered = tree.with_children(
        tuple(resigned_child if child.name == "parse" else child for child in tree.children)
    )

    outcome = verify_detailed(tampered)

    assert not outcome.fingerprint_matches
    assert outcome.child_count_matches
    assert outcome.first_child_mismatch is not None
    assert not outcome.ok


def test_verification_reports_child_count_drift() -> None:
    tree = pipeline_tree()
    pruned = tree.with_children(tree.children[:2])

    outcome = verify_detailed(pruned)

    assert not outcome.child_count_matches
    assert outcome.first_child_mismatch is None


def test_kind_case_does_not_change_fingerprint_content() -> None:
    cell = keeper("store")
    assert cell.identity is not None
    shouting = replace(cell, identity=replace(cell.identity, kind="KEEPER"))

    assert own_content(cell) == own_content(shouting)


def test_utc_timestamp_is_iso_z() -> None:
    stamp = utc_timestamp()

    assert stamp.endswith("Z")
    assert "T" in stamp


@settings(max_examples=50, deadline=None)
@given(st.permutations(["alpha", "beta", "gamma", "delta"]))
def test_fingerprint_is_invariant_under_child_order(order: list[str]) -> None:
    leaves = {
        name: sign(transformer(name), computed_at=FIXED_TIMESTAMP) for name in order
    }
    reference = transformer("parent", children=tuple(leaves[name] for name in sorted(order)))
    shuffled = transformer("parent", children=tuple(leaves[name] for name in order))

    assert fingerprint(shuffled) == fingerprint(reference)


@settings(max_examples=50, deadline=None)
@given(source=_TEXT, trigger=_TEXT, justification=_TEXT, extra=_TEXT)
def test_fingerprint_is_sensitive_to_provenance(
    source: str, trigger: str, justification: str, extra: str
) -> None:
    base = replace(
        transformer("leaf"),
        provenance=provenance(source=source, trigger=trigger, justification=justification),
    )
    changed = replace(
        base,
        provenance=provenance(source=source, trigger=trigger, justification=justification + extra),
    )

    assert fingerprint(base) != fingerprint(changed)


@settings(max_examples=25, deadline=None)
@given(version=st.from_regex(r"[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}", fullmatch=True))
def test_signing_then_verifying_always_succeeds(version: str) -> None:
    assert verify(sign(transformer("leaf", version=version), computed_at=FIXED_TIMESTAMP))
