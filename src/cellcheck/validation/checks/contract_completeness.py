"""
cellcheck - contract completeness check

File: src/cellcheck/validation/checks/contract_completeness.py
Last updated: 2026-10-19

Purpose
- Verify that every cell carries a well-formed identity, the contract fields
  its kind requires, a budget spec, health reporting, provenance, and a
  hex-well-formed signature.

Functional requirements
- Kind-specific fields are only checked once the kind is recognized; an
  unrecognized kind is reported once instead of cascading field errors.
- Fingerprint format is case-sensitive: uppercase hex is invalid.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import assert_never

from cellcheck.budget import coerce_max_units
from cellcheck.constants import KEEPER_REQUIRED_OPERATIONS, MAX_BUDGET_UNITS, SEMVER_PATTERN
from cellcheck.domain.models import (
    REQUIRED_EXHAUSTION_ACTION,
    CellKind,
    ChannelContract,
    ChannelMode,
    Contract,
    ExhaustionAction,
    KeeperContract,
    OpaqueContract,
    ReactorContract,
    TransformerContract,
)
from cellcheck.domain.tree import CellIndex, CellNode
from cellcheck.utils.hashing import is_fingerprint
from cellcheck.validation.base import (
    CheckId,
    RuleId,
    ValidationContext,
    Violation,
    register_check,
    violation_at,
)

_CHANNEL_MODES = ", ".join(mode.value for mode in ChannelMode)


def _contract_violation(node: CellNode, code: str, message: str) -> Violation:
    return violation_at(node, rule_id=RuleId.CONTRACT, code=f"contract.{code}", message=message)


def _blank(value: object) -> bool:
    return not isinstance(value, str) or not value.strip()


def _require_text(node: CellNode, field_name: str, value: object) -> Iterator[Violation]:
    if _blank(value):
        yield _contract_violation(
            node, "field-missing", f"Contract field {field_name!r} is missing or empty"
        )


def _kind_fields(node: CellNode, kind: CellKind, contract: Contract) -> Iterator[Violation]:
    if contract.kind is not kind:
        yield _contract_violation(
            node,
            "kind-mismatch",
            f"Contract shape does not match declared kind {kind.value!r}",
        )
        return

    if isinstance(contract, TransformerContract):
        yield from _require_text(node, "input_type", contract.input_type)
        yield from _require_text(node, "output_type", contract.output_type)
    elif isinstance(contract, ReactorContract):
        yield from _require_text(node, "listens_to", contract.listens_to)
        yield from _require_text(node, "emits", contract.emits)
    elif isinstance(contract, KeeperContract):
        yield from _require_text(node, "state_type", contract.state_type)
        missing = sorted(KEEPER_REQUIRED_OPERATIONS - set(contract.operations))
        if missing:
            yield _contract_violation(
                node,
                "keeper-operations",
                f"Keeper operations must include get and set; missing: {', '.join(missing)}",
            )
    elif isinstance(contract, ChannelContract):
        yield from _require_text(node, "carries", contract.carries)
        if contract.mode not in set(ChannelMode):
            yield _contract_violation(
                node,
                "channel-mode",
                f"Channel mode {contract.mode!r} is invalid; expected one of {_CHANNEL_MODES}",
            )
        capacity = contract.buffer_capacity
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
            yield _contract_violation(
                node,
                "channel-buffer",
                f"Channel buffer_capacity must be a positive integer, got {capacity!r}",
            )
    elif isinstance(contract, OpaqueContract):
        pass
    else:
        assert_never(contract)


def _budget_spec(node: CellNode, kind: CellKind, contract: Contract) -> Iterator[Violation]:
    budget = contract.budget
    if budget is None:
        yield _contract_violation(node, "budget-missing", "Contract declares no budget spec")
        return
    try:
        coerce_max_units(budget.max_units, ceiling=MAX_BUDGET_UNITS)
    except ValueError as exc:
        yield _contract_violation(node, "budget-max-units", f"Budget spec invalid: {exc}")

    required = REQUIRED_EXHAUSTION_ACTION[kind]
    action = budget.exhaustion_action
    if action not in set(ExhaustionAction):
        yield _contract_violation(
            node,
            "budget-action",
            (
                f"Budget exhaustion_action {action!r} is invalid; "
                f"{kind.value} requires {required.value!r}"
            ),
        )
    elif action != required:
        yield _contract_violation(
            node,
            "budget-action",
            f"{kind.value} exhaustion_action must be {required.value!r}, got {action!r}",
        )


def _identity(node: CellNode) -> Iterator[Violation]:
    identity = node.cell.identity
    if identity is None:
        yield _contract_violation(node, "identity-missing", "Cell has no identity")
        return
    if _blank(identity.name):
        yield _contract_violation(node, "identity-name", "identity.name is empty")
    if SEMVER_PATTERN.fullmatch(identity.version) is None:
        yield _contract_violation(
            node,
            "identity-version",
            f"identity.version {identity.version!r} is not MAJOR.MINOR.PATCH[-pre][+build]",
        )


def _contract(node: CellNode) -> Iterator[Violation]:
    cell = node.cell
    kind = cell.kind
    if cell.identity is None:
        return
    if kind is None:
        yield _contract_violation(
            node,
            "kind-unchecked",
            f"Contract cannot be checked: kind {cell.identity.kind!r} is not recognized",
        )
        return
    if cell.contract is None:
        yield _contract_violation(node, "missing", "Cell has no contract")
        return
    yield from _kind_fields(node, kind, cell.contract)
    yield from _budget_spec(node, kind, cell.contract)


def _attachments(node: CellNode) -> Iterator[Violation]:
    cell = node.cell
    if cell.health is None:
        yield _contract_violation(node, "health-missing", "Cell does not report health")
    if cell.provenance is None:
        yield _contract_violation(node, "provenance-missing", "Cell has no provenance record")
    if cell.signature is None:
        yield _contract_violation(node, "signature-missing", "Cell has no signature")
    elif not is_fingerprint(cell.signature.fingerprint):
        yield _contract_violation(
            node,
            "signature-format",
            "Signature fingerprint must be 64 lowercase hex characters, "
            f"got {cell.signature.fingerprint[:20]!r}",
        )


@register_check(CheckId.CONTRACT_COMPLETENESS, "Contract Completeness Check")
def contract_completeness_check(
    index: CellIndex, context: ValidationContext
) -> Iterator[Violation]:
    for node in index.walk():
        yield from _identity(node)
        yield from _contract(node)
        yield from _attachments(node)


__all__ = ["contract_completeness_check"]
