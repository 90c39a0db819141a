"""Immutable cell model: identity, kind-specific contracts, provenance, signature.

Fields that a malformed document may omit are ``None`` rather than defaulted,
so validation can report them as absent instead of the model inventing values.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import TYPE_CHECKING, ClassVar, assert_never

from cellcheck.constants import (
    CELL_KINDS,
    KIND_CHANNEL,
    KIND_KEEPER,
    KIND_REACTOR,
    KIND_TRANSFORMER,
    UNNAMED_CELL,
)

if TYPE_CHECKING:
    from cellcheck.utils.hashing import JSONValue

Number = int | float


class CellKind(StrEnum):
    TRANSFORMER = KIND_TRANSFORMER
    REACTOR = KIND_REACTOR
    KEEPER = KIND_KEEPER
    CHANNEL = KIND_CHANNEL


class ExhaustionAction(StrEnum):
    HALT = "halt"
    READ_ONLY = "read-only"
    DROP_NEWEST = "drop-newest"


class ChannelMode(StrEnum):
    FIFO = "fifo"
    LIFO = "lifo"
    PUBSUB = "pubsub"


class HealthStatus(StrEnum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    EXHAUSTED = "exhausted"


REQUIRED_EXHAUSTION_ACTION: dict[CellKind, ExhaustionAction] = {
    CellKind.TRANSFORMER: ExhaustionAction.HALT,
    CellKind.REACTOR: ExhaustionAction.HALT,
    CellKind.KEEPER: ExhaustionAction.READ_ONLY,
    CellKind.CHANNEL: ExhaustionAction.DROP_NEWEST,
}


def parse_kind(raw: str | None) -> CellKind | None:
    """Exact-case lookup; ``"transformer"`` is not a kind."""

    if raw is None or raw not in CELL_KINDS:
        return None
    return CellKind(raw)


@dataclass(frozen=True, slots=True)
class Identity:
    name: str
    kind: str
    version: str

    @property
    def cell_kind(self) -> CellKind | None:
        return parse_kind(self.kind)

    def to_dict(self) -> dict[str, JSONValue]:
        return {"name": self.name, "kind": self.kind, "version": self.version}


@dataclass(frozen=True, slots=True)
class BudgetSpec:
    """Configured ceiling; ``max_units`` keeps whatever the document held."""

    max_units: Number | str | None
    exhaustion_action: str | None

    def to_dict(self) -> dict[str, JSONValue]:
        return {"max_units": self.max_units, "exhaustion_action": self.exhaustion_action}


@dataclass(frozen=True, slots=True)
class TransformerContract:
    kind: ClassVar[CellKind] = CellKind.TRANSFORMER

    input_type: str
    output_type: str
    budget: BudgetSpec | None = None

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "input_type": self.input_type,
            "output_type": self.output_type,
            "budget": None if self.budget is None else self.budget.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class ReactorContract:
    kind: ClassVar[CellKind] = CellKind.REACTOR

    listens_to: str
    emits: str
    budget: BudgetSpec | None = None

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "listens_to": self.listens_to,
            "emits": self.emits,
            "budget": None if self.budget is None else self.budget.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class KeeperContract:
    kind: ClassVar[CellKind] = CellKind.KEEPER

    state_type: str
    operations: tuple[str, ...] = ()
    budget: BudgetSpec | None = None

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "state_type": self.state_type,
            "operations": list(self.operations),
            "budget": None if self.budget is None else self.budget.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class ChannelContract:
    kind: ClassVar[CellKind] = CellKind.CHANNEL

    carries: str
    mode: str
    buffer_capacity: Number | str | None
    budget: BudgetSpec | None = None

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "carries": self.carries,
            "mode": self.mode,
            "buffer_capacity": self.buffer_capacity,
            "budget": None if self.budget is None else self.budget.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class OpaqueContract:
    """Contract of a cell whose declared kind is not one of the four kinds."""

    kind: ClassVar[None] = None

    fields: tuple[tuple[str, str], ...] = ()
    budget: BudgetSpec | None = None

    def to_dict(self) -> dict[str, JSONValue]:
        payload: dict[str, JSONValue] = {key: value for key, value in self.fields}
        payload["budget"] = None if self.budget is None else self.budget.to_dict()
        return payload


Contract = TransformerContract | ReactorContract | KeeperContract | ChannelContract | OpaqueContract


def contract_type_refs(contract: Contract) -> tuple[str, str]:
    """Return the ``(input, output)`` type references a contract declares."""

    if isinstance(contract, TransformerContract):
        return contract.input_type, contract.output_type
    if isinstance(contract, ReactorContract):
        return contract.listens_to, contract.emits
    if isinstance(contract, KeeperContract):
        return contract.state_type, contract.state_type
    if isinstance(contract, ChannelContract):
        return contract.carries, contract.carries
    if isinstance(contract, OpaqueContract):
        lookup = dict(contract.fields)
        return lookup.get("input_type", ""), lookup.get("output_type", "")
    assert_never(contract)


@dataclass(frozen=True, slots=True)
class ProvenanceRecord:
    source: str
    trigger: str
    justification: str
    parent_fingerprint: str

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "source": self.source,
            "trigger": self.trigger,
            "justification": self.justification,
            "parent_fingerprint": self.parent_fingerprint,
        }


@dataclass(frozen=True, slots=True)
class Signature:
    """Stored fingerprint; ``child_fingerprints`` is ``None`` on leaf cells."""

    fingerprint: str
    child_fingerprints: tuple[str, ...] | None = None
    computed_at: str | None = None

    def to_dict(self) -> dict[str, JSONValue]:
        payload: dict[str, JSONValue] = {"fingerprint": self.fingerprint}
        if self.child_fingerprints is not None:
            payload["child_fingerprints"] = list(self.child_fingerprints)
        payload["computed_at"] = self.computed_at
        return payload


@dataclass(frozen=True, slots=True)
class HealthReport:
    status: str
    remaining: Number | str | None = None
    message: str | None = None

    def to_dict(self) -> dict[str, JSONValue]:
        payload: dict[str, JSONValue] = {"status": self.status}
        if self.remaining is not None:
            payload["remaining"] = self.remaining
        if self.message is not None:
            payload["message"] = self.message
        return payload


@dataclass(frozen=True, slots=True)
class ContextMap:
    """Externally published summary of a cell and the shape of its subtree."""

    identity: Identity | None
    fingerprint: str
    parent: str | None = None
    children: tuple[str, ...] = ()
    channels: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "identity": None if self.identity is None else self.identity.to_dict(),
            "fingerprint": self.fingerprint,
            "parent": self.parent,
            "children": list(self.children),
            "channels": list(self.channels),
        }


@dataclass(frozen=True, slots=True)
class ChildReference:
    path_reference: str
    local_alias: str


@dataclass(frozen=True, slots=True)
class TopologyEdge:
    from_alias: str
    to_alias: str


@dataclass(frozen=True, slots=True)
class ChannelTopology:
    channel_alias: str
    edges: tuple[TopologyEdge, ...] = ()


@dataclass(frozen=True, slots=True)
class Cell:
    """A component instance; owns its children exclusively."""

    identity: Identity | None
    contract: Contract | None
    provenance: ProvenanceRecord | None
    signature: Signature | None
    children: tuple[Cell, ...] = ()
    health: HealthReport | None = None
    context_map: ContextMap | None = None
    channel_topology: tuple[ChannelTopology, ...] = ()
    logic: tuple[tuple[str, str], ...] = ()
    input_schema: JSONValue = field(default=None, compare=False)
    output_schema: JSONValue = field(default=None, compare=False)

    @property
    def name(self) -> str:
        if self.identity is None or not self.identity.name.strip():
            return UNNAMED_CELL
        return self.identity.name

    @property
    def kind(self) -> CellKind | None:
        return None if self.identity is None else self.identity.cell_kind

    @property
    def is_composed(self) -> bool:
        return len(self.children) > 0

    @property
    def budget(self) -> BudgetSpec | None:
        return None if self.contract is None else self.contract.budget

    def with_signature(self, signature: Signature) -> Cell:
        return replace(self, signature=signature)

    def with_children(self, children: tuple[Cell, ...]) -> Cell:
        return replace(self, children=children)


__all__ = [
    "BudgetSpec",
    "Cell",
    "CellKind",
    "ChannelContract",
    "ChannelMode",
    "ChannelTopology",
    "ChildReference",
    "ContextMap",
    "Contract",
    "ExhaustionAction",
    "HealthReport",
    "HealthStatus",
    "Identity",
    "KeeperContract",
    "Number",
    "OpaqueContract",
    "ProvenanceRecord",
    "REQUIRED_EXHAUSTION_ACTION",
    "ReactorContract",
    "Signature",
    "TopologyEdge",
    "TransformerContract",
    "contract_type_refs",
    "parse_kind",
]
