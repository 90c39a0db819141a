"""
cellcheck - domain layer

File: src/cellcheck/domain/__init__.py
Last updated: 2026-10-19

Purpose
- Cell model types shared by the parser, loader, signature engine and checks.

Functional requirements
- Domain values are immutable and serializable through ``to_dict``.
- No I/O in this package.
"""

from cellcheck.domain.models import (
    REQUIRED_EXHAUSTION_ACTION,
    BudgetSpec,
    Cell,
    CellKind,
    ChannelContract,
    ChannelMode,
    ChannelTopology,
    ChildReference,
    ContextMap,
    Contract,
    ExhaustionAction,
    HealthReport,
    HealthStatus,
    Identity,
    KeeperContract,
    OpaqueContract,
    ProvenanceRecord,
    ReactorContract,
    Signature,
    TopologyEdge,
    TransformerContract,
    contract_type_refs,
    parse_kind,
)
from cellcheck.domain.tree import CellIndex, CellNode, CompositionCycle

__all__ = [
    "BudgetSpec",
    "Cell",
    "CellIndex",
    "CellKind",
    "CellNode",
    "ChannelContract",
    "ChannelMode",
    "ChannelTopology",
    "ChildReference",
    "CompositionCycle",
    "ContextMap",
    "Contract",
    "ExhaustionAction",
    "HealthReport",
    "HealthStatus",
    "Identity",
    "KeeperContract",
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
