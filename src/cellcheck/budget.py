"""
Execution-budget state machine and health aggregation.

A meter tracks the remaining units of work for a Transformer or Reactor:
- ``consume()`` decrements while ``remaining > 0`` and raises ``ExhaustedBudget``
  once nothing is left
- ``reset`` restores ``remaining = max_units`` and is accepted only from the
  context that owns the meter, never from the cell itself
- Keeper and Channel cells are exempt and cannot be metered

It integrates with:
- ``HealthReport`` so every metered health report carries ``remaining``
- ``structlog`` for machine-parseable transition logs
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

import structlog

from cellcheck.constants import MAX_BUDGET_UNITS, METERED_KINDS
from cellcheck.domain.models import Cell, HealthReport, HealthStatus
from cellcheck.domain.tree import CellIndex
from cellcheck.errors import BudgetResetDenied, ExhaustedBudget

_STATUS_RANK: dict[HealthStatus, int] = {
    HealthStatus.HEALTHY: 0,
    HealthStatus.DEGRADED: 1,
    HealthStatus.UNHEALTHY: 2,
    HealthStatus.EXHAUSTED: 2,
}


class BudgetState(StrEnum):
    """Observable state of a metered cell."""

    HEALTHY = "healthy"
    EXHAUSTED = "exhausted"


def budget_state(remaining: int) -> BudgetState:
    return BudgetState.HEALTHY if remaining > 0 else BudgetState.EXHAUSTED


def coerce_max_units(value: object, *, ceiling: int = MAX_BUDGET_UNITS) -> int:
    """Return ``value`` as a usable ceiling or raise ``ValueError``."""

    if value is None:
        raise ValueError("max_units is not configured")
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError(f"max_units must be finite, got {value!r}")
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"max_units must be an integer, got {type(value).__name__}")
    if value <= 0:
        raise ValueError("max_units must be > 0")
    if value > ceiling:
        raise ValueError(f"max_units must be <= {ceiling}")
    return value


@dataclass(frozen=True, slots=True)
class BudgetSnapshot:
    """Point-in-time view of one meter."""

    cell_name: str
    max_units: int
    remaining: int

    @property
    def state(self) -> BudgetState:
        return budget_state(self.remaining)

    def to_health(self) -> HealthReport:
        status = (
            HealthStatus.HEALTHY if self.state is BudgetState.HEALTHY else HealthStatus.EXHAUSTED
        )
        return HealthReport(status=status.value, remaining=self.remaining)

    def to_dict(self) -> dict[str, object]:
        return {
            "cell_name": self.cell_name,
            "max_units": self.max_units,
            "remaining": self.remaining,
            "state": self.state.value,
        }


class BudgetMeter:
    """Per-cell execution counter. Create through ``BudgetLedger``."""

    __slots__ = ("_cell_name", "_max_units", "_remaining", "_owner", "_logger")

    def __init__(
        self,
        cell_name: str,
        max_units: int,
        *,
        owner: object,
        remaining: int | None = None,
        logger: Any | None = None,
    ) -> None:
        self._cell_name = cell_name
        self._max_units = coerce_max_units(max_units)
        if remaining is None:
            remaining = self._max_units
        if isinstance(remaining, bool) or not isinstance(remaining, int):
            raise ValueError("remaining must be an integer")
        if not 0 <= remaining <= self._max_units:
            raise ValueError(f"remaining must be within [0, {self._max_units}]")
        self._remaining = remaining
        self._owner = owner
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    @classmethod
    def for_cell(
        cls,
        cell: Cell,
        *,
        owner: object,
        remaining: int | None = None,
        logger: Any | None = None,
    ) -> BudgetMeter:
        kind = cell.kind
        if kind is None or kind.value not in METERED_KINDS:
            raise ValueError(f"cell {cell.name!r} of kind {kind} is exempt from budget metering")
        budget = cell.budget
        if budget is None:
            raise ValueError(f"cell {cell.name!r} declares no budget")
        return cls(
            cell.name,
            coerce_max_units(budget.max_units),
            owner=owner,
            remaining=remaining,
            logger=logger,
        )

    @property
    def cell_name(self) -> str:
        return self._cell_name

    @property
    def max_units(self) -> int:
        return self._max_units

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def state(self) -> BudgetState:
        return budget_state(self._remaining)

    def consume(self) -> int:
        """Spend one unit and return what is left."""

        if self._remaining == 0:
            self._logger.warning(
                "budget_exhausted", cell=self._cell_name, max_units=self._max_units
            )
            raise ExhaustedBudget(self._cell_name, self._max_units)
        self._remaining -= 1
        self._logger.debug("budget_consumed", cell=self._cell_name, remaining=self._remaining)
        return self._remaining

    def reset(self, owner: object) -> BudgetSnapshot:
        if owner is not self._owner:
            raise BudgetResetDenied(
                f"reset of cell {self._cell_name!r} budget denied: caller does not own the meter"
            )
        self._remaining = self._max_units
        self._logger.info("budget_reset", cell=self._cell_name, remaining=self._remaining)
        return self.snapshot()

    def snapshot(self) -> BudgetSnapshot:
        return BudgetSnapshot(
            cell_name=self._cell_name, max_units=self._max_units, remaining=self._remaining
        )

    def health(self) -> HealthReport:
        return self.snapshot().to_health()


class BudgetLedger:
    """Owning context for a set of meters, keyed by tree path or cell name."""

    def __init__(self, *, logger: Any | None = None) -> None:
        self._meters: dict[str, BudgetMeter] = {}
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    def register(
        self, cell: Cell, *, key: str | None = None, remaining: int | None = None
    ) -> BudgetMeter:
        meter_key = cell.name if key is None else key
        if meter_key in self._meters:
            raise ValueError(f"meter already registered for {meter_key!r}")
        meter = BudgetMeter.for_cell(cell, owner=self, remaining=remaining, logger=self._logger)
        self._meters[meter_key] = meter
        return meter

    def track_tree(self, root: Cell) -> tuple[str, ...]:
        """Register every metered cell with a usable budget, keyed by tree path."""

        registered: list[str] = []
        for node in CellIndex(root).walk():
            kind = node.cell.kind
            if kind is None or kind.value not in METERED_KINDS:
                continue
            try:
                self.register(node.cell, key=node.path)
            except ValueError:
                continue
            registered.append(node.path)
        return tuple(registered)

    def meter(self, key: str) -> BudgetMeter:
        meter = self._meters.get(key)
        if meter is None:
            known = ", ".join(sorted(self._meters))
            raise KeyError(f"no meter for {key!r}; registered: [{known}]")
        return meter

    def consume(self, key: str) -> int:
        return self.meter(key).consume()

    def reset(self, key: str) -> BudgetSnapshot:
        return self.meter(key).reset(self)

    def snapshots(self) -> tuple[BudgetSnapshot, ...]:
        return tuple(self._meters[key].snapshot() for key in sorted(self._meters))


def coerce_status(value: HealthStatus | str | None) -> HealthStatus:
    """Unknown or missing statuses count as unhealthy."""

    if isinstance(value, HealthStatus):
        return value
    if isinstance(value, str):
        try:
            return HealthStatus(value.strip().lower())
        except ValueError:
            return HealthStatus.UNHEALTHY
    return HealthStatus.UNHEALTHY


def aggregate_health(
    own: HealthStatus | str | None,
    children: Iterable[HealthStatus | str | None] = (),
) -> HealthStatus:
    """Fold a cell's own status with its children's.

    Precedence is Exhausted/Unhealthy over Degraded over Healthy. A cell is
    Exhausted only through its own budget; an exhausted child degrades it.
    """

    own_status = coerce_status(own)
    if own_status in (HealthStatus.EXHAUSTED, HealthStatus.UNHEALTHY):
        return own_status

    worst = own_status
    for child in children:
        status = coerce_status(child)
        if status is HealthStatus.EXHAUSTED:
            status = HealthStatus.DEGRADED
        if _STATUS_RANK[status] > _STATUS_RANK[worst]:
            worst = status
    return worst


def tree_health(root: Cell) -> HealthStatus:
    """Aggregate reported health bottom-up across the whole tree."""

    index = CellIndex(root)
    folded: dict[int, HealthStatus] = {}
    for node in reversed(list(index.walk())):
        own = None if node.cell.health is None else node.cell.health.status
        folded[node.node_id] = aggregate_health(
            own, (folded[child_id] for child_id in node.child_ids)
        )
    return folded[index.root.node_id]


__all__ = [
    "BudgetLedger",
    "BudgetMeter",
    "BudgetSnapshot",
    "BudgetState",
    "aggregate_health",
    "budget_state",
    "coerce_max_units",
    "coerce_status",
    "tree_health",
]
