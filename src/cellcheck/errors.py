"""Exception taxonomy for cell parsing, loading, budgets, and configuration.

Validation findings are values (see ``cellcheck.validation.base``) and are
never raised; only the conditions below abort an operation.
"""

from __future__ import annotations

from collections.abc import Iterable


class CellcheckError(Exception):
    """Base class for all errors raised by ``cellcheck``."""


class ParseError(CellcheckError, ValueError):
    """Raised when a cell document is malformed (missing section, wrong shape)."""

    path: str | None

    def __init__(self, message: str, *, path: str | None = None) -> None:
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


class LoadError(CellcheckError):
    """Raised when a cell file cannot be read or decoded."""


class CyclicCompositionError(CellcheckError, ValueError):
    """Raised when a child reference leads back to a cell on the current path."""

    cycle: tuple[str, ...]

    def __init__(self, cycle: Iterable[str]) -> None:
        self.cycle = tuple(cycle)
        if not self.cycle:
            message = "Cell composition contains a cycle."
        else:
            message = f"Cell composition contains a cycle: {' -> '.join(self.cycle)}"
        super().__init__(message)


class ExhaustedBudget(CellcheckError):
    """Raised by ``consume()`` on a meter with no remaining units.

    The caller must not perform the unit of work; the meter is left unchanged.
    """

    cell_name: str
    max_units: int

    def __init__(self, cell_name: str, max_units: int) -> None:
        self.cell_name = cell_name
        self.max_units = max_units
        super().__init__(f"budget exhausted for cell {cell_name!r} (max_units={max_units})")


class BudgetResetDenied(CellcheckError, PermissionError):
    """Raised when a context that does not own a meter attempts to reset it."""


class ConfigLoadError(CellcheckError, ValueError):
    """Raised when configuration cannot be loaded, coerced, or validated."""


__all__ = [
    "BudgetResetDenied",
    "CellcheckError",
    "ConfigLoadError",
    "CyclicCompositionError",
    "ExhaustedBudget",
    "LoadError",
    "ParseError",
]
