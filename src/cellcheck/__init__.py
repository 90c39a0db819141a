"""
cellcheck - static validation and signing of composable cell trees

File: src/cellcheck/__init__.py
Last updated: 2026-10-19

Purpose
- Package root. Re-exports the small public API: parse, load, sign, validate.

Functional requirements
- Must not have side effects at import time (no config loading, no logging init).
"""

from cellcheck.budget import BudgetLedger, BudgetMeter, aggregate_health
from cellcheck.errors import (
    BudgetResetDenied,
    CellcheckError,
    ConfigLoadError,
    CyclicCompositionError,
    ExhaustedBudget,
    LoadError,
    ParseError,
)
from cellcheck.loading import LoadedTree, load_cell_tree
from cellcheck.parsing import ParsedCell, parse_cell_document
from cellcheck.signature import fingerprint, sign, sign_tree, verify
from cellcheck.validation import PipelineReport, ValidationContext, run_pipeline

__version__ = "0.3.0"

__all__ = [
    "BudgetLedger",
    "BudgetMeter",
    "BudgetResetDenied",
    "CellcheckError",
    "ConfigLoadError",
    "CyclicCompositionError",
    "ExhaustedBudget",
    "LoadError",
    "LoadedTree",
    "ParseError",
    "ParsedCell",
    "PipelineReport",
    "ValidationContext",
    "__version__",
    "aggregate_health",
    "fingerprint",
    "load_cell_tree",
    "parse_cell_document",
    "run_pipeline",
    "sign",
    "sign_tree",
    "verify",
]
