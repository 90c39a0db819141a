"""Validation pipeline: eight independent checks over a cell tree."""

from cellcheck.validation.base import (
    BUILTIN_CHECKS,
    Check,
    CheckId,
    CheckRegistry,
    RuleId,
    SignatureMismatch,
    ValidationContext,
    ValidationResult,
    Violation,
    register_check,
)
from cellcheck.validation.pipeline import (
    DEFAULT_CHECK_IDS,
    PipelineReport,
    ValidationPipeline,
    run_pipeline,
)

__all__ = [
    "BUILTIN_CHECKS",
    "Check",
    "CheckId",
    "CheckRegistry",
    "DEFAULT_CHECK_IDS",
    "PipelineReport",
    "RuleId",
    "SignatureMismatch",
    "ValidationContext",
    "ValidationPipeline",
    "ValidationResult",
    "Violation",
    "register_check",
    "run_pipeline",
]
