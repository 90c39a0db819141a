"""Public observability primitives: structured logging setup."""

from cellcheck.observability.logging import configure_logging

__all__ = ["configure_logging"]
