"""Structured logging setup: structlog over the stdlib ``logging`` module."""

from __future__ import annotations

import logging
import sys
from typing import Final, TextIO

import structlog

_LOGGER_NAME: Final[str] = "cellcheck"
_HANDLER_NAME: Final[str] = "cellcheck-structlog"


def configure_logging(
    level: int | str = "INFO",
    *,
    json_output: bool = False,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Route every ``cellcheck.*`` structlog event through one stdlib handler.

    JSON-lines rendering when ``json_output`` is true, console rendering
    otherwise. Calling it again replaces the previously installed handler.
    """

    parsed_level = _parse_log_level(level)
    timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)
    shared: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        timestamper,
    ]
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    renderer: structlog.typing.Processor
    if json_output:
        renderer = structlog.processors.JSONRenderer(sort_keys=True, separators=(",", ":"))
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
            foreign_pre_chain=shared,
        )
    )

    logger = logging.getLogger(_LOGGER_NAME)
    for existing in list(logger.handlers):
        if existing.get_name() == _HANDLER_NAME:
            logger.removeHandler(existing)
            existing.close()
    logger.addHandler(handler)
    logger.setLevel(parsed_level)
    logger.propagate = False
    return logger


def _parse_log_level(value: int | str) -> int:
    if isinstance(value, int):
        return value

    normalized = value.strip().upper()
    parsed = logging.getLevelName(normalized)
    if isinstance(parsed, int):
        return parsed

    raise ValueError(f"unsupported logging level {value!r}")


__all__ = ["configure_logging"]
