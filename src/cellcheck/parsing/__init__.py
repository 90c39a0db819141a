"""Source parser: structured cell documents to ``Cell`` values."""

from cellcheck.parsing.parser import (
    ParsedCell,
    cell_to_document,
    dump_cell_document,
    parse_cell_document,
    parse_cell_mapping,
)

__all__ = [
    "ParsedCell",
    "cell_to_document",
    "dump_cell_document",
    "parse_cell_document",
    "parse_cell_mapping",
]
