"""Project-relative loading of cell trees and their type schemas."""

from cellcheck.loading.loader import (
    CellTreeLoader,
    LoadedTree,
    find_project_root,
    load_cell_tree,
)
from cellcheck.loading.schemas import SchemaResolver

__all__ = [
    "CellTreeLoader",
    "LoadedTree",
    "SchemaResolver",
    "find_project_root",
    "load_cell_tree",
]
