"""Built-in checks. Importing this package registers them with ``BUILTIN_CHECKS``."""

from cellcheck.validation.checks.budget_sanity import budget_sanity_check
from cellcheck.validation.checks.composition_topology import composition_topology_check
from cellcheck.validation.checks.context_map import context_map_check
from cellcheck.validation.checks.contract_completeness import contract_completeness_check
from cellcheck.validation.checks.logic_scan import logic_scan_check
from cellcheck.validation.checks.provenance_completeness import provenance_completeness_check
from cellcheck.validation.checks.self_similarity import self_similarity_check
from cellcheck.validation.checks.signature_integrity import signature_integrity_check
from cellcheck.validation.checks.type_taxonomy import type_taxonomy_check

__all__ = [
    "budget_sanity_check",
    "composition_topology_check",
    "context_map_check",
    "contract_completeness_check",
    "logic_scan_check",
    "provenance_completeness_check",
    "self_similarity_check",
    "signature_integrity_check",
    "type_taxonomy_check",
]
