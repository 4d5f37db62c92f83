"""Extractor module for BCN budget pages.

Submodules
----------
types
    Budget record dataclasses and stage result types.
table_parser
    lxml-based budget table location and row extraction.
fallback
    Placeholder snapshot used when no data can be obtained.
"""

from bcn_presupuesto.extractor.fallback import FALLBACK_NOTE, FALLBACK_SOURCE, build_fallback_snapshot
from bcn_presupuesto.extractor.table_parser import (
    HEADER_MARKERS,
    extract_budget_lines,
    locate_and_extract,
    locate_budget_table,
    parse_document,
    resolve_column_layout,
)
from bcn_presupuesto.extractor.types import (
    AvailabilityStatus,
    BudgetLine,
    BudgetSnapshot,
    BudgetTotals,
    ExtractionOutcome,
    FailureKind,
    FetchResult,
    MinistryRollup,
    StandardBudget,
)

__all__ = [
    "FALLBACK_NOTE",
    "FALLBACK_SOURCE",
    "HEADER_MARKERS",
    # Types
    "AvailabilityStatus",
    "BudgetLine",
    "BudgetSnapshot",
    "BudgetTotals",
    "ExtractionOutcome",
    "FailureKind",
    "FetchResult",
    "MinistryRollup",
    "StandardBudget",
    # Fallback
    "build_fallback_snapshot",
    # Table parsing
    "extract_budget_lines",
    "locate_and_extract",
    "locate_budget_table",
    "parse_document",
    "resolve_column_layout",
]
