"""Shared utility functions for bcn_presupuesto package."""

from bcn_presupuesto.utils.parsing import (
    AMOUNT_SCALE,
    clean_text,
    normalize_for_matching,
    parse_amount,
    parse_percentage,
)

__all__ = [
    "AMOUNT_SCALE",
    "clean_text",
    "normalize_for_matching",
    "parse_amount",
    "parse_percentage",
]
