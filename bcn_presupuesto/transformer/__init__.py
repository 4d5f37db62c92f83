"""Transformer module for ministry classification and aggregation.

Submodules
----------
ministry
    Ordered keyword classification of partida names into ministry codes.
normalizer
    Per-ministry rollups and the standard budget contract.
"""

from bcn_presupuesto.transformer.ministry import (
    DEFAULT_CODE,
    DEFAULT_NAME,
    MINISTRY_KEYWORDS,
    classify,
    extract_ministry_code,
    extract_ministry_name,
)
from bcn_presupuesto.transformer.normalizer import aggregate, transform_to_standard_format

__all__ = [
    "DEFAULT_CODE",
    "DEFAULT_NAME",
    "MINISTRY_KEYWORDS",
    # Aggregation
    "aggregate",
    # Classification
    "classify",
    "extract_ministry_code",
    "extract_ministry_name",
    "transform_to_standard_format",
]
