"""Placeholder snapshot served when BCN data cannot be obtained."""

from __future__ import annotations

from datetime import UTC, datetime

from bcn_presupuesto.config import setup_logging
from bcn_presupuesto.extractor.types import BudgetSnapshot, BudgetTotals

logger = setup_logging(__name__)

FALLBACK_SOURCE = "BCN - Biblioteca del Congreso Nacional (Fallback)"
FALLBACK_NOTE = "Datos no disponibles desde BCN. Se requiere verificación manual."


def build_fallback_snapshot(year: int, source_url: str, note: str | None = None) -> BudgetSnapshot:
    """Build an empty, explicitly-flagged snapshot for ``year``.

    Parameters
    ----------
    year : int
        Requested fiscal year.
    source_url : str
        URL that was (or would have been) requested.
    note : str | None, optional
        Explanation shown to users; defaults to :data:`FALLBACK_NOTE`.

    Returns
    -------
    BudgetSnapshot
        Snapshot with ``is_real_data=False``, zero totals and no lines.
    """
    logger.info("Using fallback data for BCN year %s", year)
    return BudgetSnapshot(
        year=year,
        source=FALLBACK_SOURCE,
        source_url=source_url,
        last_updated=datetime.now(UTC).isoformat(),
        is_real_data=False,
        totals=BudgetTotals(),
        lines=(),
        is_fallback=True,
        note=note or FALLBACK_NOTE,
    )
