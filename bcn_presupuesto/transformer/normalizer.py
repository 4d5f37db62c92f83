"""Ministry rollups and the standard budget contract.

Partidas of a snapshot are grouped by ministry code, summed, and reshaped
into the :class:`StandardBudget` structure consumed by the dashboard.
"""

from __future__ import annotations

from bcn_presupuesto.config import setup_logging
from bcn_presupuesto.extractor.types import BudgetSnapshot, MinistryRollup, StandardBudget
from bcn_presupuesto.transformer.ministry import classify

logger = setup_logging(__name__)


def aggregate(snapshot: BudgetSnapshot) -> list[MinistryRollup]:
    """Roll snapshot lines up by ministry.

    Parameters
    ----------
    snapshot
        Snapshot returned by the fetch orchestrator.

    Returns
    -------
    list[MinistryRollup]
        One rollup per ministry code, sorted by descending budget with ties
        kept in first-encounter order. Empty for fallback snapshots.
    """
    if snapshot.is_fallback or not snapshot.is_real_data:
        return []

    rollups: dict[str, MinistryRollup] = {}

    for line in snapshot.lines:
        code, name = classify(line.name)
        if code not in rollups:
            rollups[code] = MinistryRollup(code=code, name=name)
        rollups[code].add_line(line)

    for rollup in rollups.values():
        rollup.finalize(snapshot.totals.current)

    # sorted() is stable, also with reverse=True
    ministries = sorted(rollups.values(), key=lambda rollup: rollup.budget, reverse=True)
    logger.debug("Aggregated %d lines into %d ministries", snapshot.lines_count, len(ministries))
    return ministries


def transform_to_standard_format(snapshot: BudgetSnapshot | None) -> StandardBudget | None:
    """Reshape a snapshot into the application's standard budget contract.

    Returns
    -------
    StandardBudget | None
        ``None`` when there is nothing to show (missing or fallback snapshot).
    """
    if snapshot is None or snapshot.is_fallback:
        return None

    ministries = aggregate(snapshot)
    totals = snapshot.totals

    return StandardBudget(
        year=snapshot.year,
        total_budget=totals.current,
        total_approved=totals.approved,
        total_modifications=totals.modifications,
        total_executed=totals.executed,
        execution_percentage=totals.execution_percentage,
        last_updated=snapshot.last_updated,
        source=snapshot.source,
        source_url=snapshot.source_url,
        is_real_data=snapshot.is_real_data,
        ministries=ministries,
        lines_count=snapshot.lines_count,
    )
