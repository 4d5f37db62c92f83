"""Writer module for JSON snapshots and ministry CSV/Excel exports.

Per-year JSON naming convention: bcn_presupuesto_2024.json
Workbook output: bcn_presupuesto_ministerios.xlsx with one sheet per year
"""

from bcn_presupuesto.writer.snapshot_writer import (
    list_available_snapshots,
    load_snapshot,
    ministries_to_dataframe,
    save_snapshot,
    write_ministries_to_csv,
    write_ministries_workbook,
)

__all__ = [
    "list_available_snapshots",
    "load_snapshot",
    "ministries_to_dataframe",
    "save_snapshot",
    "write_ministries_to_csv",
    "write_ministries_workbook",
]
