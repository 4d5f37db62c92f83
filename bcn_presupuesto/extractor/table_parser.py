"""HTML budget table location and row extraction.

The BCN period page carries several tables (navigation, summaries, the
partida listing). This module parses the page with lxml, picks the first
table whose header mentions a budget column, and turns its body rows into
:class:`BudgetLine` records.

The header markers are a best-effort heuristic that has not been validated
against every historical layout of the BCN site.
"""

from __future__ import annotations

import operator
from typing import TYPE_CHECKING

from lxml import etree
from lxml import html as lxml_html

from bcn_presupuesto.config import setup_logging
from bcn_presupuesto.extractor.types import BudgetLine, ExtractionOutcome, FailureKind
from bcn_presupuesto.utils.parsing import (
    AMOUNT_SCALE,
    clean_text,
    normalize_for_matching,
    parse_amount,
    parse_percentage,
)

if TYPE_CHECKING:
    from lxml.html import HtmlElement

logger = setup_logging(__name__)

# Public API exports
__all__ = [
    "HEADER_MARKERS",
    "POSITIONAL_LAYOUT",
    "extract_budget_lines",
    "get_header_labels",
    "get_header_text",
    "locate_and_extract",
    "locate_budget_table",
    "parse_document",
    "resolve_column_layout",
]

HEADER_MARKERS = ("partida", "institución", "aprobado", "vigente")
MIN_CELLS = 3

# Base column index per amount field; header labels can move fields.
# Columns 0 and 1 are always the partida number and name.
POSITIONAL_LAYOUT: dict[str, int] = {
    "approved": 2,
    "modifications": 3,
    "current": 4,
    "executed": 5,
    "execution_percentage": 6,
}

# Accent-free header keywords, tested in order. Only "%" or "porcentaje" mark
# the percentage column, so a bare "Ejecución" stays an amount column.
_HEADER_FIELDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("execution_percentage", ("%", "porcentaje")),
    ("executed", ("devengad", "ejecutad", "ejecucion")),
    ("current", ("vigente",)),
    ("modifications", ("modif",)),
    ("approved", ("aprobad", "ley inicial")),
)


# =============================================================================
# Document Parsing
# =============================================================================


def parse_document(markup: str | bytes | None) -> HtmlElement | None:
    """Parse raw HTML into an lxml document.

    Parameters
    ----------
    markup : str | bytes | None
        Response body as returned by the downloader.

    Returns
    -------
    HtmlElement | None
        Document root, or ``None`` when the markup is empty or unparseable.
    """
    if markup is None or not markup.strip():
        logger.warning("Empty document received")
        return None

    try:
        return lxml_html.document_fromstring(markup)
    except ValueError:
        # lxml rejects str input that carries an XML encoding declaration
        if isinstance(markup, str):
            return parse_document(markup.encode("utf-8"))
        logger.warning("Could not decode document")
        return None
    except etree.ParserError as e:
        logger.warning("Could not parse document: %s", e)
        return None


# =============================================================================
# Table Location
# =============================================================================


def get_header_text(table: HtmlElement) -> str:
    """Concatenate every ``th`` and ``thead td`` cell of a table, lowercased."""
    header_cells = table.xpath(".//th | .//thead//td")
    return "".join(cell.text_content() for cell in header_cells).lower()


def locate_budget_table(
    document: HtmlElement,
    header_markers: tuple[str, ...] | list[str] = HEADER_MARKERS,
) -> HtmlElement | None:
    """Return the first table whose header mentions a budget column.

    Parameters
    ----------
    document : HtmlElement
        Parsed page.
    header_markers : tuple[str, ...] | list[str], optional
        Lowercase substrings; any one of them in the header text selects the
        table.

    Returns
    -------
    HtmlElement | None
        Selected table, or ``None`` when no table qualifies.
    """
    tables = document.xpath("//table")
    if not tables:
        logger.warning("No tables found in BCN page")
        return None

    for index, table in enumerate(tables):
        header_text = get_header_text(table)
        if any(marker in header_text for marker in header_markers):
            logger.debug("Budget table found at position %d of %d", index, len(tables))
            return table

    logger.warning("Main budget table not found among %d tables", len(tables))
    return None


# =============================================================================
# Row Extraction
# =============================================================================


def get_header_labels(table: HtmlElement) -> list[str]:
    """Return the cleaned labels of the table's first header row."""
    header_rows = table.xpath("./thead/tr") or [row for row in table.xpath(".//tr") if row.xpath("./th")]
    if not header_rows:
        return []
    return [clean_text(cell.text_content()) for cell in header_rows[0].xpath("./th | ./td")]


def resolve_column_layout(header_labels: list[str]) -> dict[str, int]:
    """Map amount fields to column indexes.

    The positional layout is the base. A header label that names an amount
    field (Aprobado, Modificaciones, Vigente, Devengado, % Ejecución) moves
    that field to its column, and a positional field whose column was claimed
    by another field is dropped. Unrecognized labels keep their positions.

    Examples
    --------
    >>> resolve_column_layout(["Número", "Institución", "Aprobado", "Vigente", "Devengado"])
    {'approved': 2, 'current': 3, 'executed': 4, 'execution_percentage': 6}
    >>> resolve_column_layout([]) == POSITIONAL_LAYOUT
    True
    """
    named: dict[str, int] = {}

    for index, label in enumerate(header_labels):
        if index < 2:
            continue
        normalized = normalize_for_matching(label)
        for field_name, keywords in _HEADER_FIELDS:
            if field_name not in named and any(keyword in normalized for keyword in keywords):
                named[field_name] = index
                break

    claimed = set(named.values())
    layout = {
        field_name: index
        for field_name, index in POSITIONAL_LAYOUT.items()
        if field_name not in named and index not in claimed
    }
    layout.update(named)
    return dict(sorted(layout.items(), key=operator.itemgetter(1)))


def _cell(texts: list[str], index: int | None) -> str:
    """Return the cell text at ``index`` or an empty string when absent."""
    if index is None or index >= len(texts):
        return ""
    return texts[index]


def extract_budget_lines(
    table: HtmlElement,
    min_cells: int = MIN_CELLS,
    amount_scale: int = AMOUNT_SCALE,
) -> list[BudgetLine]:
    """Convert the body rows of a budget table into retained lines.

    Rows with fewer than ``min_cells`` data cells are skipped, as are rows
    without a name or without approved/current budget.

    Parameters
    ----------
    table : HtmlElement
        Table returned by :func:`locate_budget_table`.
    min_cells : int, optional
        Minimum ``td`` count for a row to be considered.
    amount_scale : int, optional
        Multiplier from cell units to pesos.

    Returns
    -------
    list[BudgetLine]
        Lines in document order.
    """
    header_labels = get_header_labels(table)
    logger.debug("BCN table headers: %s", header_labels)
    layout = resolve_column_layout(header_labels)

    body_rows = table.xpath("./tbody/tr") or table.xpath("./tr")

    lines: list[BudgetLine] = []
    skipped = 0

    for row in body_rows:
        cells = row.xpath("./td")
        if len(cells) < min_cells:
            continue

        texts = [clean_text(cell.text_content()) for cell in cells]
        line = BudgetLine(
            number=texts[0],
            name=texts[1],
            approved=parse_amount(_cell(texts, layout.get("approved")), amount_scale),
            modifications=parse_amount(_cell(texts, layout.get("modifications")), amount_scale),
            current=parse_amount(_cell(texts, layout.get("current")), amount_scale),
            executed=parse_amount(_cell(texts, layout.get("executed")), amount_scale),
            execution_percentage=parse_percentage(_cell(texts, layout.get("execution_percentage"))),
        )

        if not line.is_valid():
            skipped += 1
            logger.debug("Skipping row without name or budget: %s", texts[:2])
            continue

        lines.append(line)

    logger.debug("Extracted %d lines, skipped %d rows", len(lines), skipped)
    return lines


def locate_and_extract(
    document: HtmlElement | str | bytes | None,
    year: int,
    header_markers: tuple[str, ...] | list[str] = HEADER_MARKERS,
    min_cells: int = MIN_CELLS,
    amount_scale: int = AMOUNT_SCALE,
) -> ExtractionOutcome:
    """Locate the budget table in a page and extract its lines.

    Parameters
    ----------
    document : HtmlElement | str | bytes | None
        Parsed page or raw markup.
    year : int
        Fiscal year, used for log context.
    header_markers : tuple[str, ...] | list[str], optional
        Substrings that identify the budget table header.
    min_cells : int, optional
        Minimum ``td`` count per data row.
    amount_scale : int, optional
        Multiplier from cell units to pesos.

    Returns
    -------
    ExtractionOutcome
        Lines on success; ``FailureKind.EXTRACTION`` when the page has no
        budget table or the table yields no valid lines.
    """
    root = document if isinstance(document, lxml_html.HtmlElement) else parse_document(document)
    if root is None:
        return ExtractionOutcome(failure=FailureKind.EXTRACTION, detail="empty or unparseable document")

    table = locate_budget_table(root, header_markers)
    if table is None:
        return ExtractionOutcome(failure=FailureKind.EXTRACTION, detail="budget table not found")

    lines = extract_budget_lines(table, min_cells, amount_scale)
    if not lines:
        logger.warning("Budget table for %s has no valid partidas", year)
        return ExtractionOutcome(failure=FailureKind.EXTRACTION, detail="no valid partidas in table")

    logger.info("Parsed %d partidas from BCN for year %s", len(lines), year)
    return ExtractionOutcome(lines=lines)
