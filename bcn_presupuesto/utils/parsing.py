"""Shared parsing utilities for Chilean-locale amounts and HTML cell text.

BCN publishes amounts in thousands of pesos using ``.`` as thousands separator
and ``,`` as decimal separator, but tables copied from other sources sometimes
arrive in US format. The helpers here never raise: malformed cells resolve to
zero so a single bad cell cannot invalidate its row.
"""

from __future__ import annotations

import math
import re
import unicodedata
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from bcn_presupuesto.config import setup_logging

logger = setup_logging(__name__)

# Table cells are expressed in thousands of pesos
AMOUNT_SCALE = 1000


def clean_text(text: str | None) -> str:
    """Collapse whitespace (including non-breaking spaces) and strip."""
    if not text:
        return ""
    return re.sub(r"\s+", " ", text).strip()


def parse_amount(text: str | None, scale: int = AMOUNT_SCALE) -> int:
    """Parse a currency cell into an integer amount of pesos.

    Separator rules
    ---------------
    - Both ``.`` and ``,`` present: ``.`` is the thousands separator and ``,``
      the decimal separator (``"1.234.567,89"``).
    - Only ``.`` present: thousands separator (``"1.234.567"``).
    - Only ``,`` present: US-style thousands separator (``"1,234,567"``).

    Examples
    --------
    >>> parse_amount("1.234.567")
    1234567000
    >>> parse_amount("1,234,567")
    1234567000
    >>> parse_amount("1.234.567,89")
    1234567890
    >>> parse_amount("abc")
    0

    Parameters
    ----------
    text
        Raw cell text, possibly with currency symbols and whitespace.
    scale
        Multiplier applied to the parsed value; cells are in thousands.

    Returns
    -------
    int
        Scaled amount rounded half-up, or ``0`` when the text is not a number.
    """
    if not text:
        return 0

    # Drop currency symbols, spaces and any other decoration
    cleaned = re.sub(r"[^\d.,\-]", "", str(text))
    if not cleaned:
        return 0

    if "." in cleaned and "," in cleaned:
        cleaned = cleaned.replace(".", "").replace(",", ".")
    elif "." in cleaned:
        cleaned = cleaned.replace(".", "")
    elif "," in cleaned:
        cleaned = cleaned.replace(",", "")

    try:
        number = Decimal(cleaned)
    except InvalidOperation:
        logger.debug("Could not parse amount: %r", text)
        return 0

    return int((number * scale).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def parse_percentage(text: str | None) -> float:
    """Parse a percentage cell such as ``"85,5 %"``, ``"1.234,5%"`` or ``"85.5%"``.

    Returns
    -------
    float
        Percentage value as printed (not clamped to 0-100), or ``0.0`` when the
        text cannot be parsed.
    """
    if not text:
        return 0.0

    cleaned = re.sub(r"[%\s]", "", str(text))
    # With a decimal comma, dots are thousands separators: "1.234,5" -> 1234.5
    if "," in cleaned:
        cleaned = cleaned.replace(".", "").replace(",", ".", 1)

    try:
        number = float(cleaned)
    except ValueError:
        logger.debug("Could not parse percentage: %r", text)
        return 0.0

    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def normalize_for_matching(text: str) -> str:
    """Strip accents, punctuation, and extra spaces for header matching."""
    text = unicodedata.normalize("NFD", text)
    text = "".join(c for c in text if not unicodedata.combining(c))
    text = text.lower()
    text = re.sub(r"[.,;:()\[\]]", " ", text)
    return re.sub(r"\s+", " ", text).strip()
