"""Keyword classification of partida names into ministries.

BCN partidas are labelled with free text ("Ministerio de Educación",
"Presidencia de la República", "Secretaría General de Gobierno"...). The
classifier maps each label to a canonical ministry code by uppercase
substring match against an ordered keyword table.

Notes
-----
The keyword order is the tie-break for names that contain more than one
keyword and must not be reordered: a name mentioning both "ECONOMÍA" and
"ENERGÍA" resolves to ECONOMIA because that keyword is declared first.
"""

from __future__ import annotations

import re

# Ordered (keyword, code) pairs; first match wins
MINISTRY_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("EDUCACIÓN", "MINEDUC"),
    ("EDUCACION", "MINEDUC"),
    ("SALUD", "MINSAL"),
    ("INTERIOR", "INTERIOR"),
    ("DESARROLLO SOCIAL", "MDS"),
    ("DEFENSA", "DEFENSA"),
    ("OBRAS PÚBLICAS", "MOP"),
    ("JUSTICIA", "JUSTICIA"),
    ("TRABAJO", "TRABAJO"),
    ("HACIENDA", "HACIENDA"),
    ("RELACIONES EXTERIORES", "RREE"),
    ("ECONOMÍA", "ECONOMIA"),
    ("ECONOMIA", "ECONOMIA"),
    ("AGRICULTURA", "AGRICULTURA"),
    ("MINERÍA", "MINERIA"),
    ("MINERIA", "MINERIA"),
    ("TRANSPORTES", "MTT"),
    ("VIVIENDA", "MINVU"),
    ("MEDIO AMBIENTE", "MMA"),
    ("ENERGÍA", "ENERGIA"),
    ("ENERGIA", "ENERGIA"),
    ("CULTURAS", "CULTURAS"),
    ("CIENCIA", "CIENCIA"),
    ("BIENES NACIONALES", "BIENES"),
    ("MUJER", "MUJER"),
    ("DEPORTE", "DEPORTE"),
    ("PRESIDENCIA", "SEGPRES"),
    ("GOBIERNO", "SEGGOB"),
)

DEFAULT_CODE = "OTROS"
DEFAULT_NAME = "Otros Servicios Públicos"

# Tried in order against the original (non-uppercased) text
_NAME_PATTERNS = (
    re.compile(r"Ministerio\s+de\s+([^,\-]+)", re.IGNORECASE),
    re.compile(r"Ministerio\s+del?\s+([^,\-]+)", re.IGNORECASE),
    re.compile(r"Secretaría\s+General\s+de\s+([^,\-]+)", re.IGNORECASE),
)


def extract_ministry_code(partida_name: str) -> str:
    """Return the ministry code for a partida label, ``OTROS`` if none matches."""
    name = partida_name.upper()
    for keyword, code in MINISTRY_KEYWORDS:
        if keyword in name:
            return code
    return DEFAULT_CODE


def extract_ministry_name(partida_name: str) -> str:
    """Derive a display name from a partida label.

    Examples
    --------
    >>> extract_ministry_name("Ministerio de Salud - Subsecretaría")
    'Ministerio de Salud'
    >>> extract_ministry_name("Secretaría General de Gobierno")
    'Ministerio de Gobierno'
    >>> extract_ministry_name("Congreso Nacional - Senado")
    'Congreso Nacional'
    """
    for pattern in _NAME_PATTERNS:
        match = pattern.search(partida_name)
        if match:
            return f"Ministerio de {match.group(1).strip()}"

    return partida_name.split("-")[0].strip()


def classify(partida_name: str) -> tuple[str, str]:
    """Classify a partida label into ``(code, display_name)``.

    Total and deterministic: unmatched labels map to ``("OTROS", "Otros
    Servicios Públicos")``.
    """
    code = extract_ministry_code(partida_name)
    if code == DEFAULT_CODE:
        return DEFAULT_CODE, DEFAULT_NAME
    return code, extract_ministry_name(partida_name) or DEFAULT_NAME
