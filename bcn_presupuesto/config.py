"""Configuration management for bcn-presupuesto.

This module centralizes file-system paths, environment variables, and the
``config/config.json`` loader used by the BCN ingestion pipeline.

Configuration file
------------------
``config/config.json`` holds the BCN source settings (base URL, request
headers, timeouts, supported year span), the cache policy (backend, TTLs and
key prefixes) and the table locator markers.

Environment variables
---------------------
``DATA_DIR``, ``LOGS_DIR``, and ``CACHE_DIR`` override default directories;
``CACHE_BACKEND`` (``memory`` or ``file``) overrides the configured cache
backend. Directories are created eagerly on import so downstream callers can
rely on their existence.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, cast

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
CONFIG_DIR = PROJECT_ROOT / "config"
DATA_DIR = Path(os.getenv("DATA_DIR", PROJECT_ROOT / "data"))
LOGS_DIR = Path(os.getenv("LOGS_DIR", PROJECT_ROOT / "logs"))
CACHE_DIR = Path(os.getenv("CACHE_DIR", DATA_DIR / "cache"))

# Ensure directories exist
DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(parents=True, exist_ok=True)
CACHE_DIR.mkdir(parents=True, exist_ok=True)

CACHE_BACKEND = os.getenv("CACHE_BACKEND", "")

# Built-in defaults; config.json values take precedence
DEFAULT_BCN_CONFIG: dict[str, Any] = {
    "name": "BCN - Biblioteca del Congreso Nacional",
    "base_url": "https://www.bcn.cl/presupuesto",
    "period_path": "periodo/{year}",
    "user_agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    ),
    "request_timeout": 30.0,
    "availability_timeout": 5.0,
    "first_year": 2010,
    "years_ahead": 1,
    "amount_scale": 1000,
}

DEFAULT_CACHE_CONFIG: dict[str, Any] = {
    "backend": "memory",
    "default_ttl": 3600,
    "budget_ttl": 86400,
    "key_prefix": "bcn_budget_",
    "stale_prefix": "stale_",
}

DEFAULT_TABLE_CONFIG: dict[str, Any] = {
    "header_markers": ["partida", "institución", "aprobado", "vigente"],
    "min_cells": 3,
}


def get_config() -> dict[str, Any]:
    """Load the primary project configuration.

    Returns
    -------
    dict[str, Any]
        Parsed contents of ``config/config.json``.

    Raises
    ------
    FileNotFoundError
        If ``config/config.json`` is missing.
    json.JSONDecodeError
        If the file exists but is not valid JSON.
    """
    config_path = CONFIG_DIR / "config.json"
    if not config_path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    with Path(config_path).open(encoding="utf-8") as f:
        return json.load(f)  # type: ignore[no-any-return]


def setup_logging(name: str = "bcn_presupuesto") -> logging.Logger:
    """Configure a console+file logger if not already present.

    Parameters
    ----------
    name : str, optional
        Logger namespace; reused to avoid duplicate handlers.

    Returns
    -------
    logging.Logger
        Logger with INFO-level console handler and DEBUG-level daily file
        handler under ``LOGS_DIR``.
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        logger.setLevel(logging.DEBUG)

        # Console handler
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.INFO)
        console_format = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
        console_handler.setFormatter(console_format)
        logger.addHandler(console_handler)

        # File handler
        log_filename = f"{datetime.now(UTC).strftime('%Y-%m-%d')}_run.log"
        file_handler = logging.FileHandler(LOGS_DIR / log_filename)
        file_handler.setLevel(logging.DEBUG)
        file_format = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        file_handler.setFormatter(file_format)
        logger.addHandler(file_handler)

    return logger


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge dictionaries, allowing overrides in ``overlay``.

    Parameters
    ----------
    base : dict[str, Any]
        Original mapping.
    overlay : dict[str, Any]
        Values that override or extend ``base``.

    Returns
    -------
    dict[str, Any]
        New merged mapping.
    """
    result = base.copy()
    for key, value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


# =============================================================================
# Section Loaders
# =============================================================================


def get_bcn_config(config: dict[str, Any] | None = None) -> dict[str, Any]:
    """Return BCN source settings merged over the built-in defaults.

    Parameters
    ----------
    config : dict[str, Any] | None, optional
        Preloaded config; when ``None`` it is fetched via :func:`get_config`.

    Returns
    -------
    dict[str, Any]
        Source name, base URL, period path template, user agent, timeouts,
        supported year span and amount scale.
    """
    if config is None:
        config = get_config()

    bcn_config = config.get("sources", {}).get("bcn", {})
    return _deep_merge(DEFAULT_BCN_CONFIG, bcn_config)


def get_cache_config(config: dict[str, Any] | None = None) -> dict[str, Any]:
    """Return cache policy settings; ``CACHE_BACKEND`` wins over the file."""
    if config is None:
        config = get_config()

    cache_config = _deep_merge(DEFAULT_CACHE_CONFIG, config.get("cache", {}))
    if CACHE_BACKEND:
        cache_config["backend"] = CACHE_BACKEND
    return cache_config


def get_table_config(config: dict[str, Any] | None = None) -> dict[str, Any]:
    """Return table locator settings (header markers, minimum cell count)."""
    if config is None:
        config = get_config()

    return _deep_merge(DEFAULT_TABLE_CONFIG, config.get("table", {}))


def get_available_years(
    first_year: int = 2010,
    years_ahead: int = 1,
    today: datetime | None = None,
) -> list[int]:
    """Return the span of fiscal years published by BCN.

    Parameters
    ----------
    first_year : int, optional
        Earliest published year.
    years_ahead : int, optional
        How many years past the current one are accepted (budget bills are
        published before the fiscal year starts).
    today : datetime | None, optional
        Reference date; defaults to now (UTC).

    Returns
    -------
    list[int]
        Ascending list from ``first_year`` to ``current_year + years_ahead``.
    """
    reference = today if today is not None else datetime.now(UTC)
    return list(range(first_year, reference.year + years_ahead + 1))


def format_budget_url(year: int, config: dict[str, Any] | None = None) -> str:
    """Build the BCN period URL for a fiscal year.

    Examples
    --------
    >>> format_budget_url(2024, {"sources": {"bcn": {}}})
    'https://www.bcn.cl/presupuesto/periodo/2024'
    """
    bcn_config = get_bcn_config(config)
    base_url = cast("str", bcn_config["base_url"]).rstrip("/")
    period_path = cast("str", bcn_config["period_path"]).format(year=year)
    return f"{base_url}/{period_path}"


def format_snapshot_filename(year: int, extension: str = "json", config: dict[str, Any] | None = None) -> str:
    """Render the output filename for a year (e.g. ``bcn_presupuesto_2024.json``)."""
    if config is None:
        config = get_config()

    prefix = config.get("output", {}).get("file_prefix", "bcn_presupuesto")
    return f"{prefix}_{year}.{extension}"
