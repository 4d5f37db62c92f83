"""bcn-presupuesto: Chilean national budget ingestion from BCN.

The package fetches the per-year budget pages published by the Biblioteca del
Congreso Nacional, extracts the partida table, rolls partidas up by ministry,
and caches results with a stale fallback so a dashboard always has something
to show.

Architecture
------------
* ``scraper``: httpx downloader and the cache-backed :class:`BcnService`.
* ``extractor``: record types, lxml table location/row extraction, fallback.
* ``transformer``: ministry keyword classifier and per-ministry aggregation.
* ``cache``: async TTL cache with in-memory and JSON-file backends.
* ``writer``: JSON snapshots and ministry CSV/Excel exports.

Configuration
-------------
Source and cache settings live in ``config/config.json``. Paths default to
the ``data/`` and ``logs/`` trees but respect ``DATA_DIR``, ``LOGS_DIR`` and
``CACHE_DIR`` overrides; ``CACHE_BACKEND`` selects ``memory`` or ``file``.

Examples
--------
Fetch 2024 and print the ministry report:

    >>> python -m bcn_presupuesto.main --year 2024

From code:

    >>> import asyncio
    >>> from bcn_presupuesto.scraper import BcnService
    >>> snapshot = asyncio.run(BcnService().get_budget_data(2024))
"""

__version__ = "0.1.0"
__all__ = ["__version__"]


def get_version() -> str:
    """Return the current package version string."""
    return __version__


__all__.append("get_version")
