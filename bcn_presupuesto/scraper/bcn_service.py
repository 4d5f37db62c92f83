"""Cache-backed BCN budget fetch orchestrator.

Source: https://www.bcn.cl/presupuesto/periodo/<year>

Flow per call::

    cache hit ──────────────────────────────────────────────► return
    cache miss → year check → fetch → extract → store ──────► return
                      │          │        │
                      └──────────┴────────┴─► stale copy ───► return
                                                  │
                                                  └─► fallback snapshot

Failures of the three middle stages are reported as
:class:`FailureKind` values and all recover the same way: the last good
value from the ``stale_`` namespace, else an empty fallback snapshot. The
caller never sees an exception for these documented failures.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from bcn_presupuesto.cache import NO_EXPIRY, CacheService, create_cache_service
from bcn_presupuesto.config import (
    format_budget_url,
    get_available_years,
    get_bcn_config,
    get_cache_config,
    get_config,
    get_table_config,
    setup_logging,
)
from bcn_presupuesto.extractor.fallback import build_fallback_snapshot
from bcn_presupuesto.extractor.table_parser import locate_and_extract
from bcn_presupuesto.extractor.types import (
    AvailabilityStatus,
    BudgetLine,
    BudgetSnapshot,
    BudgetTotals,
    FailureKind,
    FetchResult,
    StandardBudget,
)
from bcn_presupuesto.scraper.downloader import build_http_client, fetch_document, probe_url
from bcn_presupuesto.transformer.normalizer import transform_to_standard_format

if TYPE_CHECKING:
    import httpx

logger = setup_logging(__name__)


class BcnService:
    """Fetch, parse and cache BCN budget snapshots.

    Parameters
    ----------
    cache : CacheService | None, optional
        Cache used for fresh and stale entries; built from config when
        ``None``.
    http_client : httpx.AsyncClient | None, optional
        Client used for every request; when ``None`` a client is created
        (and closed) per request.
    config : dict[str, Any] | None, optional
        Project config; ``None`` loads ``config/config.json``.
    today : datetime | None, optional
        Reference date for the supported year span.
    """

    def __init__(
        self,
        cache: CacheService | None = None,
        http_client: httpx.AsyncClient | None = None,
        config: dict[str, Any] | None = None,
        today: datetime | None = None,
    ) -> None:
        self._config = config if config is not None else get_config()
        self.bcn_config = get_bcn_config(self._config)
        self.cache_config = get_cache_config(self._config)
        self.table_config = get_table_config(self._config)

        self.cache = cache if cache is not None else create_cache_service(self._config)
        self._http_client = http_client

        self.base_url: str = self.bcn_config["base_url"]
        self.available_years = get_available_years(
            first_year=self.bcn_config["first_year"],
            years_ahead=self.bcn_config["years_ahead"],
            today=today,
        )
        # One lock per year so concurrent callers share a single fetch
        self._locks: dict[int, asyncio.Lock] = {}

    # -------------------------------------------------------------------------
    # Keys and URLs
    # -------------------------------------------------------------------------

    def cache_key(self, year: int) -> str:
        return f"{self.cache_config['key_prefix']}{year}"

    def stale_key(self, year: int) -> str:
        return f"{self.cache_config['stale_prefix']}{self.cache_key(year)}"

    def budget_url(self, year: int) -> str:
        return format_budget_url(year, self._config)

    def get_available_years(self) -> list[int]:
        """Return the supported fiscal years, oldest first."""
        return list(self.available_years)

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    async def get_budget_data(self, year: int) -> BudgetSnapshot:
        """Return the budget snapshot for ``year``.

        Parameters
        ----------
        year : int
            Fiscal year.

        Returns
        -------
        BudgetSnapshot
            Cached, freshly extracted, stale, or fallback snapshot, in that
            order of preference.
        """
        # Unsupported years never fetch, so they need no lock.
        if year not in self.available_years:
            return await self._get_budget_data(year)

        lock = self._locks.setdefault(year, asyncio.Lock())
        async with lock:
            return await self._get_budget_data(year)

    async def check_availability(self) -> AvailabilityStatus:
        """Probe the BCN base URL with the short availability timeout."""
        timeout = self.bcn_config["availability_timeout"]
        if self._http_client is not None:
            return await probe_url(self._http_client, self.base_url, timeout)

        async with build_http_client(self._config) as client:
            return await probe_url(client, self.base_url, timeout)

    def get_fallback_data(self, year: int) -> BudgetSnapshot:
        return build_fallback_snapshot(year, self.budget_url(year))

    def transform_to_standard_format(self, snapshot: BudgetSnapshot | None) -> StandardBudget | None:
        """Reshape a snapshot into the standard contract (``None`` for fallbacks)."""
        return transform_to_standard_format(snapshot)

    # -------------------------------------------------------------------------
    # Pipeline stages
    # -------------------------------------------------------------------------

    async def _get_budget_data(self, year: int) -> BudgetSnapshot:
        cached = await self.cache.get(self.cache_key(year))
        if cached is not None:
            logger.info("BCN cache hit for year %s", year)
            return BudgetSnapshot.from_dict(cached)

        url = self.budget_url(year)
        logger.info("Fetching BCN data for year %s...", year)

        if year not in self.available_years:
            return await self._recover(
                year,
                url,
                FailureKind.UNSUPPORTED_YEAR,
                f"Year {year} not available in BCN database",
            )

        fetch = await self._fetch(url)
        if not fetch.ok:
            return await self._recover(year, url, fetch.failure or FailureKind.TRANSPORT, fetch.detail)

        outcome = locate_and_extract(
            fetch.html,
            year,
            header_markers=self.table_config["header_markers"],
            min_cells=self.table_config["min_cells"],
            amount_scale=self.bcn_config["amount_scale"],
        )
        if not outcome.ok:
            return await self._recover(year, url, outcome.failure or FailureKind.EXTRACTION, outcome.detail)

        snapshot = self._build_snapshot(year, url, outcome.lines)
        await self._store(year, snapshot)
        return snapshot

    async def _fetch(self, url: str) -> FetchResult:
        timeout = self.bcn_config["request_timeout"]
        if self._http_client is not None:
            return await fetch_document(self._http_client, url, timeout)

        async with build_http_client(self._config) as client:
            return await fetch_document(client, url, timeout)

    def _build_snapshot(self, year: int, url: str, lines: list[BudgetLine]) -> BudgetSnapshot:
        return BudgetSnapshot(
            year=year,
            source=self.bcn_config["name"],
            source_url=url,
            last_updated=datetime.now(UTC).isoformat(),
            is_real_data=True,
            totals=BudgetTotals.from_lines(lines),
            lines=tuple(lines),
        )

    async def _store(self, year: int, snapshot: BudgetSnapshot) -> None:
        """Write the fresh entry (with TTL) and the stale copy (no expiry)."""
        payload = snapshot.to_dict()
        await self.cache.set(self.cache_key(year), payload, self.cache_config["budget_ttl"])
        await self.cache.set(self.stale_key(year), payload, NO_EXPIRY)
        logger.debug("Cached BCN snapshot for %s (%d partidas)", year, snapshot.lines_count)

    async def _recover(self, year: int, url: str, failure: FailureKind, detail: str | None) -> BudgetSnapshot:
        """Serve the stale copy for ``year`` if any, else the fallback snapshot."""
        logger.error("Error fetching BCN data for year %s [%s]: %s", year, failure.value, detail)

        stale = await self.cache.get(self.stale_key(year))
        if stale is not None:
            logger.info("Returning stale BCN data for year %s", year)
            return BudgetSnapshot.from_dict(stale)

        return build_fallback_snapshot(year, url)
