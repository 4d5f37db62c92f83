"""Scraper module for the BCN budget site.

Primary entry points:
- BcnService: cache-backed fetch orchestrator (get_budget_data, check_availability)
- fetch_document: fetch one period page with a hard deadline
- probe_url: liveness probe used by check_availability
"""

from bcn_presupuesto.scraper.bcn_service import BcnService
from bcn_presupuesto.scraper.downloader import build_http_client, fetch_document, probe_url

__all__ = [
    # Orchestrator
    "BcnService",
    # HTTP helpers
    "build_http_client",
    "fetch_document",
    "probe_url",
]
