"""HTTP access to the BCN site using httpx.

Functions
---------
build_http_client : Create the shared httpx.AsyncClient with BCN headers
fetch_document : Fetch one period page, reporting failures as a FetchResult
probe_url : Lightweight liveness probe, never raises

Notes
-----
Requests follow redirects and identify themselves with a browser-like
User-Agent; BCN serves an error page to unknown clients. Only
``httpx.HTTPError`` and the overall deadline are treated as transport
failures, anything else propagates.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx

from bcn_presupuesto.config import get_bcn_config, setup_logging
from bcn_presupuesto.extractor.types import AvailabilityStatus, FailureKind, FetchResult

# Module-level logger for download operations
logger = setup_logging(__name__)


def build_http_client(config: dict[str, Any] | None = None) -> httpx.AsyncClient:
    """Create an async client configured for BCN.

    Parameters
    ----------
    config : dict[str, Any] | None, optional
        Preloaded config; ``None`` loads ``config/config.json``.

    Returns
    -------
    httpx.AsyncClient
        Client with the configured User-Agent, request timeout and redirect
        following. The caller owns it and must close it.
    """
    bcn_config = get_bcn_config(config)
    return httpx.AsyncClient(
        timeout=bcn_config["request_timeout"],
        headers={"User-Agent": bcn_config["user_agent"]},
        follow_redirects=True,
    )


def _describe(error: Exception) -> str:
    """Return a non-empty message for an exception."""
    return str(error) or type(error).__name__


async def fetch_document(client: httpx.AsyncClient, url: str, request_timeout: float = 30.0) -> FetchResult:
    """Fetch a BCN page within a hard deadline.

    Parameters
    ----------
    client : httpx.AsyncClient
        Client used for the request.
    url : str
        Page URL.
    request_timeout : float, optional
        Overall deadline in seconds; the request is abandoned when exceeded.

    Returns
    -------
    FetchResult
        Decoded body on HTTP 200; ``FailureKind.TRANSPORT`` with a detail
        message on timeout, connection error or any other status.
    """
    logger.info("Fetching: %s", url)

    try:
        response = await asyncio.wait_for(client.get(url, timeout=request_timeout), timeout=request_timeout)
    except (TimeoutError, httpx.TimeoutException) as e:
        logger.warning("Timed out after %.0fs fetching %s", request_timeout, url)
        return FetchResult(url=url, failure=FailureKind.TRANSPORT, detail=f"timeout: {_describe(e)}")
    except httpx.HTTPError as e:
        logger.warning("Request to %s failed: %s", url, _describe(e))
        return FetchResult(url=url, failure=FailureKind.TRANSPORT, detail=_describe(e))

    if response.status_code != 200:
        logger.warning("BCN returned status %d for %s", response.status_code, url)
        return FetchResult(
            url=url,
            status=response.status_code,
            failure=FailureKind.TRANSPORT,
            detail=f"BCN returned status {response.status_code}",
        )

    logger.debug("Fetched %s (%d bytes)", url, len(response.content))
    return FetchResult(url=url, html=response.text, status=response.status_code)


async def probe_url(client: httpx.AsyncClient, url: str, request_timeout: float = 5.0) -> AvailabilityStatus:
    """Check whether ``url`` answers with HTTP 200.

    Returns
    -------
    AvailabilityStatus
        ``status`` is the HTTP code, or ``0`` when no response was received.
    """
    try:
        response = await asyncio.wait_for(client.get(url, timeout=request_timeout), timeout=request_timeout)
    except (TimeoutError, httpx.HTTPError) as e:
        logger.debug("Availability probe for %s failed: %s", url, _describe(e))
        return AvailabilityStatus(available=False, status=0, message=_describe(e))

    if response.status_code == 200:
        return AvailabilityStatus(available=True, status=200, message="BCN service is available")
    return AvailabilityStatus(
        available=False,
        status=response.status_code,
        message=f"BCN returned status {response.status_code}",
    )
