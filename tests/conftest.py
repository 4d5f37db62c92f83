"""Pytest configuration for bcn_presupuesto tests.

This module provides:
- HTML builders for BCN-like budget pages
- A recording httpx MockTransport handler (request counter)
- A service factory wiring BcnService to the mock client and an in-memory cache
"""

from __future__ import annotations

import copy
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import httpx
import pytest

from bcn_presupuesto.cache import CacheService, MemoryCacheBackend
from bcn_presupuesto.config import get_bcn_config, get_config
from bcn_presupuesto.scraper import BcnService

REFERENCE_DATE = datetime(2024, 6, 1, tzinfo=UTC)

STANDARD_HEADERS = [
    "Partida",
    "Institución",
    "Aprobado",
    "Modificaciones",
    "Vigente",
    "Devengado",
    "% Ejecución",
]

STANDARD_ROWS = [
    ["01", "Presidencia de la República", "20.000", "1.000", "21.000", "10.500", "50,0"],
    ["09", "Ministerio de Educación", "1.000.000", "200.000", "1.200.000", "900.000", "75,0"],
    ["16", "Ministerio de Salud", "800.000", "0", "800.000", "600.000", "75,0"],
    ["11", "Ministerio de Defensa Nacional", "0", "0", "0", "0", "0"],
]


def build_table(
    headers: list[str],
    rows: list[list[str]],
    with_thead: bool = True,
    with_tbody: bool = True,
) -> str:
    """Render a table; headers as ``th`` cells, data as ``td`` cells."""
    header_row = "<tr>" + "".join(f"<th>{label}</th>" for label in headers) + "</tr>"
    body_rows = "".join("<tr>" + "".join(f"<td>{cell}</td>" for cell in row) + "</tr>" for row in rows)

    head = f"<thead>{header_row}</thead>" if with_thead else header_row
    body = f"<tbody>{body_rows}</tbody>" if with_tbody else body_rows
    return f"<table>{head}{body}</table>"


def build_page(*tables: str) -> str:
    """Wrap tables in a minimal BCN-like page with a navigation table first."""
    navigation = "<table><tr><td>Inicio</td><td>Presupuesto</td><td>Contacto</td></tr></table>"
    return (
        "<!DOCTYPE html><html><head><meta charset='utf-8'><title>Presupuesto</title></head>"
        f"<body>{navigation}{''.join(tables)}</body></html>"
    )


@pytest.fixture
def standard_page() -> str:
    """BCN page with a full seven-column partida table."""
    return build_page(build_table(STANDARD_HEADERS, STANDARD_ROWS))


@pytest.fixture
def test_config() -> dict[str, Any]:
    """Project config forced onto the in-memory cache backend."""
    config = copy.deepcopy(get_config())
    config.setdefault("cache", {})["backend"] = "memory"
    return config


class RecordingHandler:
    """MockTransport handler that records requests and delegates responses."""

    def __init__(self, respond: Callable[[httpx.Request], httpx.Response]) -> None:
        self.respond = respond
        self.requests: list[httpx.Request] = []

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)


def html_response(body: str, status_code: int = 200) -> Callable[[httpx.Request], httpx.Response]:
    """Return a responder serving ``body`` with ``status_code``."""

    def respond(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, text=body, headers={"content-type": "text/html; charset=utf-8"})

    return respond


def raising(error: type[httpx.HTTPError]) -> Callable[[httpx.Request], httpx.Response]:
    """Return a responder that raises a transport error."""

    def respond(request: httpx.Request) -> httpx.Response:
        raise error("simulated failure", request=request)

    return respond


class FakeClock:
    """Manually advanced monotonic clock for TTL tests."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_cache(clock: FakeClock) -> CacheService:
    """Cache service over a memory backend driven by the fake clock."""
    return CacheService(MemoryCacheBackend(clock=clock))


@pytest.fixture
def make_service(
    test_config: dict[str, Any],
    memory_cache: CacheService,
) -> Callable[..., tuple[BcnService, RecordingHandler]]:
    """Factory: ``make_service(responder)`` → ``(service, handler)``."""

    def factory(
        respond: Callable[[httpx.Request], httpx.Response],
        cache: CacheService | None = None,
    ) -> tuple[BcnService, RecordingHandler]:
        handler = RecordingHandler(respond)
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(handler),
            headers={"User-Agent": get_bcn_config(test_config)["user_agent"]},
        )
        service = BcnService(
            cache=cache if cache is not None else memory_cache,
            http_client=client,
            config=test_config,
            today=REFERENCE_DATE,
        )
        return service, handler

    return factory
