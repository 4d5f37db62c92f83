"""Tests for the TTL cache service and its backends."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import pytest

import bcn_presupuesto.config as config_module
from bcn_presupuesto.cache import (
    NO_EXPIRY,
    CacheService,
    JsonFileCacheBackend,
    MemoryCacheBackend,
    create_cache_service,
)

if TYPE_CHECKING:
    from pathlib import Path

    from tests.conftest import FakeClock


class BrokenBackend:
    """Backend whose every operation fails with an I/O error."""

    name = "broken"

    def __init__(self) -> None:
        self.calls = 0

    def _fail(self) -> None:
        self.calls += 1
        msg = "disk unavailable"
        raise OSError(msg)

    def get(self, key: str) -> Any | None:
        self._fail()

    def set(self, key: str, value: Any, ttl: float) -> None:
        self._fail()

    def delete(self, key: str) -> None:
        self._fail()

    def flush(self) -> None:
        self._fail()


# =============================================================================
# Tests for CacheService over memory
# =============================================================================


class TestMemoryCache:
    """Get/set/delete/flush and TTL handling with an injected clock."""

    def test_set_then_get(self, memory_cache: CacheService) -> None:
        asyncio.run(memory_cache.set("k", {"year": 2024}))
        assert asyncio.run(memory_cache.get("k")) == {"year": 2024}

    def test_missing_key(self, memory_cache: CacheService) -> None:
        assert asyncio.run(memory_cache.get("missing")) is None

    def test_entry_expires_after_ttl(self, memory_cache: CacheService, clock: FakeClock) -> None:
        asyncio.run(memory_cache.set("k", "v", ttl=60))

        clock.advance(59)
        assert asyncio.run(memory_cache.get("k")) == "v"

        clock.advance(1)
        assert asyncio.run(memory_cache.get("k")) is None

    def test_default_ttl_applies_when_none(self, clock: FakeClock) -> None:
        cache = CacheService(MemoryCacheBackend(clock=clock), default_ttl=10)
        asyncio.run(cache.set("k", "v"))

        clock.advance(11)
        assert asyncio.run(cache.get("k")) is None

    def test_no_expiry(self, memory_cache: CacheService, clock: FakeClock) -> None:
        asyncio.run(memory_cache.set("k", "v", ttl=NO_EXPIRY))

        clock.advance(10 * 365 * 86400)
        assert asyncio.run(memory_cache.get("k")) == "v"

    def test_delete_and_flush(self, memory_cache: CacheService) -> None:
        async def scenario() -> tuple[Any, Any]:
            await memory_cache.set("a", 1)
            await memory_cache.set("b", 2)
            await memory_cache.delete("a")
            deleted = await memory_cache.get("a")
            await memory_cache.flush()
            return deleted, await memory_cache.get("b")

        assert asyncio.run(scenario()) == (None, None)

    def test_stored_value_is_a_copy(self, memory_cache: CacheService) -> None:
        value = {"lines": [1, 2]}
        asyncio.run(memory_cache.set("k", value))
        value["lines"].append(3)

        cached = asyncio.run(memory_cache.get("k"))
        cached["lines"].append(4)

        assert asyncio.run(memory_cache.get("k")) == {"lines": [1, 2]}

    def test_backend_len(self) -> None:
        backend = MemoryCacheBackend()
        backend.set("a", 1, NO_EXPIRY)
        assert len(backend) == 1


# =============================================================================
# Tests for JsonFileCacheBackend
# =============================================================================


class TestFileCache:
    def test_persists_across_instances(self, tmp_path: Path) -> None:
        first = CacheService(JsonFileCacheBackend(tmp_path))
        asyncio.run(first.set("bcn_budget_2024", {"year": 2024, "source": "BCN"}))

        second = CacheService(JsonFileCacheBackend(tmp_path))
        assert asyncio.run(second.get("bcn_budget_2024")) == {"year": 2024, "source": "BCN"}
        assert (tmp_path / "bcn_budget_2024.json").exists()

    def test_expired_file_removed(self, tmp_path: Path, clock: FakeClock) -> None:
        backend = JsonFileCacheBackend(tmp_path, clock=clock)
        backend.set("k", "v", 5)

        clock.advance(5)
        assert backend.get("k") is None
        assert not (tmp_path / "k.json").exists()

    def test_no_expiry(self, tmp_path: Path, clock: FakeClock) -> None:
        backend = JsonFileCacheBackend(tmp_path, clock=clock)
        backend.set("stale_k", "v", NO_EXPIRY)

        clock.advance(10**9)
        assert backend.get("stale_k") == "v"

    def test_unsafe_key_characters(self, tmp_path: Path) -> None:
        backend = JsonFileCacheBackend(tmp_path)
        backend.set("a/b:c", 1, NO_EXPIRY)

        assert backend.get("a/b:c") == 1
        assert list(tmp_path.iterdir()) == [tmp_path / "a_b_c.json"]

    def test_flush_and_delete(self, tmp_path: Path) -> None:
        backend = JsonFileCacheBackend(tmp_path)
        backend.set("a", 1, NO_EXPIRY)
        backend.set("b", 2, NO_EXPIRY)

        backend.delete("a")
        assert backend.get("a") is None

        backend.flush()
        assert list(tmp_path.glob("*.json")) == []

    def test_flush_missing_directory(self, tmp_path: Path) -> None:
        JsonFileCacheBackend(tmp_path / "absent").flush()


# =============================================================================
# Tests for degradation
# =============================================================================


class TestDegradation:
    """Backend failures are logged and the service continues in memory."""

    def test_get_failure_returns_none(self) -> None:
        cache = CacheService(BrokenBackend())

        assert asyncio.run(cache.get("k")) is None
        assert cache.is_degraded
        assert cache.backend_name == "memory"

    def test_set_failure_retries_in_memory(self) -> None:
        backend = BrokenBackend()
        cache = CacheService(backend)

        asyncio.run(cache.set("k", "v"))

        assert backend.calls == 1
        assert cache.is_degraded
        assert asyncio.run(cache.get("k")) == "v"

    def test_unserializable_value_in_file_backend(self, tmp_path: Path) -> None:
        cache = CacheService(JsonFileCacheBackend(tmp_path))

        asyncio.run(cache.set("k", {"bad": object()}))

        assert cache.is_degraded
        assert list(tmp_path.glob("*.json")) == []

    def test_corrupt_file_degrades(self, tmp_path: Path) -> None:
        (tmp_path / "k.json").write_text("{not json", encoding="utf-8")
        cache = CacheService(JsonFileCacheBackend(tmp_path))

        assert asyncio.run(cache.get("k")) is None
        assert cache.is_degraded

    def test_memory_only_service_is_not_degraded(self) -> None:
        cache = CacheService()
        assert cache.backend_name == "memory"
        assert not cache.is_degraded


# =============================================================================
# Tests for create_cache_service
# =============================================================================


class TestCreateCacheService:
    @pytest.fixture(autouse=True)
    def _no_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(config_module, "CACHE_BACKEND", "")

    def test_memory_backend(self) -> None:
        cache = create_cache_service({"cache": {"backend": "memory", "default_ttl": 42}})
        assert cache.backend_name == "memory"
        assert cache.default_ttl == 42

    def test_file_backend(self, tmp_path: Path) -> None:
        cache = create_cache_service({"cache": {"backend": "file"}}, directory=tmp_path)
        assert cache.backend_name == "file"

    def test_unknown_backend_uses_memory(self) -> None:
        cache = create_cache_service({"cache": {"backend": "redis"}})
        assert cache.backend_name == "memory"

    def test_environment_override(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setattr(config_module, "CACHE_BACKEND", "file")
        cache = create_cache_service({"cache": {"backend": "memory"}}, directory=tmp_path)
        assert cache.backend_name == "file"
