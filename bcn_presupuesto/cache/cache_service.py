"""Key-value cache with TTL for BCN snapshots.

The service always owns an in-memory store and can be given an external
backend (a directory of JSON files) that survives between CLI runs. Backend
failures never reach the caller: they are logged and the service switches
to its in-memory store.

Values must be JSON-serializable; both backends store serialized copies so a
cached value cannot be mutated through a reference held by the caller.

TTL convention
--------------
``ttl=None`` applies the service default; ``ttl=0`` (:data:`NO_EXPIRY`) keeps
the entry until it is deleted or flushed.
"""

from __future__ import annotations

import json
import re
import time
from typing import TYPE_CHECKING, Any, Protocol

from bcn_presupuesto.config import CACHE_DIR, get_cache_config, setup_logging

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

logger = setup_logging(__name__)

NO_EXPIRY = 0

# Errors a backend may raise for I/O or serialization problems
CACHE_ERRORS = (OSError, ValueError, TypeError)


class CacheBackend(Protocol):
    """Synchronous storage used by :class:`CacheService`."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any, ttl: float) -> None: ...

    def delete(self, key: str) -> None: ...

    def flush(self) -> None: ...


class MemoryCacheBackend:
    """Process-local store of JSON strings with expiry timestamps."""

    name = "memory"

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[str, float | None]] = {}

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None

        payload, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._entries[key]
            return None
        return json.loads(payload)

    def set(self, key: str, value: Any, ttl: float) -> None:
        expires_at = self._clock() + ttl if ttl > 0 else None
        self._entries[key] = (json.dumps(value), expires_at)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def flush(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class JsonFileCacheBackend:
    """One JSON file per key under a directory, with wall-clock expiry."""

    name = "file"

    def __init__(self, directory: Path, clock: Callable[[], float] = time.time) -> None:
        self.directory = directory
        self._clock = clock

    def _path_for(self, key: str) -> Path:
        safe_key = re.sub(r"[^\w\-.]", "_", key)
        return self.directory / f"{safe_key}.json"

    def get(self, key: str) -> Any | None:
        path = self._path_for(key)
        if not path.exists():
            return None

        with path.open(encoding="utf-8") as f:
            entry = json.load(f)

        expires_at = entry.get("expires_at")
        if expires_at is not None and self._clock() >= expires_at:
            path.unlink(missing_ok=True)
            return None
        return entry.get("value")

    def set(self, key: str, value: Any, ttl: float) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        entry = {
            "key": key,
            "expires_at": self._clock() + ttl if ttl > 0 else None,
            "value": value,
        }
        # Serialize before opening so a bad value does not truncate the file
        payload = json.dumps(entry, ensure_ascii=False)
        self._path_for(key).write_text(payload, encoding="utf-8")

    def delete(self, key: str) -> None:
        self._path_for(key).unlink(missing_ok=True)

    def flush(self) -> None:
        if not self.directory.exists():
            return
        for path in self.directory.glob("*.json"):
            path.unlink(missing_ok=True)


class CacheService:
    """Async cache facade that degrades to memory when its backend fails.

    Parameters
    ----------
    backend : CacheBackend | None, optional
        External backend; ``None`` uses the in-memory store only.
    default_ttl : float, optional
        TTL in seconds applied when :meth:`set` gets ``ttl=None``.
    """

    def __init__(self, backend: CacheBackend | None = None, default_ttl: float = 3600) -> None:
        self._memory = MemoryCacheBackend()
        self._backend: CacheBackend = backend if backend is not None else self._memory
        self.default_ttl = default_ttl
        self._external_failed = False

    @property
    def backend_name(self) -> str:
        return getattr(self._backend, "name", type(self._backend).__name__)

    @property
    def is_degraded(self) -> bool:
        """True when an external backend was configured but has failed."""
        return self._backend is self._memory and self._external_failed

    def _degrade(self, operation: str, error: Exception) -> None:
        """Log a backend error and switch to the in-memory store."""
        if self._backend is self._memory:
            logger.error("Cache %s error: %s", operation, error)
            return

        logger.warning(
            "Cache backend '%s' failed on %s (%s); falling back to in-memory cache",
            self.backend_name,
            operation,
            error,
        )
        self._backend = self._memory
        self._external_failed = True

    async def get(self, key: str) -> Any | None:
        """Return the cached value for ``key``, or ``None`` when absent/expired."""
        try:
            return self._backend.get(key)
        except CACHE_ERRORS as e:
            self._degrade("get", e)
            return None

    async def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store ``value`` under ``key``; see the module notes for ``ttl``."""
        effective_ttl = self.default_ttl if ttl is None else ttl
        try:
            self._backend.set(key, value, effective_ttl)
        except CACHE_ERRORS as e:
            was_external = self._backend is not self._memory
            self._degrade("set", e)
            if was_external:
                await self.set(key, value, ttl)

    async def delete(self, key: str) -> None:
        try:
            self._backend.delete(key)
        except CACHE_ERRORS as e:
            self._degrade("delete", e)

    async def flush(self) -> None:
        try:
            self._backend.flush()
        except CACHE_ERRORS as e:
            self._degrade("flush", e)


def create_cache_service(config: dict[str, Any] | None = None, directory: Path | None = None) -> CacheService:
    """Build a :class:`CacheService` from the ``cache`` config section.

    Parameters
    ----------
    config : dict[str, Any] | None, optional
        Preloaded config; ``None`` loads ``config/config.json``.
    directory : Path | None, optional
        Directory for the file backend; defaults to ``CACHE_DIR``.

    Returns
    -------
    CacheService
        Service using the JSON file backend when ``backend == "file"``,
        memory otherwise.
    """
    cache_config = get_cache_config(config)
    backend_name = cache_config.get("backend", "memory")
    default_ttl = cache_config.get("default_ttl", 3600)

    if backend_name == "file":
        cache_dir = directory if directory is not None else CACHE_DIR
        logger.info("Using file cache at %s", cache_dir)
        return CacheService(JsonFileCacheBackend(cache_dir), default_ttl=default_ttl)

    if backend_name != "memory":
        logger.warning("Unknown cache backend '%s', using in-memory cache", backend_name)
    else:
        logger.debug("Using in-memory cache")
    return CacheService(default_ttl=default_ttl)
