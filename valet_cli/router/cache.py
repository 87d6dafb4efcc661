"""
Site path caching with TTL expiry.

Resolved project directories are kept for an hour so the project paths are
not scanned on every request. Entries are never invalidated eagerly: a
directory that moves is picked up once its entry expires.

Storage is pluggable:
- MemoryStore: per-process dict, thread-safe
- FileStore: JSON document shared by all router workers on the machine
"""

import json
import logging
import os
import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger("valet.router.cache")

DEFAULT_SITE_PATH_TTL = 3600.0
CACHE_NAMESPACE = "valet_site_path"

Clock = Callable[[], float]


class CacheStore(Protocol):
    """Keyed storage with per-entry expiry."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str, ttl: float) -> None: ...


class MemoryStore:
    """In-process store. Expired entries are dropped when read."""

    def __init__(self, clock: Clock = time.time) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: str, ttl: float) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class FileStore:
    """
    JSON-file store shared between processes.

    Writes go through a temp file and ``replace`` so readers never see a
    partial document. Concurrent writers may drop each other's entries,
    which only costs another filesystem scan.
    """

    def __init__(self, path: Path, clock: Clock = time.time) -> None:
        self.path = Path(path)
        self._clock = clock
        self._lock = threading.Lock()

    def _read(self) -> dict[str, list]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable cache file %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> str | None:
        entry = self._read().get(key)
        if not isinstance(entry, list) or len(entry) != 2:
            return None
        value, expires_at = entry
        if not isinstance(expires_at, (int, float)) or self._clock() >= expires_at:
            return None
        return value

    def set(self, key: str, value: str, ttl: float) -> None:
        with self._lock:
            now = self._clock()
            data = {
                k: v
                for k, v in self._read().items()
                if isinstance(v, list) and len(v) == 2 and isinstance(v[1], (int, float)) and v[1] > now
            }
            data[key] = [value, now + ttl]
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_name(f"{self.path.name}.{os.getpid()}.tmp")
            tmp.write_text(json.dumps(data), encoding="utf-8")
            tmp.replace(self.path)


class SitePathCache:
    """
    Site name -> resolved project directory, with hit/miss metrics.
    """

    def __init__(
        self,
        store: CacheStore | None = None,
        ttl: float = DEFAULT_SITE_PATH_TTL,
        namespace: str = CACHE_NAMESPACE,
    ) -> None:
        self.store = store if store is not None else MemoryStore()
        self.ttl = ttl
        self.namespace = namespace
        self._hits = 0
        self._misses = 0
        self._writes = 0
        self._lock = threading.Lock()

    def _key(self, site_name: str) -> str:
        return f"{self.namespace}{site_name}"

    def get(self, site_name: str) -> str | None:
        """Return the cached path, or None when absent or expired."""
        value = self.store.get(self._key(site_name))
        with self._lock:
            if value is None:
                self._misses += 1
            else:
                self._hits += 1
        return value

    def put(self, site_name: str, path: str) -> None:
        """Store a freshly resolved path, replacing any previous entry."""
        self.store.set(self._key(site_name), path, self.ttl)
        with self._lock:
            self._writes += 1
        logger.debug("Cached site path %s -> %s for %ss", site_name, path, self.ttl)

    def get_metrics(self) -> dict[str, Any]:
        with self._lock:
            hits, misses, writes = self._hits, self._misses, self._writes
        total = hits + misses
        return {
            "cache_hits": hits,
            "cache_misses": misses,
            "hit_rate": hits / total if total else 0.0,
            "writes": writes,
            "ttl_seconds": self.ttl,
            "store": type(self.store).__name__,
        }


def site_path_ttl() -> float:
    """TTL from VALET_SITE_CACHE_TTL, falling back to the default on a bad value."""
    value = os.getenv("VALET_SITE_CACHE_TTL", "").strip()
    if not value:
        return DEFAULT_SITE_PATH_TTL
    try:
        ttl = float(value)
    except ValueError:
        ttl = -1.0
    if not ttl >= 0:
        logger.warning("Invalid VALET_SITE_CACHE_TTL %r; using %ss", value, DEFAULT_SITE_PATH_TTL)
        return DEFAULT_SITE_PATH_TTL
    return ttl


def create_site_path_cache(home: Path) -> SitePathCache:
    """Build the cache selected by VALET_SITE_CACHE ("memory" or "file")."""
    backend = os.getenv("VALET_SITE_CACHE", "memory").lower()
    if backend == "file":
        store: CacheStore = FileStore(home / "cache" / "site_paths.json")
    else:
        if backend != "memory":
            logger.warning("Unknown VALET_SITE_CACHE value %r; using memory", backend)
        store = MemoryStore()
    cache = SitePathCache(store=store, ttl=site_path_ttl())
    logger.info("Site path cache initialized: store=%s, ttl=%ss", type(store).__name__, cache.ttl)
    return cache
