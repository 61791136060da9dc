# refcheck/cache.py
"""
Status caches for external URLs.

- RefCache: the in-run cache. Maps a normalized URL to the HTTP status seen for
  it and coalesces concurrent probes of the same URL into a single request.
- FileCache: optional on-disk store (diskcache) that carries statuses over
  between runs. Default location is a visible folder in CWD; "os-default"
  selects the platformdirs user cache dir.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
import os
import threading
from pathlib import Path
from typing import Awaitable, Callable, Optional

import diskcache
from platformdirs import user_cache_dir as _user_cache_dir

from refcheck.models import ProbeResult

log = logging.getLogger(__name__)


@dataclasses.dataclass
class CacheConfig:
    enabled: bool = False
    # Either a concrete directory path, or special marker "os-default"
    # for an OS-specific global cache location.
    directory: str = ".refcheck_cache"
    expire_seconds: int = 14 * 24 * 3600  # two weeks
    store_errors: bool = False  # only 2xx statuses survive the run by default


class FileCache:
    """
    Thin wrapper over diskcache.
    Keys: normalized URL strings.
    Values: dict with: status.
    """

    def __init__(self, cfg: CacheConfig, app_name: str = "refcheck"):
        self.cfg = cfg
        self.app_name = app_name
        self._cache: Optional[diskcache.Cache] = None

        if not cfg.enabled:
            log.debug("On-disk cache not enabled")
            return

        self.create_cache_object()

    def create_cache_object(self) -> None:
        if self._cache is not None and self._cache.directory:
            return
        directory = self.cfg.directory
        if directory == "os-default":
            directory = _user_cache_dir(self.app_name, appauthor=False)

        log.info("Cache at %s", directory)
        self._cache = diskcache.Cache(directory)

    def close(self) -> None:
        if self._cache is not None:
            self._cache.close()

    # ---- Introspection helpers ---------------------------------------------

    @property
    def directory(self) -> Optional[str]:
        """Returns the absolute cache directory path if available."""
        if self._cache is None or not self._cache.directory:
            return None
        return str(self._cache.directory)

    def _dir_size_bytes(self) -> int:
        d = self.directory
        if not d:
            return 0
        total = 0
        path = Path(d)
        if not path.exists():
            return 0
        for p in path.rglob("*"):
            if p.is_file():
                total += p.stat().st_size
        return total

    def stats(self) -> dict[str, int | str]:
        """
        Returns a simple stats dict:
            - items: number of keys in cache
            - bytes: on-disk size in bytes (recursive directory walk)
            - directory: absolute directory path
        """
        if self._cache is None or not self._cache.directory:
            return {"items": 0, "bytes": 0, "directory": ""}

        return {
            "items": len(self._cache),
            "bytes": self._dir_size_bytes(),
            "directory": os.path.abspath(self.directory or ""),
        }

    def clear_all(self) -> None:
        """Clears all cache contents."""
        if self._cache is None:
            log.warning("Cache disabled")
            return
        self._cache.clear()

    # ---- Public API ---------------------------------------------------------

    def get(self, url: str) -> Optional[dict[str, int]]:
        if self._cache is None:
            return None
        return self._cache.get(url)  # respects internal expirations

    def get_status(self, url: str) -> int:
        hit = self.get(url)
        if not hit:
            return 0
        return int(hit.get("status", 0))

    def set_status(self, url: str, status: int) -> None:
        if self._cache is None:
            return
        if not 200 <= status < 300 and not self.cfg.store_errors:
            log.debug("Not persisting %s for %s", status, url)
            return
        self._cache.set(url, {"status": status}, expire=self.cfg.expire_seconds)


Probe = Callable[[str], Awaitable[ProbeResult]]


class RefCache:
    """
    URL -> status map for one run, shared by every worker.

    A status of 0 means "unknown". Only statuses from real responses are
    stored; failed probes are retried on the next occurrence of the URL.
    """

    def __init__(self, store: FileCache | None = None):
        self._lock = threading.Lock()
        self._statuses: dict[str, int] = {}
        self._in_flight: dict[str, asyncio.Future] = {}
        self._store = store
        self.hits = 0
        self.probes = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._statuses)

    def status(self, url: str) -> int:
        """Cached status for url, or 0."""
        with self._lock:
            status = self._statuses.get(url, 0)
        if status == 0 and self._store is not None:
            status = self._store.get_status(url)
            if status:
                log.debug("Loaded %s for %s from disk", status, url)
                with self._lock:
                    self._statuses.setdefault(url, status)
        return status

    def set_status(self, url: str, status: int) -> None:
        with self._lock:
            self._statuses[url] = status
        if self._store is not None:
            self._store.set_status(url, status)

    async def get_or_probe(self, url: str, probe: Probe) -> ProbeResult:
        """
        Return the cached status for url, or run `probe` once for it.

        Callers that miss while a probe for the same url is already running
        wait for that probe and share its result.
        """
        cached = self.status(url)
        if cached:
            with self._lock:
                self.hits += 1
            return ProbeResult(status=cached)

        with self._lock:
            pending = self._in_flight.get(url)
            if pending is None:
                future = asyncio.get_running_loop().create_future()
                self._in_flight[url] = future
                self.probes += 1
            else:
                self.hits += 1

        if pending is not None:
            return await asyncio.shield(pending)

        try:
            result = await probe(url)
        except BaseException:
            with self._lock:
                self._in_flight.pop(url, None)
            future.cancel()
            raise

        if result.ok:
            self.set_status(url, result.status)
        with self._lock:
            self._in_flight.pop(url, None)
        future.set_result(result)
        return result
