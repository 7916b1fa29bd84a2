"""
================================================================================
GameVault v1.0 - Catalog Store
================================================================================
Acquires and caches the full Steam app list ({id, name} for ~100K apps).

Source priority:
  1. On-disk backup (data/steam-app-list.json) if present and well formed
  2. Primary Steam Web API (GetAppList v2, then v1)
  3. Community mirror(s)
  4. SteamDB tracking mirror (last resort)

The first source yielding at least one valid entry wins and is persisted
back to disk with provenance (source, downloadedAt, appCount).

Freshness:
  - In-memory snapshot lives for `catalog_ttl` (24h); once expired the stale
    snapshot keeps being served while a background refresh runs
  - A disk backup older than `catalog_stale_after_days` (7) is used as-is
    and revalidated against the remote chain in the background

Concurrency:
  - Cold loads are single-flighted: concurrent callers await one task
  - The snapshot reference is swapped only after a load fully succeeds
================================================================================
"""

import asyncio
import json
import logging
import os
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

import aiofiles

from sources.exceptions import CatalogEngineError, MalformedResponse
from sources.steam_client import SteamClient

from ..config import EngineConfig
from ..log import debug_log_event
from .models import Catalog, CatalogCache, CatalogSource, utc_now
from .parsing import build_disk_document, parse_catalog_payload, parse_downloaded_at

logger = logging.getLogger(__name__)


class CatalogStore:
    """Process-wide owner of the catalog snapshot, constructed and injected explicitly."""

    def __init__(
        self,
        client: SteamClient,
        config: Optional[EngineConfig] = None,
        clock: Callable[[], float] = time.time
    ):
        self.client = client
        self.config = config or EngineConfig()
        self._clock = clock
        self._cache: Optional[CatalogCache] = None
        self._load_task: Optional[asyncio.Future] = None
        self._refresh_task: Optional[asyncio.Future] = None
        self._failed_at: Optional[float] = None
        # Number of full source-resolution sequences started (diagnostics)
        self.load_count = 0

    @property
    def cache(self) -> Optional[CatalogCache]:
        return self._cache

    @property
    def is_refreshing(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    def _remote_sources(self) -> List[Tuple[CatalogSource, List[str]]]:
        return [
            (CatalogSource.PRIMARY_API, self.config.primary_urls),
            (CatalogSource.SECONDARY_MIRROR, self.config.secondary_urls),
            (CatalogSource.TERTIARY_MIRROR, self.config.tertiary_urls),
        ]

    def _in_failure_backoff(self, now: float) -> bool:
        return (
            self._failed_at is not None
            and now - self._failed_at < self.config.catalog_failure_backoff
        )

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    async def get_catalog(self) -> Catalog:
        """
        Return the current catalog.

        Never raises: an empty tuple means every source failed and callers
        should fall back to direct upstream search.
        """
        now = self._clock()
        cache = self._cache

        if cache is not None:
            if cache.is_expired(now) and not self._in_failure_backoff(now):
                self._start_refresh("in-memory snapshot expired")
            return cache.entries

        if self._in_failure_backoff(now):
            return ()

        task = self._load_task
        if task is None:
            task = asyncio.ensure_future(self._resolve_sources())
            task.add_done_callback(self._clear_load_task)
            self._load_task = task

        # Shield so one cancelled caller does not cancel the shared load
        cache = await asyncio.shield(task)
        return cache.entries if cache is not None else ()

    async def refresh_now(self) -> Optional[CatalogCache]:
        """Resolve the remote chain immediately (skipping disk) and install the result."""
        return await self._refresh()

    async def wait_for_refresh(self) -> None:
        """Await a running background refresh, if any."""
        task = self._refresh_task
        if task is not None:
            await asyncio.shield(task)

    def status(self) -> Dict[str, Any]:
        cache = self._cache
        now = self._clock()
        return {
            'loaded': cache is not None and len(cache.entries) > 0,
            'count': len(cache.entries) if cache else 0,
            'source': cache.source.value if cache else None,
            'fetched_at': cache.fetched_at if cache else None,
            'downloaded_at': cache.downloaded_at.isoformat() if cache and cache.downloaded_at else None,
            'age_seconds': int(cache.age(now)) if cache else None,
            'refreshing': self.is_refreshing,
            'load_count': self.load_count,
        }

    # =========================================================================
    # RESOLUTION
    # =========================================================================

    def _clear_load_task(self, task: asyncio.Future) -> None:
        if self._load_task is task:
            self._load_task = None

    def _install(self, cache: CatalogCache) -> None:
        """Atomically publish a fully built snapshot."""
        self._cache = cache
        self._failed_at = None

    async def _resolve_sources(self) -> Optional[CatalogCache]:
        self.load_count += 1
        started = self._clock()

        cache = await self._load_from_disk()
        if cache is not None:
            self._install(cache)
            disk_age = cache.disk_age_days(self._clock())
            if disk_age is None:
                self._start_refresh("disk backup has no download date")
            elif disk_age > self.config.catalog_stale_after_days:
                self._start_refresh(f"disk backup is {disk_age:.1f} days old")
        else:
            cache = await self._load_from_remote()
            if cache is not None:
                self._install(cache)
                await self._persist(cache)

        if cache is None:
            self._failed_at = self._clock()
            logger.error("❌ All catalog sources failed; searches will use direct store search")
            debug_log_event({'event': 'catalog_unavailable'})
            return None

        logger.info(f"✅ Loaded {len(cache.entries)} catalog entries from {cache.source.value}")
        debug_log_event({
            'event': 'catalog_loaded',
            'source': cache.source.value,
            'count': len(cache.entries),
            'duration_ms': int((self._clock() - started) * 1000)
        })
        return cache

    async def _load_from_disk(self) -> Optional[CatalogCache]:
        path = self.config.catalog_path
        if not os.path.exists(path):
            return None

        try:
            async with aiofiles.open(path, 'r', encoding='utf-8') as f:
                document = json.loads(await f.read())
            entries = parse_catalog_payload(document)
        except (OSError, ValueError, MalformedResponse) as e:
            logger.warning(f"Catalog backup at {path} is unreadable: {e}")
            return None

        if not entries:
            logger.warning(f"Catalog backup at {path} has no valid entries")
            return None

        downloaded_at = None
        if isinstance(document, dict):
            downloaded_at = parse_downloaded_at(document.get('downloadedAt'))

        return CatalogCache(
            entries=entries,
            source=CatalogSource.LOCAL_BACKUP,
            fetched_at=self._clock(),
            ttl=self.config.catalog_ttl,
            downloaded_at=downloaded_at
        )

    async def _load_from_remote(self) -> Optional[CatalogCache]:
        for source, urls in self._remote_sources():
            for url in urls:
                try:
                    payload = await self.client.fetch_catalog(url)
                    entries = parse_catalog_payload(payload)
                except CatalogEngineError as e:
                    logger.warning(f"Catalog source {source.value} failed ({url}): {e}")
                    continue

                if not entries:
                    logger.warning(f"Catalog source {source.value} returned no valid entries ({url})")
                    continue

                return CatalogCache(
                    entries=entries,
                    source=source,
                    fetched_at=self._clock(),
                    ttl=self.config.catalog_ttl,
                    downloaded_at=utc_now()
                )
        return None

    async def _persist(self, cache: CatalogCache) -> None:
        """Write the snapshot to disk. Failures leave the cache in memory only."""
        path = self.config.catalog_path
        tmp_path = f"{path}.tmp"
        document = build_disk_document(cache.entries, cache.source, cache.downloaded_at or utc_now())

        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            async with aiofiles.open(tmp_path, 'w', encoding='utf-8') as f:
                await f.write(json.dumps(document, ensure_ascii=False))
            os.replace(tmp_path, path)
            logger.info(f"💾 Saved {len(cache.entries)} catalog entries to {path}")
        except OSError as e:
            logger.warning(f"Could not persist catalog to {path}: {e}")

    # =========================================================================
    # BACKGROUND REFRESH
    # =========================================================================

    def _start_refresh(self, reason: str) -> asyncio.Future:
        """Start a remote refresh unless one is already running."""
        if self.is_refreshing:
            return self._refresh_task
        logger.info(f"🔄 Refreshing catalog in background: {reason}")
        task = asyncio.ensure_future(self._refresh())
        task.add_done_callback(self._log_refresh_outcome)
        self._refresh_task = task
        return task

    async def _refresh(self) -> Optional[CatalogCache]:
        cache = await self._load_from_remote()
        if cache is None:
            self._failed_at = self._clock()
            logger.warning("Catalog refresh failed; keeping current snapshot")
            return None
        self._install(cache)
        await self._persist(cache)
        return cache

    @staticmethod
    def _log_refresh_outcome(task: asyncio.Future) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Catalog refresh crashed: {exc!r}")
