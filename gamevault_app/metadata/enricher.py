"""
================================================================================
GameVault v1.0 - Detail Enricher
================================================================================
Turns catalog candidates ({id, name}) into full GameDetail records.

Flow per enrich() call:
  1. Split candidates into batches of `enrich_batch_size` (5)
  2. Fetch each batch concurrently; pause 150-300ms between batches
  3. Ask the circuit breaker before every fetch; once it refuses, no further
     fetches are issued for this call and the partial result is returned
  4. Drop non-games (type field first, name heuristics second); cached
     records keep their kind so cache hits are filtered the same way

Failure handling per item:
  - 403/429: breaker failure, no retry
  - timeout/5xx: retried with backoff, breaker failure once exhausted
  - 404/success=false/malformed: logged and dropped (upstream is healthy)
A failed item never fails the batch or the call.
================================================================================
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, List, Optional, Sequence

from sources.circuit_breaker import CircuitBreaker, FailureKind
from sources.exceptions import (
    MalformedResponse,
    NotFound,
    RateLimited,
    TransientUpstreamError,
    UpstreamTimeout,
)
from sources.retry import RetryPolicy, call_with_retry
from sources.steam_client import SteamClient

from ..catalog.models import CatalogEntry
from ..config import EngineConfig
from .cache import DetailCache
from .classifier import classify
from .models import GameDetail, RecordKind
from .normalizers import normalize_app_details

logger = logging.getLogger(__name__)


class DetailEnricher:
    """Fetches and normalizes rich per-app detail under breaker and batch limits."""

    def __init__(
        self,
        client: SteamClient,
        breaker: CircuitBreaker,
        config: Optional[EngineConfig] = None,
        cache: Optional[DetailCache] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.client = client
        self.breaker = breaker
        self.config = config or EngineConfig()
        self.cache = cache or DetailCache(
            ttl=self.config.detail_cache_ttl,
            max_size=self.config.detail_cache_max_size
        )
        self.retry_policy = RetryPolicy(
            max_attempts=self.config.retry_max_attempts,
            base_delay=self.config.retry_base_delay,
            factor=self.config.retry_backoff_factor,
            max_delay=self.config.retry_max_delay
        )
        self.sleep = sleep

    async def enrich(self, entries: Sequence[CatalogEntry]) -> List[GameDetail]:
        """
        Enrich candidates in order. May return fewer items than requested.

        Cancellation stops further batches; the in-flight batch is left to
        finish (so breaker bookkeeping stays consistent) and its results are
        discarded.
        """
        if not entries:
            return []

        self.cache.evict_expired()
        batch_size = max(1, self.config.enrich_batch_size)
        halted = asyncio.Event()
        enriched: List[GameDetail] = []

        for start in range(0, len(entries), batch_size):
            if halted.is_set():
                break

            if start > 0:
                await self.sleep(random.uniform(
                    self.config.enrich_batch_delay_min,
                    self.config.enrich_batch_delay_max
                ))

            batch = entries[start:start + batch_size]
            results = await asyncio.shield(asyncio.gather(
                *(self._enrich_one(entry, halted) for entry in batch)
            ))
            enriched.extend(detail for detail in results if detail is not None)

        if halted.is_set():
            logger.warning(
                f"Enrichment short-circuited by breaker after {len(enriched)} of {len(entries)} candidates"
            )
        return enriched

    async def fetch_one(self, app_id: int, require_game: bool = False) -> Optional[GameDetail]:
        """Enrich a single app id outside of a search (detail view)."""
        return await self._enrich_one(CatalogEntry(id=app_id, name=str(app_id)), asyncio.Event(), require_game)

    async def _enrich_one(
        self,
        entry: CatalogEntry,
        halted: asyncio.Event,
        require_game: bool = True
    ) -> Optional[GameDetail]:
        hit = self.cache.lookup(entry.id)
        if hit is not None:
            detail, kind = hit
            if require_game and kind != RecordKind.GAME:
                return None
            return detail

        if halted.is_set() or not self.breaker.allow():
            halted.set()
            return None

        try:
            data = await call_with_retry(
                lambda: self.client.get_app_details(entry.id),
                self.retry_policy,
                sleep=self.sleep,
                label=f"appdetails {entry.id}"
            )
        except RateLimited as e:
            self.breaker.on_failure(FailureKind.RATE_LIMITED)
            logger.warning(f"Rate limited fetching {entry.id} ('{entry.name}'): {e}")
            return None
        except UpstreamTimeout as e:
            self.breaker.on_failure(FailureKind.TIMEOUT)
            logger.warning(f"Gave up on {entry.id} ('{entry.name}') after retries: {e}")
            return None
        except TransientUpstreamError as e:
            self.breaker.on_failure(FailureKind.SERVER_ERROR)
            logger.warning(f"Gave up on {entry.id} ('{entry.name}') after retries: {e}")
            return None
        except (NotFound, MalformedResponse) as e:
            self.breaker.on_success()
            logger.info(f"Skipping {entry.id} ('{entry.name}'): {e}")
            return None

        self.breaker.on_success()

        try:
            detail = normalize_app_details(entry.id, data)
        except MalformedResponse as e:
            logger.warning(f"Dropping {entry.id} ('{entry.name}'): {e}")
            return None

        # Non-games are cached too; hits are filtered by kind above
        kind = classify(data)
        self.cache.set(detail, kind)

        if require_game and kind != RecordKind.GAME:
            logger.debug(f"Skipping {entry.id} ('{detail.name}'): {kind.value}")
            return None
        return detail
