"""
================================================================================
GameVault v1.0 - Game Search Service
================================================================================
Facade the route layer talks to. Orchestrates the whole engine:

Flow (searchGames):
  1. Load the catalog (single-flight, stale-while-revalidate)
  2. Match the query against the catalog (or search the store directly when
     no catalog could be loaded)
  3. Enrich candidates in throttled batches behind the circuit breaker
  4. Fall back to curated games when live sourcing produced nothing
  5. Deduplicate editions/re-releases, rank, paginate

Contract:
  - Every public coroutine returns a tagged dict ({success: ...}); no engine
    exception crosses this boundary
  - A rate-limited outage is reported as "temporarily unavailable", distinct
    from a search that legitimately matched nothing
================================================================================
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional, Tuple

from sources.circuit_breaker import CircuitBreaker, CircuitBreakerConfig
from sources.exceptions import (
    CatalogEngineError,
    CatalogUnavailable,
    MalformedResponse,
    NoResultsFound,
    RateLimited,
)
from sources.retry import call_with_retry
from sources.steam_client import SteamClient

from ..catalog.models import CatalogEntry
from ..catalog.store import CatalogStore
from ..config import EngineConfig
from ..log import debug_log_event, log
from ..metadata.classifier import classify_name, is_game
from ..metadata.enricher import DetailEnricher
from ..metadata.models import GameDetail, RecordKind
from ..metadata.normalizers import normalize_store_item
from ..services.curated import CuratedFallbackProvider
from ..services.discovery_service import TrendingSelection, TrendingSelector
from .deduplicator import SearchDeduplicator
from .matcher import MatchEngine, matches
from .ranking import paginate, rank

logger = logging.getLogger(__name__)

RATE_LIMITED_MESSAGE = "Game search is temporarily unavailable, try again shortly."
SEARCH_FAILED_MESSAGE = "Game search failed unexpectedly. Please try again."
MAX_DISCOVERY_LIMIT = 50
SUGGESTION_MIN_LENGTH = 2


class GameSearchService:
    """
    Search orchestrator holding the engine's only long-lived state: the
    catalog store, the detail breaker and the detail cache.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        client: Optional[SteamClient] = None,
        store: Optional[CatalogStore] = None,
        breaker: Optional[CircuitBreaker] = None,
        enricher: Optional[DetailEnricher] = None,
        curated: Optional[CuratedFallbackProvider] = None,
        selector: Optional[TrendingSelector] = None
    ):
        self.config = config or EngineConfig()
        self.client = client or SteamClient(
            language=self.config.steam_language,
            country_code=self.config.steam_country_code,
            catalog_timeout=self.config.catalog_timeout,
            detail_timeout=self.config.detail_timeout,
            search_timeout=self.config.search_timeout,
            players_timeout=self.config.players_timeout
        )
        self.store = store or CatalogStore(self.client, self.config)
        self.breaker = breaker or CircuitBreaker(
            "steam-appdetails",
            CircuitBreakerConfig(
                failure_threshold=self.config.breaker_failure_threshold,
                recovery_timeout=self.config.breaker_recovery_timeout
            )
        )
        self.enricher = enricher or DetailEnricher(self.client, self.breaker, self.config)
        self.curated = curated or CuratedFallbackProvider()
        self.selector = selector or TrendingSelector(self.enricher, self.curated, client=self.client)
        self.matcher = MatchEngine(candidate_cap=self.config.match_candidate_cap)
        self.deduplicator = SearchDeduplicator(similarity_threshold=self.config.dedup_similarity_threshold)
        self._warm_up_task: Optional[asyncio.Future] = None

    # =========================================================================
    # SEARCH
    # =========================================================================

    async def search_games(self, query: str, page: int = 1, page_size: Optional[int] = None) -> Dict[str, Any]:
        """
        Search games by free text.

        Returns:
            {success, games, totalResults, currentPage, totalPages, error?}
        """
        start_time = time.time()
        query = (query or "").strip()
        page_size = min(max(1, page_size or self.config.default_page_size), self.config.max_page_size)

        if not query:
            return self._search_result([], page, page_size)

        try:
            games = await self._search(query)
        except NoResultsFound:
            logger.info(f"No games matched '{query}'")
            games = []
        except RateLimited as e:
            logger.warning(f"Search for '{query}' unavailable: {e}")
            return self._search_error(RATE_LIMITED_MESSAGE, page)
        except Exception as e:
            logger.exception(f"Search for '{query}' failed: {e}")
            return self._search_error(SEARCH_FAILED_MESSAGE, page)

        result = self._search_result(games, page, page_size)
        elapsed = time.time() - start_time
        logger.info(f"Search '{query}' -> {result['totalResults']} games in {elapsed:.2f}s")
        debug_log_event({
            'event': 'search',
            'query': query,
            'results': result['totalResults'],
            'duration_ms': int(elapsed * 1000),
            'breaker': self.breaker.state.value
        })
        return result

    async def _search(self, query: str) -> List[GameDetail]:
        catalog = await self.store.get_catalog()
        rate_limited = False

        try:
            candidates = self.matcher.match(catalog, query)
        except CatalogUnavailable:
            logger.info(f"No catalog available, searching store directly for '{query}'")
            games, rate_limited = await self._direct_search(query)
        else:
            if not candidates and not self.curated.search(query):
                raise NoResultsFound(query)
            games = await self.enricher.enrich(candidates) if candidates else []
            rate_limited = bool(candidates) and self.breaker.is_open

        games = [game for game in games if matches(game.name, query)]

        if not games:
            games = self.curated.search(query)
            if games:
                logger.info(f"Live sourcing empty for '{query}', serving {len(games)} curated games")
            elif rate_limited:
                raise RateLimited("detail endpoint is throttling", retry_after=self.breaker.retry_after)

        return rank(self.deduplicator.deduplicate(games))

    async def _direct_search(self, query: str) -> Tuple[List[GameDetail], bool]:
        """
        Query the store search endpoint when no catalog exists.

        Returns (games, rate_limited). Hits are enriched like catalog
        candidates; when enrichment yields nothing the light store records
        are used instead.
        """
        try:
            light = await self._store_search_games(query)
        except RateLimited as e:
            logger.warning(f"Store search rate limited: {e}")
            return [], True
        except CatalogEngineError as e:
            logger.warning(f"Store search failed for '{query}': {e}")
            return [], False

        entries = [CatalogEntry(id=record.id, name=record.name) for record in light]
        enriched = await self.enricher.enrich(entries[:self.config.match_candidate_cap])
        if enriched:
            return enriched, False
        return light, bool(entries) and self.breaker.is_open

    async def _store_search_games(self, query: str) -> List[GameDetail]:
        """Store search hits that look like games, as light records."""
        items = await call_with_retry(
            lambda: self.client.store_search(query),
            self.enricher.retry_policy,
            sleep=self.enricher.sleep,
            label=f"storesearch '{query}'"
        )

        records = []
        for item in items:
            if not is_game(item):
                continue
            try:
                records.append(normalize_store_item(item))
            except MalformedResponse as e:
                logger.debug(f"Skipping store search item: {e}")
        return records

    def _search_result(self, games: List[GameDetail], page: int, page_size: int) -> Dict[str, Any]:
        result_page = paginate(games, page, page_size)
        return {
            'success': True,
            'games': [game.to_dict() for game in result_page.items],
            'totalResults': result_page.total_results,
            'currentPage': result_page.current_page,
            'totalPages': result_page.total_pages,
        }

    @staticmethod
    def _search_error(message: str, page: int) -> Dict[str, Any]:
        return {
            'success': False,
            'games': [],
            'totalResults': 0,
            'currentPage': max(1, page),
            'totalPages': 1,
            'error': message,
        }

    # =========================================================================
    # DETAILS
    # =========================================================================

    async def get_game_details(self, game_id: Any) -> Dict[str, Any]:
        """Full record for one app id: {success, game?, error?}."""
        try:
            app_id = int(game_id)
        except (TypeError, ValueError):
            return {'success': False, 'error': f"Invalid game id: {game_id!r}"}

        try:
            detail = await self.enricher.fetch_one(app_id)
            if detail is None:
                detail = self.curated.get(app_id)
                if detail is None:
                    if self.breaker.is_open:
                        return {'success': False, 'error': RATE_LIMITED_MESSAGE}
                    return {'success': False, 'error': f"Game {app_id} not found"}

            players = await self.client.get_current_players(app_id)
            return {'success': True, 'game': detail.with_players(players).to_dict()}
        except Exception as e:
            logger.exception(f"Detail lookup for {app_id} failed: {e}")
            return {'success': False, 'error': "Could not load game details. Please try again."}

    # =========================================================================
    # DISCOVERY
    # =========================================================================

    async def get_trending_games(self, limit: int = 10) -> Dict[str, Any]:
        return await self._discovery(self.selector.trending, limit, "trending")

    async def get_recent_games(self, limit: int = 10) -> Dict[str, Any]:
        return await self._discovery(self.selector.recent, limit, "recent")

    async def _discovery(self, select, limit: int, label: str) -> Dict[str, Any]:
        limit = min(max(1, limit), MAX_DISCOVERY_LIMIT)
        try:
            selection: TrendingSelection = await select(limit)
        except Exception as e:
            logger.exception(f"Failed to build {label} games: {e}")
            fallback = self.curated.fill((), limit)
            return {'success': True, 'games': [game.to_dict() for game in fallback], 'windowMonths': None}

        return {
            'success': True,
            'games': [game.to_dict() for game in selection.games],
            'windowMonths': selection.window_months,
        }

    # =========================================================================
    # SUGGESTIONS
    # =========================================================================

    async def get_search_suggestions(self, query: str, limit: int = 5) -> Dict[str, Any]:
        """Cheap typeahead: {success, suggestions[{id, name}]}, no detail lookups."""
        query = (query or "").strip()
        if len(query) < SUGGESTION_MIN_LENGTH or limit <= 0:
            return {'success': True, 'suggestions': []}

        try:
            catalog = await self.store.get_catalog()
            try:
                candidates = self.matcher.match(catalog, query)
                suggestions = [
                    {'id': entry.id, 'name': entry.name}
                    for entry in candidates
                    if classify_name(entry.name) == RecordKind.GAME
                ]
            except CatalogUnavailable:
                records = await self._store_search_games(query)
                suggestions = [{'id': record.id, 'name': record.name} for record in records]
        except CatalogEngineError as e:
            logger.warning(f"Suggestions for '{query}' unavailable: {e}")
            suggestions = []
        except Exception as e:
            logger.exception(f"Suggestions for '{query}' failed: {e}")
            return {'success': False, 'suggestions': [], 'error': SEARCH_FAILED_MESSAGE}

        return {'success': True, 'suggestions': suggestions[:limit]}

    # =========================================================================
    # DIAGNOSTICS / LIFECYCLE
    # =========================================================================

    def get_catalog_status(self) -> Dict[str, Any]:
        status = self.store.status()
        cache = self.store.cache
        sample = [{'id': entry.id, 'name': entry.name} for entry in cache.entries[:10]] if cache else []
        return {
            'success': True,
            'catalogLoaded': status['loaded'],
            'catalogCount': status['count'],
            'source': status['source'],
            'fetchedAt': status['fetched_at'],
            'downloadedAt': status['downloaded_at'],
            'ageSeconds': status['age_seconds'],
            'refreshing': status['refreshing'],
            'breaker': self.breaker.get_status(),
            'detailCache': self.enricher.cache.stats(),
            'sampleGames': sample,
        }

    def warm_up(self) -> asyncio.Future:
        """Start loading the catalog in the background (idempotent)."""
        if self._warm_up_task is None:
            self._warm_up_task = asyncio.ensure_future(self._warm_up())
        return self._warm_up_task

    async def _warm_up(self) -> None:
        try:
            catalog = await self.store.get_catalog()
        except Exception as e:
            logger.error(f"Catalog warm-up failed: {e}")
            return
        if catalog:
            log(f"[Search] Catalog ready: {len(catalog)} apps")
        else:
            log("[Search] Catalog unavailable, searches will use direct store lookups")

    async def close(self) -> None:
        task = self._warm_up_task
        if task is not None and not task.done():
            task.cancel()
        await self.client.close()
