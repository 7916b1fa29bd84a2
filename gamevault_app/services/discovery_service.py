"""
Discovery Service - trending and recent games from curated Steam id pools.

Strategy:
  - Draw a shuffled sample (larger than the requested limit) from a pool of
    candidate app ids
  - Enrich the sample through the DetailEnricher (same breaker, same batches)
  - Keep games released inside a recency window, widening 6 -> 12 -> 18 months
    until the limit is met
  - Top up with curated fallback games when the live set is short

Ordering:
  - Release date (newest first), then current players, then composite score
"""

import asyncio
import logging
import random
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from sources.steam_client import SteamClient

from ..catalog.models import CatalogEntry
from ..metadata.enricher import DetailEnricher
from ..metadata.models import GameDetail
from ..search.ranking import composite_score
from .curated import CuratedFallbackProvider

logger = logging.getLogger(__name__)

SECONDS_PER_MONTH = 365.25 / 12 * 86400

# (app id, name) pools; names only label log lines until details arrive
TRENDING_POOL: Tuple[Tuple[int, str], ...] = (
    (730, 'Counter-Strike 2'),
    (570, 'Dota 2'),
    (2767030, 'Marvel Rivals'),
    (2358720, 'Black Myth: Wukong'),
    (2246340, 'Monster Hunter Wilds'),
    (553850, 'HELLDIVERS 2'),
    (1623730, 'Palworld'),
    (2379780, 'Balatro'),
    (1086940, "Baldur's Gate 3"),
    (1245620, 'ELDEN RING'),
    (1172470, 'Apex Legends'),
    (578080, 'PUBG: BATTLEGROUNDS'),
    (252490, 'Rust'),
    (271590, 'Grand Theft Auto V'),
    (1091500, 'Cyberpunk 2077'),
    (413150, 'Stardew Valley'),
    (892970, 'Valheim'),
    (105600, 'Terraria'),
)

RECENT_POOL: Tuple[Tuple[int, str], ...] = (
    (2246340, 'Monster Hunter Wilds'),
    (2767030, 'Marvel Rivals'),
    (2358720, 'Black Myth: Wukong'),
    (2694490, 'Path of Exile 2'),
    (1145350, 'Hades II'),
    (1903340, 'Clair Obscur: Expedition 33'),
    (1771300, 'Kingdom Come: Deliverance II'),
    (3159330, "Assassin's Creed Shadows"),
    (2622380, 'ELDEN RING NIGHTREIGN'),
    (2651280, "Marvel's Spider-Man 2"),
    (2379780, 'Balatro'),
    (553850, 'HELLDIVERS 2'),
    (1623730, 'Palworld'),
)


@dataclass
class TrendingSelection:
    """Outcome of one trending/recent selection."""
    games: List[GameDetail] = field(default_factory=list)
    # Narrowest recency window (months) that produced the live games, None if none did
    window_months: Optional[int] = None
    live_count: int = 0
    filled_count: int = 0


class TrendingSelector:
    """
    Samples, enriches and recency-filters a candidate pool.

    Player counts are best effort: when the client is missing or a lookup
    fails the game simply sorts as if it had zero players.
    """

    WINDOWS_MONTHS = (6, 12, 18)
    SAMPLE_FACTOR = 2

    def __init__(
        self,
        enricher: DetailEnricher,
        curated: CuratedFallbackProvider,
        client: Optional[SteamClient] = None,
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None
    ):
        self.enricher = enricher
        self.curated = curated
        self.client = client
        self._clock = clock
        self._rng = rng or random.Random()

    async def trending(self, limit: int = 10) -> TrendingSelection:
        return await self.select(TRENDING_POOL, limit, with_players=True)

    async def recent(self, limit: int = 10) -> TrendingSelection:
        return await self.select(RECENT_POOL, limit, with_players=False)

    async def select(
        self,
        pool: Sequence[Tuple[int, str]],
        limit: int,
        with_players: bool = True
    ) -> TrendingSelection:
        if limit <= 0:
            return TrendingSelection()

        candidates = list(dict(pool).items())
        self._rng.shuffle(candidates)
        sample = candidates[:max(limit * self.SAMPLE_FACTOR, limit + 5)]

        enriched = await self.enricher.enrich([CatalogEntry(id=app_id, name=name) for app_id, name in sample])
        window, live = self._filter_recent(enriched, limit)

        if with_players and live:
            live = await self._attach_players(live)

        live.sort(
            key=lambda game: (game.release.timestamp or 0, game.current_players or 0, composite_score(game)),
            reverse=True
        )
        live = live[:limit]

        filler = self.curated.fill((game.id for game in live), limit - len(live))
        if filler:
            logger.info(f"Trending: {len(live)} live games in window, filled {len(filler)} from curated list")

        return TrendingSelection(
            games=live + filler,
            window_months=window,
            live_count=len(live),
            filled_count=len(filler)
        )

    def _filter_recent(self, games: List[GameDetail], limit: int) -> Tuple[Optional[int], List[GameDetail]]:
        """Widen the recency window until `limit` games fit; keep the narrowest best window."""
        now = self._clock()
        best_window: Optional[int] = None
        best: List[GameDetail] = []

        for months in self.WINDOWS_MONTHS:
            cutoff = now - months * SECONDS_PER_MONTH
            in_window = [
                game for game in games
                if game.release.timestamp is not None and cutoff <= game.release.timestamp <= now
            ]
            if len(in_window) > len(best):
                best_window, best = months, in_window
            if len(in_window) >= limit:
                break

        logger.debug(f"Recency filter: {len(best)} of {len(games)} games within {best_window} months")
        return best_window, best

    async def _attach_players(self, games: List[GameDetail]) -> List[GameDetail]:
        if self.client is None:
            return list(games)
        counts = await asyncio.gather(*(self.client.get_current_players(game.id) for game in games))
        return [game.with_players(count) for game, count in zip(games, counts)]
