"""Fallback and discovery services."""

from .curated import CURATED_GAMES, CuratedFallbackProvider
from .discovery_service import RECENT_POOL, TRENDING_POOL, TrendingSelection, TrendingSelector

__all__ = [
    'CURATED_GAMES', 'CuratedFallbackProvider',
    'RECENT_POOL', 'TRENDING_POOL', 'TrendingSelection', 'TrendingSelector',
]
