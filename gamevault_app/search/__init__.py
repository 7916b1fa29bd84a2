"""
================================================================================
GameVault v1.0 - Search Package
================================================================================
Catalog-scan search with enrichment, deduplication and ranking.

Components:
  - matcher.py      - Ranks catalog entries against a free-text query
  - deduplicator.py - Collapses editions and re-releases (Levenshtein > 0.8)
  - ranking.py      - Composite quality score and pagination
  - smart_search.py - GameSearchService facade used by the route layer
================================================================================
"""

from .matcher import MatchEngine, matches
from .deduplicator import EDITION_SUFFIX_PATTERNS, SearchDeduplicator
from .ranking import Page, composite_score, paginate, rank
from .smart_search import RATE_LIMITED_MESSAGE, GameSearchService

__all__ = [
    'MatchEngine', 'matches', 'EDITION_SUFFIX_PATTERNS', 'SearchDeduplicator',
    'Page', 'composite_score', 'paginate', 'rank',
    'RATE_LIMITED_MESSAGE', 'GameSearchService',
]
