"""
Catalog match engine.

Scans the in-memory catalog for a free-text query without any network I/O.
An entry is a candidate when its lowercased, trimmed name:
  1. equals the query
  2. contains the query
  3. contains every query word
  4. starts with at least one query word

Candidates are ordered exact > prefix > substring > the rest, shorter names
first within a tier, and capped before enrichment.
"""

import logging
from typing import List, Sequence

from sources.exceptions import CatalogUnavailable

from ..catalog.models import CatalogEntry

logger = logging.getLogger(__name__)

EXACT, PREFIX, CONTAINS, WORDS = 0, 1, 2, 3


def normalize_query(query: str) -> str:
    return (query or "").strip().lower()


def match_tier(name: str, query: str, words: Sequence[str]) -> int:
    """
    Rank tier of a normalized name against a normalized query, or -1 when it
    satisfies none of the match rules.
    """
    if name == query:
        return EXACT
    if query in name:
        return PREFIX if name.startswith(query) else CONTAINS
    if words and all(word in name for word in words):
        return WORDS
    if any(name.startswith(word) for word in words):
        return WORDS
    return -1


def matches(name: str, query: str) -> bool:
    """True when `name` satisfies at least one match rule for `query`."""
    query = normalize_query(query)
    if not query:
        return False
    return match_tier(name.strip().lower(), query, query.split()) >= 0


class MatchEngine:
    """Pure catalog scanner producing a ranked, capped candidate list."""

    def __init__(self, candidate_cap: int = 100):
        self.candidate_cap = candidate_cap

    def match(self, catalog: Sequence[CatalogEntry], query: str) -> List[CatalogEntry]:
        """
        Return catalog entries matching `query`, best first.

        Raises:
            CatalogUnavailable: the catalog is empty; the caller should
                search the upstream store directly instead
        """
        if not catalog:
            raise CatalogUnavailable("no catalog loaded")

        query = normalize_query(query)
        if not query:
            return []
        words = query.split()

        ranked = []
        for index, entry in enumerate(catalog):
            tier = match_tier(entry.normalized_name, query, words)
            if tier >= 0:
                ranked.append((tier, len(entry.normalized_name), index, entry))

        ranked.sort(key=lambda item: item[:3])
        logger.debug(f"Matched {len(ranked)} catalog entries for '{query}'")
        return [item[3] for item in ranked[:self.candidate_cap]]
