"""
================================================================================
GameVault v1.0 - Search Result Deduplicator
================================================================================
Collapses near-duplicate games (editions, remasters, re-releases).

Problem:
  User searches "Celeste" -> gets "Celeste" and "Celeste: Farewell Edition"

Solution:
  1. Normalize titles (punctuation, whitespace, leading article, edition and
     remaster suffixes)
  2. Walk results in order; a result is dropped when its normalized title is
     equal to, or more than `similarity_threshold` similar to, a title that
     was already accepted
  3. First occurrence always wins, so upstream ranking is preserved

Similarity is normalized Levenshtein: 1 - distance / len(longer title).
The threshold and suffix list are tuning knobs, not correctness guarantees.
================================================================================
"""

import logging
import re
from typing import List, Sequence, Tuple

from rapidfuzz.distance import Levenshtein

from ..metadata.models import GameDetail

logger = logging.getLogger(__name__)

LEADING_ARTICLE = re.compile(r'^(the|a|an)\s+')
APOSTROPHES = re.compile(r"['\u2019]")
NON_ALNUM = re.compile(r'[^a-z0-9\s]')
WHITESPACE = re.compile(r'\s+')

# Applied repeatedly to the end of an already normalized title
EDITION_SUFFIX_PATTERNS: Tuple[str, ...] = (
    r'\s+(goty|game of the year)( edition)?$',
    r'\s+\w+\s+edition$',          # deluxe edition, farewell edition, ...
    r'\s+edition$',
    r'\s+remaster(ed)?$',
    r'\s+definitive$',
    r'\s+hd$',
    r'\s+directors cut$',
)


class SearchDeduplicator:
    """
    Order-preserving near-duplicate filter for GameDetail lists.

    Comparison is pairwise against the accepted set only, which is fine for
    the post-cap candidate sizes this runs on.
    """

    def __init__(
        self,
        similarity_threshold: float = 0.8,
        suffix_patterns: Sequence[str] = EDITION_SUFFIX_PATTERNS
    ):
        """
        Initialize deduplicator.

        Args:
            similarity_threshold: Similarity above which two titles collapse (0-1)
            suffix_patterns: Regexes stripped from the end of normalized titles
        """
        self.similarity_threshold = similarity_threshold
        self._suffixes = [re.compile(pattern) for pattern in suffix_patterns]

    def normalize_title(self, title: str) -> str:
        """
        Normalize title for comparison.

          - Lowercase, drop apostrophes (director's -> directors), turn other
            punctuation into spaces, collapse whitespace
          - Remove a leading "the", "a" or "an"
          - Strip edition/remaster suffixes until none apply

        Falls back to the plain lowercased title when nothing is left.
        """
        lowered = title.strip().lower()
        normalized = NON_ALNUM.sub(' ', APOSTROPHES.sub('', lowered))
        normalized = WHITESPACE.sub(' ', normalized).strip()
        normalized = LEADING_ARTICLE.sub('', normalized)

        stripped = True
        while stripped:
            stripped = False
            for pattern in self._suffixes:
                shorter = pattern.sub('', normalized)
                if shorter != normalized and shorter.strip():
                    normalized = shorter.strip()
                    stripped = True

        return normalized or lowered

    def calculate_similarity(self, title1: str, title2: str) -> float:
        """Normalized Levenshtein similarity (0-1) of two titles after normalization."""
        return Levenshtein.normalized_similarity(
            self.normalize_title(title1),
            self.normalize_title(title2)
        )

    def deduplicate(self, results: Sequence[GameDetail]) -> List[GameDetail]:
        """Drop later results that duplicate an earlier accepted one."""
        if not results:
            return []

        accepted: List[GameDetail] = []
        accepted_titles: List[str] = []

        for result in results:
            title = self.normalize_title(result.name)
            duplicate_of = None

            for index, kept in enumerate(accepted_titles):
                if title == kept or Levenshtein.normalized_similarity(title, kept) > self.similarity_threshold:
                    duplicate_of = accepted[index]
                    break

            if duplicate_of is not None:
                logger.debug(f"Dropped '{result.name}' as duplicate of '{duplicate_of.name}'")
                continue

            accepted.append(result)
            accepted_titles.append(title)

        if len(accepted) != len(results):
            logger.info(f"Deduplicated {len(results)} results into {len(accepted)} unique games")
        return accepted
