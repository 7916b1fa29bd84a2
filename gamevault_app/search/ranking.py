"""
Result ranking and pagination.

Composite score = metacritic * 10 + rating * 3 + min(ratings_count, 50000) / 1000

Results with an image always sort ahead of results without one; within each
group the composite score decides (descending, stable).
"""

import math
from dataclasses import dataclass
from typing import Generic, List, Sequence, TypeVar

from ..metadata.models import GameDetail

T = TypeVar("T")

RATINGS_COUNT_CAP = 50000


def composite_score(game: GameDetail) -> float:
    return (
        (game.metacritic_score or 0) * 10
        + (game.rating or 0) * 3
        + min(game.ratings_count or 0, RATINGS_COUNT_CAP) / 1000
    )


def rank(games: Sequence[GameDetail]) -> List[GameDetail]:
    return sorted(games, key=lambda game: (not game.has_image, -composite_score(game)))


@dataclass
class Page(Generic[T]):
    items: List[T]
    total_results: int
    current_page: int
    total_pages: int


def paginate(items: Sequence[T], page: int, page_size: int) -> Page:
    """
    Offset-slice `items`.

    total_pages is at least 1; page is clamped into [1, total_pages].
    """
    page_size = max(1, page_size)
    total = len(items)
    total_pages = max(1, math.ceil(total / page_size))
    page = min(max(1, page), total_pages)

    start = (page - 1) * page_size
    return Page(
        items=list(items[start:start + page_size]),
        total_results=total,
        current_page=page,
        total_pages=total_pages
    )
