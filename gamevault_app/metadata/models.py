"""
================================================================================
GameVault v1.0 - Game Detail Models
================================================================================
Canonical record for a game, produced from any upstream shape:
  - Steam appdetails (full store record)
  - Steam store search items (light records)
  - Curated fallback entries (hand-vetted static data)

A GameDetail is always complete: every field has a defined value (empty list
or None for unknowns). A record that cannot be normalized is not produced.
================================================================================
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple


# =============================================================================
# ENUMS
# =============================================================================

class RecordKind(str, Enum):
    """What an upstream record describes."""
    GAME = "game"
    DLC = "dlc"
    DEMO = "demo"
    VIDEO = "video"
    HARDWARE = "hardware"
    UNKNOWN = "unknown"


class DetailOrigin(str, Enum):
    """Upstream shape a GameDetail was normalized from."""
    APP_DETAILS = "app_details"
    STORE_SEARCH = "store_search"
    CURATED = "curated"


# =============================================================================
# DATA MODELS
# =============================================================================

@dataclass(frozen=True)
class ReleaseInfo:
    """Release date as shown upstream plus its parsed form."""
    display_text: str = "Unknown"
    timestamp: Optional[float] = None  # Unix seconds, UTC
    coming_soon: bool = False

    @property
    def date(self) -> Optional[datetime]:
        if self.timestamp is None:
            return None
        return datetime.fromtimestamp(self.timestamp, tz=timezone.utc)


@dataclass(frozen=True)
class GameImages:
    header: Optional[str] = None
    background: Optional[str] = None

    @property
    def best(self) -> Optional[str]:
        return self.header or self.background


@dataclass(frozen=True)
class GameDetail:
    """
    Canonical, fully normalized game record.

    Ratings:
      - metacritic_score: critic score 0-100 (None when unscored)
      - rating: 0-5, derived from the critic score
      - ratings_count: number of user recommendations
    """

    id: int
    name: str
    origin: DetailOrigin

    short_description: str = ""
    long_description: str = ""
    release: ReleaseInfo = field(default_factory=ReleaseInfo)

    rating: Optional[float] = None
    metacritic_score: Optional[int] = None
    ratings_count: int = 0

    platforms: Tuple[str, ...] = ()
    genres: Tuple[str, ...] = ()
    developers: Tuple[str, ...] = ()
    publishers: Tuple[str, ...] = ()

    images: GameImages = field(default_factory=GameImages)
    website: Optional[str] = None
    screenshots: Tuple[str, ...] = ()

    # Best-effort live data, filled by trending/detail views
    current_players: Optional[int] = None

    @property
    def has_image(self) -> bool:
        return self.images.best is not None

    def with_players(self, count: Optional[int]) -> "GameDetail":
        return replace(self, current_players=count)

    def to_dict(self) -> Dict:
        """Convert to the JSON shape handed to the route layer."""
        return {
            'id': self.id,
            'name': self.name,
            'origin': self.origin.value,
            'shortDescription': self.short_description,
            'description': self.long_description,
            'released': self.release.display_text,
            'releaseTimestamp': self.release.timestamp,
            'comingSoon': self.release.coming_soon,
            'rating': self.rating,
            'metacritic': self.metacritic_score,
            'ratingsCount': self.ratings_count,
            'platforms': list(self.platforms),
            'genres': list(self.genres),
            'developers': list(self.developers),
            'publishers': list(self.publishers),
            'headerImage': self.images.header,
            'backgroundImage': self.images.background,
            'website': self.website,
            'screenshots': list(self.screenshots),
            'currentPlayers': self.current_players,
        }


def rating_from_metacritic(score: Optional[int]) -> Optional[float]:
    """Map a 0-100 critic score onto the 0-5 rating scale (one decimal)."""
    if score is None:
        return None
    return round(max(0, min(100, score)) / 20.0, 1)


def names_of(items: List) -> Tuple[str, ...]:
    """Collect display names from upstream lists of strings or {description|name} objects."""
    names = []
    for item in items or []:
        if isinstance(item, str):
            value = item
        elif isinstance(item, dict):
            value = item.get('description') or item.get('name') or ''
        else:
            continue
        value = value.strip()
        if value and value not in names:
            names.append(value)
    return tuple(names)
