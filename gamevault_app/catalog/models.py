"""Catalog data types."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple


class CatalogSource(str, Enum):
    """Where a catalog snapshot came from. Values are the on-disk provenance labels."""
    PRIMARY_API = "Steam API"
    SECONDARY_MIRROR = "Community (steamappidlist)"
    TERTIARY_MIRROR = "SteamDB"
    LOCAL_BACKUP = "Local Backup"
    MANUAL = "Manual Download (Converted)"


@dataclass(frozen=True)
class CatalogEntry:
    """One {id, name} pair of the upstream inventory."""
    id: int
    name: str
    # Lowercased, trimmed name used by the match engine
    normalized_name: str = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, 'normalized_name', self.name.strip().lower())


# The catalog itself is an immutable, ordered sequence of entries
Catalog = Tuple[CatalogEntry, ...]


@dataclass(frozen=True)
class CatalogCache:
    """
    One loaded catalog snapshot.

    Replaced wholesale on refresh, never mutated, so readers holding a
    reference keep a consistent view.
    """
    entries: Catalog
    source: CatalogSource
    fetched_at: float  # when this process loaded it (drives the TTL)
    ttl: float
    downloaded_at: Optional[datetime] = None  # provenance from the disk file

    def age(self, now: float) -> float:
        return max(0.0, now - self.fetched_at)

    def is_expired(self, now: float) -> bool:
        return self.age(now) > self.ttl

    def disk_age_days(self, now: float) -> Optional[float]:
        if self.downloaded_at is None:
            return None
        delta = now - self.downloaded_at.timestamp()
        return max(0.0, delta / 86400)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
