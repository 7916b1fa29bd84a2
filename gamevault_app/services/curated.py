"""
Curated fallback catalog.

A small, hand-vetted set of well known Steam games used whenever live
sourcing produces nothing usable (upstream outage, breaker open, empty
trending window), so the search surface never comes back empty-handed.
"""

import logging
from typing import Dict, Iterable, List, Optional

from ..metadata.models import GameDetail
from ..metadata.normalizers import normalize_curated
from ..search.matcher import matches

logger = logging.getLogger(__name__)

HEADER_IMAGE_URL = "https://cdn.akamai.steamstatic.com/steam/apps/{app_id}/header.jpg"

CURATED_GAMES: List[Dict] = [
    {
        'id': 1245620,
        'name': 'ELDEN RING',
        'description': 'Rise, Tarnished, and be guided by grace to brandish the power of the Elden Ring.',
        'released': '25 Feb, 2022',
        'metacritic': 94,
        'ratings_count': 700000,
        'platforms': ['Windows'],
        'genres': ['Action', 'RPG'],
        'developers': ['FromSoftware Inc.'],
        'publishers': ['FromSoftware Inc.', 'Bandai Namco Entertainment'],
    },
    {
        'id': 1086940,
        'name': "Baldur's Gate 3",
        'description': 'Gather your party and return to the Forgotten Realms in a tale of fellowship and betrayal.',
        'released': '3 Aug, 2023',
        'metacritic': 96,
        'ratings_count': 600000,
        'platforms': ['Windows', 'macOS'],
        'genres': ['Adventure', 'RPG', 'Strategy'],
        'developers': ['Larian Studios'],
        'publishers': ['Larian Studios'],
    },
    {
        'id': 292030,
        'name': 'The Witcher 3: Wild Hunt',
        'description': 'As war rages on throughout the Northern Realms, you take on the greatest contract of your life.',
        'released': '18 May, 2015',
        'metacritic': 93,
        'ratings_count': 750000,
        'platforms': ['Windows'],
        'genres': ['RPG'],
        'developers': ['CD PROJEKT RED'],
        'publishers': ['CD PROJEKT RED'],
    },
    {
        'id': 1091500,
        'name': 'Cyberpunk 2077',
        'description': 'An open-world action-adventure RPG set in the megalopolis of Night City.',
        'released': '9 Dec, 2020',
        'metacritic': 86,
        'ratings_count': 700000,
        'platforms': ['Windows'],
        'genres': ['RPG'],
        'developers': ['CD PROJEKT RED'],
        'publishers': ['CD PROJEKT RED'],
    },
    {
        'id': 413150,
        'name': 'Stardew Valley',
        'description': "You've inherited your grandfather's old farm plot in Stardew Valley.",
        'released': '26 Feb, 2016',
        'metacritic': 89,
        'ratings_count': 650000,
        'platforms': ['Windows', 'macOS', 'Linux'],
        'genres': ['Indie', 'RPG', 'Simulation'],
        'developers': ['ConcernedApe'],
        'publishers': ['ConcernedApe'],
    },
    {
        'id': 367520,
        'name': 'Hollow Knight',
        'description': 'Forge your own path through a vast ruined kingdom of insects and heroes.',
        'released': '24 Feb, 2017',
        'metacritic': 87,
        'ratings_count': 350000,
        'platforms': ['Windows', 'macOS', 'Linux'],
        'genres': ['Action', 'Adventure', 'Indie'],
        'developers': ['Team Cherry'],
        'publishers': ['Team Cherry'],
    },
    {
        'id': 1145360,
        'name': 'Hades',
        'description': 'Defy the god of the dead as you hack and slash out of the Underworld.',
        'released': '17 Sep, 2020',
        'metacritic': 93,
        'ratings_count': 250000,
        'platforms': ['Windows', 'macOS'],
        'genres': ['Action', 'Indie', 'RPG'],
        'developers': ['Supergiant Games'],
        'publishers': ['Supergiant Games'],
    },
    {
        'id': 504230,
        'name': 'Celeste',
        'description': 'Help Madeline survive her inner demons on her journey to the top of Celeste Mountain.',
        'released': '25 Jan, 2018',
        'metacritic': 88,
        'ratings_count': 90000,
        'platforms': ['Windows', 'macOS', 'Linux'],
        'genres': ['Action', 'Adventure', 'Indie'],
        'developers': ['Maddy Makes Games Inc.'],
        'publishers': ['Maddy Makes Games Inc.'],
    },
    {
        'id': 620,
        'name': 'Portal 2',
        'description': 'The "Perpetual Testing Initiative" has been expanded to allow you to design co-op puzzles.',
        'released': '18 Apr, 2011',
        'metacritic': 95,
        'ratings_count': 400000,
        'platforms': ['Windows', 'macOS', 'Linux'],
        'genres': ['Action', 'Adventure'],
        'developers': ['Valve'],
        'publishers': ['Valve'],
    },
    {
        'id': 271590,
        'name': 'Grand Theft Auto V',
        'description': 'A young street hustler, a retired bank robber and a terrifying psychopath land in trouble.',
        'released': '13 Apr, 2015',
        'metacritic': 96,
        'ratings_count': 1600000,
        'platforms': ['Windows'],
        'genres': ['Action', 'Adventure'],
        'developers': ['Rockstar North'],
        'publishers': ['Rockstar Games'],
    },
    {
        'id': 1174180,
        'name': 'Red Dead Redemption 2',
        'description': 'An epic tale of honor and loyalty at the dawn of the modern age.',
        'released': '5 Dec, 2019',
        'metacritic': 93,
        'ratings_count': 600000,
        'platforms': ['Windows'],
        'genres': ['Action', 'Adventure'],
        'developers': ['Rockstar Games'],
        'publishers': ['Rockstar Games'],
    },
    {
        'id': 814380,
        'name': 'Sekiro: Shadows Die Twice',
        'description': 'Carve your own clever path to vengeance in this adventure from FromSoftware.',
        'released': '21 Mar, 2019',
        'metacritic': 88,
        'ratings_count': 220000,
        'platforms': ['Windows'],
        'genres': ['Action', 'Adventure'],
        'developers': ['FromSoftware'],
        'publishers': ['Activision', 'FromSoftware'],
    },
    {
        'id': 1593500,
        'name': 'God of War',
        'description': 'Kratos, now a father, must fight to survive in the realm of Norse gods and monsters.',
        'released': '14 Jan, 2022',
        'metacritic': 93,
        'ratings_count': 100000,
        'platforms': ['Windows'],
        'genres': ['Action', 'Adventure'],
        'developers': ['Santa Monica Studio'],
        'publishers': ['PlayStation PC LLC'],
    },
]


class CuratedFallbackProvider:
    """Static, always-available source of verified GameDetail records."""

    def __init__(self, records: Optional[Iterable[Dict]] = None):
        self._games: List[GameDetail] = []
        for record in (CURATED_GAMES if records is None else records):
            record = dict(record)
            record.setdefault('image', HEADER_IMAGE_URL.format(app_id=record.get('id')))
            self._games.append(normalize_curated(record))
        self._by_id = {game.id: game for game in self._games}

    def __len__(self) -> int:
        return len(self._games)

    def all(self) -> List[GameDetail]:
        return list(self._games)

    def get(self, app_id: int) -> Optional[GameDetail]:
        return self._by_id.get(app_id)

    def search(self, query: str) -> List[GameDetail]:
        """Curated games satisfying the catalog match rules for `query`."""
        return [game for game in self._games if matches(game.name, query)]

    def fill(self, exclude_ids: Iterable[int], count: int) -> List[GameDetail]:
        """Up to `count` curated games whose ids are not in `exclude_ids`."""
        if count <= 0:
            return []
        excluded = set(exclude_ids)
        filler = [game for game in self._games if game.id not in excluded]
        return filler[:count]
