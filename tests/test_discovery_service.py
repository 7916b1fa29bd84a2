import asyncio
import random

from gamevault_app.metadata.models import DetailOrigin, GameDetail, GameImages, ReleaseInfo
from gamevault_app.services.curated import CuratedFallbackProvider
from gamevault_app.services.discovery_service import SECONDS_PER_MONTH, TrendingSelector

ELDEN_RING = 1245620


class FakeEnricher:
    def __init__(self, games):
        self.games = {game.id: game for game in games}
        self.requested = []

    async def enrich(self, entries):
        self.requested.extend(entry.id for entry in entries)
        return [self.games[entry.id] for entry in entries if entry.id in self.games]


class FakePlayers:
    def __init__(self, counts):
        self.counts = counts

    async def get_current_players(self, app_id):
        return self.counts.get(app_id)


def _game(app_id, released_ts, metacritic=80):
    return GameDetail(
        id=app_id,
        name=f"Game {app_id}",
        origin=DetailOrigin.APP_DETAILS,
        release=ReleaseInfo(display_text="-", timestamp=released_ts),
        metacritic_score=metacritic,
        images=GameImages(header="https://cdn.example.com/h.jpg"),
    )


def _selector(games, clock, players=None):
    return TrendingSelector(
        FakeEnricher(games),
        CuratedFallbackProvider(),
        client=FakePlayers(players) if players is not None else None,
        clock=clock,
        rng=random.Random(7),
    )


def test_window_widens_to_twelve_months_and_curated_fills_without_duplicates(clock):
    eight_months_ago = clock.now - 8 * SECONDS_PER_MONTH
    long_ago = clock.now - 30 * SECONDS_PER_MONTH
    games = [
        _game(ELDEN_RING, eight_months_ago),
        _game(101, eight_months_ago - 86400),
        _game(102, eight_months_ago - 2 * 86400),
        _game(103, long_ago),
        _game(104, long_ago),
    ]
    pool = [(game.id, game.name) for game in games]
    selector = _selector(games, clock)

    selection = asyncio.run(selector.select(pool, limit=5))

    ids = [game.id for game in selection.games]
    assert selection.window_months == 12
    assert selection.live_count == 3
    assert ids[:3] == [ELDEN_RING, 101, 102]
    assert selection.filled_count == 2
    assert len(ids) == 5
    assert len(set(ids)) == 5
    assert not {103, 104} & set(ids)


def test_narrowest_window_used_when_limit_is_met(clock):
    recent = clock.now - 2 * SECONDS_PER_MONTH
    games = [_game(200 + n, recent - n * 86400) for n in range(4)]
    selector = _selector(games, clock)

    selection = asyncio.run(selector.select([(game.id, game.name) for game in games], limit=3))

    assert selection.window_months == 6
    assert [game.id for game in selection.games] == [200, 201, 202]
    assert selection.filled_count == 0


def test_future_and_undated_releases_are_excluded(clock):
    games = [
        _game(300, clock.now + 30 * 86400),
        _game(301, None),
        _game(302, clock.now - 86400),
    ]
    selector = _selector(games, clock)

    selection = asyncio.run(selector.select([(game.id, game.name) for game in games], limit=1))

    assert [game.id for game in selection.games] == [302]


def test_nothing_in_any_window_falls_back_to_curated(clock):
    games = [_game(400, clock.now - 40 * SECONDS_PER_MONTH)]
    selector = _selector(games, clock)

    selection = asyncio.run(selector.select([(400, "Old Game")], limit=4))

    assert selection.window_months is None
    assert selection.live_count == 0
    assert len(selection.games) == 4
    assert all(game.origin == DetailOrigin.CURATED for game in selection.games)


def test_same_release_day_orders_by_players_then_score(clock):
    day = clock.now - 86400
    games = [_game(500, day, metacritic=95), _game(501, day, metacritic=70), _game(502, day, metacritic=60)]
    selector = _selector(games, clock, players={501: 90_000, 502: 90_000})

    selection = asyncio.run(selector.select([(game.id, game.name) for game in games], limit=3))

    assert [game.id for game in selection.games] == [501, 502, 500]
    assert selection.games[0].current_players == 90_000
    assert selection.games[2].current_players is None


def test_sample_is_larger_than_limit_but_bounded(clock):
    pool = [(600 + n, f"Game {n}") for n in range(40)]
    selector = _selector([], clock)

    asyncio.run(selector.select(pool, limit=5))

    assert len(selector.enricher.requested) == 10
