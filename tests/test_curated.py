from gamevault_app.metadata.models import DetailOrigin
from gamevault_app.services.curated import CURATED_GAMES, CuratedFallbackProvider


def test_curated_records_are_complete():
    provider = CuratedFallbackProvider()

    assert len(provider) == len(CURATED_GAMES)
    for game in provider.all():
        assert game.origin == DetailOrigin.CURATED
        assert game.images.header == f"https://cdn.akamai.steamstatic.com/steam/apps/{game.id}/header.jpg"
        assert game.release.timestamp is not None
        assert game.metacritic_score is not None


def test_search_uses_match_rules():
    provider = CuratedFallbackProvider()

    assert [game.id for game in provider.search("elden ring")] == [1245620]
    assert provider.search("zzzz not a game") == []


def test_fill_skips_excluded_ids():
    provider = CuratedFallbackProvider()
    first_two = [game.id for game in provider.all()[:2]]

    filler = provider.fill(first_two, 3)

    assert len(filler) == 3
    assert not set(first_two) & {game.id for game in filler}
    assert provider.fill([], 0) == []


def test_get_by_id():
    provider = CuratedFallbackProvider()

    assert provider.get(620).name == "Portal 2"
    assert provider.get(1) is None
