from gamevault_app.metadata.cache import DetailCache
from gamevault_app.metadata.models import DetailOrigin, GameDetail


def _detail(app_id):
    return GameDetail(id=app_id, name=f"Game {app_id}", origin=DetailOrigin.APP_DETAILS)


def test_entries_expire_after_ttl(clock):
    cache = DetailCache(ttl=60, clock=clock)
    cache.set(_detail(1))

    assert cache.get(1).name == "Game 1"
    clock.advance(61)
    assert cache.get(1) is None
    assert cache.stats()["hits"] == 1
    assert cache.stats()["misses"] == 1


def test_least_recently_used_entry_is_evicted(clock):
    cache = DetailCache(ttl=60, max_size=2, clock=clock)
    cache.set(_detail(1))
    cache.set(_detail(2))
    cache.get(1)
    cache.set(_detail(3))

    assert cache.get(2) is None
    assert cache.get(1) is not None
    assert len(cache) == 2


def test_evict_expired(clock):
    cache = DetailCache(ttl=60, clock=clock)
    cache.set(_detail(1))
    clock.advance(30)
    cache.set(_detail(2))
    clock.advance(31)

    assert cache.evict_expired() == 1
    assert len(cache) == 1
