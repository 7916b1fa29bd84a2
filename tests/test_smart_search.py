import asyncio

import httpx

from gamevault_app.search.matcher import matches
from gamevault_app.search.smart_search import RATE_LIMITED_MESSAGE, GameSearchService
from sources.circuit_breaker import CircuitBreaker, CircuitBreakerConfig
from sources.steam_client import SteamClient

from conftest import detail_data

PRIMARY = 'https://api.example.com/applist/v2/'

PORTAL_CATALOG = {"applist": {"apps": [
    {"appid": 620, "name": "Portal 2"},
    {"appid": 400, "name": "Portal"},
    {"appid": 621, "name": "Portal 2 Soundtrack"},
    {"appid": 374040, "name": "Portal Knights"},
    {"appid": 413150, "name": "Stardew Valley"},
]}}


def _portal_details(steam):
    steam.details = {
        620: detail_data(620, "Portal 2", metacritic=95),
        400: detail_data(400, "Portal", metacritic=90),
        621: detail_data(621, "Portal 2 Soundtrack", app_type="dlc"),
        374040: detail_data(374040, "Portal Knights", header=False),
    }


def _run(service, call):
    async def scenario():
        try:
            return await call()
        finally:
            await service.close()
    return asyncio.run(scenario())


def test_search_enriches_dedupes_and_ranks(config, steam):
    steam.catalogs[PRIMARY] = PORTAL_CATALOG
    _portal_details(steam)
    service = GameSearchService(config=config, client=steam.client())

    result = _run(service, lambda: service.search_games("portal", 1, 20))

    assert result["success"] is True
    assert [game["name"] for game in result["games"]] == ["Portal 2", "Portal", "Portal Knights"]
    assert result["totalResults"] == 3
    assert result["currentPage"] == 1
    assert result["totalPages"] == 1
    assert all(matches(game["name"], "portal") for game in result["games"])


def test_search_paginates(config, steam):
    steam.catalogs[PRIMARY] = PORTAL_CATALOG
    _portal_details(steam)
    service = GameSearchService(config=config, client=steam.client())

    result = _run(service, lambda: service.search_games("portal", page=2, page_size=2))

    assert [game["name"] for game in result["games"]] == ["Portal Knights"]
    assert result["totalPages"] == 2
    assert result["currentPage"] == 2


def test_zero_matches_is_a_successful_empty_search(config, steam):
    steam.catalogs[PRIMARY] = PORTAL_CATALOG
    service = GameSearchService(config=config, client=steam.client())

    result = _run(service, lambda: service.search_games("qqqxxz", 1, 20))

    assert result == {"success": True, "games": [], "totalResults": 0, "currentPage": 1, "totalPages": 1}
    assert steam.count("appdetails") == 0


def test_empty_catalog_uses_direct_store_search(config, steam):
    steam.search_items = [
        {"type": "app", "id": 504230, "name": "Celeste", "tiny_image": "https://cdn.example.com/t.jpg"},
        {"type": "app", "id": 999, "name": "Mountain Climber Bundle"},
    ]
    steam.details = {
        504230: detail_data(504230, "Celeste", metacritic=88),
        999: detail_data(999, "Mountain Climber Bundle"),
    }
    service = GameSearchService(config=config, client=steam.client())

    result = _run(service, lambda: service.search_games("celeste", 1, 20))

    assert result["success"] is True
    assert [game["name"] for game in result["games"]] == ["Celeste"]
    assert result["games"][0]["origin"] == "app_details"
    assert steam.count("storesearch") == 1


def test_direct_search_falls_back_to_light_store_records(config, steam):
    steam.search_items = [{"type": "app", "id": 504230, "name": "Celeste", "metascore": "88"}]
    steam.details = {504230: 404}
    service = GameSearchService(config=config, client=steam.client())

    result = _run(service, lambda: service.search_games("celeste", 1, 20))

    assert [game["origin"] for game in result["games"]] == ["store_search"]
    assert result["games"][0]["metacritic"] == 88


def test_empty_catalog_and_failing_store_search_is_still_well_formed(config, steam):
    steam.search_status = 503
    service = GameSearchService(config=config, client=steam.client())

    result = _run(service, lambda: service.search_games("zelda", 1, 20))

    assert result["success"] is True
    assert result["games"] == []
    assert set(result) == {"success", "games", "totalResults", "currentPage", "totalPages"}


def test_rate_limited_search_reports_temporary_outage(config, steam):
    steam.catalogs[PRIMARY] = [{"appid": 9000 + n, "name": f"Zelda Fan Game {n}"} for n in range(6)]
    steam.details = {9000 + n: 403 for n in range(6)}
    service = GameSearchService(config=config, client=steam.client())

    result = _run(service, lambda: service.search_games("zelda", 1, 20))

    assert result["success"] is False
    assert result["error"] == RATE_LIMITED_MESSAGE
    assert result["games"] == []
    assert steam.count("appdetails") == 5


def test_open_breaker_serves_matching_curated_games(config, steam):
    steam.catalogs[PRIMARY] = [{"appid": 1145360, "name": "Hades"}]
    steam.details = {1145360: 429}
    breaker = CircuitBreaker("appdetails", CircuitBreakerConfig(failure_threshold=1))
    service = GameSearchService(config=config, client=steam.client(), breaker=breaker)

    result = _run(service, lambda: service.search_games("hades", 1, 20))

    assert result["success"] is True
    assert [(game["id"], game["origin"]) for game in result["games"]] == [(1145360, "curated")]


def test_game_details_include_current_players(config, steam):
    steam.details = {620: detail_data(620, "Portal 2")}
    steam.players = {620: 1234}
    service = GameSearchService(config=config, client=steam.client())

    result = _run(service, lambda: service.get_game_details("620"))

    assert result["success"] is True
    assert result["game"]["name"] == "Portal 2"
    assert result["game"]["currentPlayers"] == 1234


def test_game_details_errors_are_tagged(config, steam):
    service = GameSearchService(config=config, client=steam.client())

    async def lookups():
        return await service.get_game_details("abc"), await service.get_game_details(12345)

    invalid, missing = _run(service, lookups)

    assert invalid["success"] is False
    assert missing == {"success": False, "error": "Game 12345 not found"}


def test_suggestions(config, steam):
    steam.catalogs[PRIMARY] = PORTAL_CATALOG
    service = GameSearchService(config=config, client=steam.client())

    async def lookups():
        return await service.get_search_suggestions("p"), await service.get_search_suggestions("portal 2", 5)

    short, full = _run(service, lookups)

    assert short == {"success": True, "suggestions": []}
    assert full["success"] is True
    assert {"id": 620, "name": "Portal 2"} in full["suggestions"]
    assert all(item["id"] != 621 for item in full["suggestions"])
    assert steam.count("appdetails") == 0


def test_trending_falls_back_to_curated_when_nothing_enriches(config, steam):
    service = GameSearchService(config=config, client=steam.client())

    result = _run(service, lambda: service.get_trending_games(3))

    assert result["success"] is True
    assert len(result["games"]) == 3
    assert len({game["id"] for game in result["games"]}) == 3


def test_warm_up_and_catalog_status(config, steam):
    steam.catalogs[PRIMARY] = PORTAL_CATALOG
    service = GameSearchService(config=config, client=steam.client())

    async def scenario():
        await service.warm_up()
        return service.get_catalog_status()

    status = _run(service, scenario)

    assert status["catalogLoaded"] is True
    assert status["catalogCount"] == 5
    assert status["source"] == "Steam API"
    assert status["breaker"]["state"] == "closed"
    assert len(status["sampleGames"]) == 5


def test_recent_games_skip_player_lookups(config, steam):
    service = GameSearchService(config=config, client=steam.client())

    result = _run(service, lambda: service.get_recent_games(4))

    assert result["success"] is True
    assert len(result["games"]) == 4
    assert "windowMonths" in result
    assert steam.count("GetNumberOfCurrentPlayers") == 0


def test_one_unusable_detail_payload_does_not_fail_the_search(config, steam):
    steam.catalogs[PRIMARY] = PORTAL_CATALOG
    steam.details = {
        620: detail_data(620, "Portal 2", metacritic=95),
        400: detail_data(400, "Portal", developers={"name": "Valve"}, genres="Puzzle", website=3),
        374040: detail_data(374040, "Portal Knights", release_date="soon", metacritic=["x"]),
    }
    service = GameSearchService(config=config, client=steam.client())

    result = _run(service, lambda: service.search_games("portal", 1, 20))

    assert result["success"] is True
    assert {game["id"] for game in result["games"]} == {620, 400, 374040}


def test_viewing_dlc_details_keeps_it_out_of_later_searches(config, steam):
    steam.catalogs[PRIMARY] = PORTAL_CATALOG
    _portal_details(steam)
    service = GameSearchService(config=config, client=steam.client())

    async def scenario():
        before = await service.search_games("portal 2", 1, 20)
        viewed = await service.get_game_details(621)
        after = await service.search_games("portal 2", 1, 20)
        return before, viewed, after

    before, viewed, after = _run(service, scenario)

    assert viewed["game"]["name"] == "Portal 2 Soundtrack"
    assert [game["id"] for game in after["games"]] == [game["id"] for game in before["games"]]
    assert 620 in [game["id"] for game in after["games"]]
    assert 621 not in [game["id"] for game in after["games"]]


def test_suggestions_without_catalog_use_store_search_records(config, steam):
    steam.search_items = [
        {"type": "app", "id": "abc", "name": "Celeste Bundle"},
        {"type": "app", "id": 504230, "name": "Celeste"},
        {"type": "dlc", "id": 504231, "name": "Celeste Farewell"},
    ]
    service = GameSearchService(config=config, client=steam.client())

    result = _run(service, lambda: service.get_search_suggestions("celeste", 5))

    assert result == {"success": True, "suggestions": [{"id": 504230, "name": "Celeste"}]}
    assert steam.count("appdetails") == 0


def test_suggestions_store_search_is_retried(config):
    searches = []

    def handler(request):
        if not request.url.path.endswith("/api/storesearch/"):
            return httpx.Response(503)
        searches.append(request)
        if len(searches) == 1:
            return httpx.Response(502)
        return httpx.Response(200, json={"items": [{"type": "app", "id": 620, "name": "Portal 2"}]})

    service = GameSearchService(config=config, client=SteamClient(transport=httpx.MockTransport(handler)))

    result = _run(service, lambda: service.get_search_suggestions("portal", 5))

    assert result["suggestions"] == [{"id": 620, "name": "Portal 2"}]
    assert len(searches) == 2
