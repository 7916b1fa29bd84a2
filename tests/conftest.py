import httpx
import pytest

from gamevault_app.config import EngineConfig
from sources.steam_client import SteamClient


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSteam:
    """In-memory Steam upstream served through httpx.MockTransport."""

    def __init__(self):
        self.catalogs = {}      # url -> payload, or an HTTP status code
        self.details = {}       # app id -> data dict, an HTTP status code, or None (success: false)
        self.search_items = []
        self.search_status = 200
        self.players = {}
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path.endswith('/api/appdetails'):
            app_id = int(request.url.params['appids'])
            detail = self.details.get(app_id)
            if isinstance(detail, int):
                return httpx.Response(detail)
            if detail is None:
                return httpx.Response(200, json={str(app_id): {'success': False}})
            return httpx.Response(200, json={str(app_id): {'success': True, 'data': detail}})

        if path.endswith('/api/storesearch/'):
            if self.search_status != 200:
                return httpx.Response(self.search_status)
            return httpx.Response(200, json={'total': len(self.search_items), 'items': self.search_items})

        if 'GetNumberOfCurrentPlayers' in path:
            count = self.players.get(int(request.url.params['appid']))
            if count is None:
                return httpx.Response(404)
            return httpx.Response(200, json={'response': {'player_count': count, 'result': 1}})

        url = f"{request.url.scheme}://{request.url.host}{path}"
        payload = self.catalogs.get(url)
        if payload is None:
            return httpx.Response(503)
        if isinstance(payload, int):
            return httpx.Response(payload)
        return httpx.Response(200, json=payload)

    def client(self) -> SteamClient:
        return SteamClient(transport=httpx.MockTransport(self.handler))

    def count(self, fragment: str) -> int:
        return sum(1 for request in self.requests if fragment in str(request.url))


def detail_data(app_id, name, app_type='game', released='24 Feb, 2022', metacritic=None, header=True, **extra):
    data = {
        'type': app_type,
        'name': name,
        'steam_appid': app_id,
        'short_description': f'{name} in a nutshell',
        'detailed_description': f'<p>All about <b>{name}</b></p>',
        'release_date': {'coming_soon': False, 'date': released},
        'platforms': {'windows': True, 'mac': False, 'linux': True},
        'genres': [{'id': '1', 'description': 'Action'}],
        'developers': ['Studio'],
        'publishers': ['Publisher'],
    }
    if header:
        data['header_image'] = f'https://cdn.example.com/{app_id}/header.jpg'
    if metacritic is not None:
        data['metacritic'] = {'score': metacritic}
    data.update(extra)
    return data


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config(tmp_path):
    return EngineConfig(
        data_dir=str(tmp_path / 'data'),
        primary_urls=['https://api.example.com/applist/v2/'],
        secondary_urls=['https://mirror.example.com/steamappidlist.json'],
        tertiary_urls=['https://tracking.example.com/AppList.json'],
        retry_base_delay=0,
        retry_max_delay=0,
        enrich_batch_delay_min=0,
        enrich_batch_delay_max=0,
    )


@pytest.fixture
def steam():
    return FakeSteam()
