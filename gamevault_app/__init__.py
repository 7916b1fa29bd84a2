# Load environment variables FIRST before any other imports
from dotenv import load_dotenv
load_dotenv()

from typing import Optional

import httpx

from sources.steam_client import SteamClient

from .config import EngineConfig
from .search.smart_search import GameSearchService


def create_search_service(
    config: Optional[EngineConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> GameSearchService:
    """Create and wire the catalog search engine."""
    config = config or EngineConfig.from_env()

    client = SteamClient(
        language=config.steam_language,
        country_code=config.steam_country_code,
        catalog_timeout=config.catalog_timeout,
        detail_timeout=config.detail_timeout,
        search_timeout=config.search_timeout,
        players_timeout=config.players_timeout,
        transport=transport
    )
    return GameSearchService(config=config, client=client)


__all__ = ['EngineConfig', 'GameSearchService', 'create_search_service']
