"""
================================================================================
GameVault v1.0 - Steam Connector
================================================================================
Async REST client for the Steam endpoints the catalog engine depends on:
  - Bulk app list (primary API and community mirrors)
  - Per-app store details (appdetails)
  - Free-text store search (only used when no local catalog exists)
  - Current concurrent players (best effort)

The client performs exactly one HTTP exchange per call and maps every outcome
into the sources.exceptions taxonomy. Retries and circuit breaking live one
layer up (sources.retry, sources.circuit_breaker).
================================================================================
"""

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from .exceptions import (
    MalformedResponse,
    NotFound,
    RateLimited,
    TransientUpstreamError,
    UpstreamTimeout,
)

logger = logging.getLogger(__name__)


class SteamClient:
    """
    Thin async wrapper around the Steam store and web APIs.

    All endpoints are plain JSON over GET. A single httpx.AsyncClient is
    created lazily and shared by every call made through this instance.
    """

    id: str = "steam"
    name: str = "Steam"

    store_url: str = "https://store.steampowered.com"
    web_api_url: str = "https://api.steampowered.com"

    # Request timeouts (seconds)
    catalog_timeout: float = 30.0
    detail_timeout: float = 10.0
    search_timeout: float = 10.0
    players_timeout: float = 10.0

    user_agent: str = "GameVault/1.0 (catalog search engine)"

    def __init__(
        self,
        language: str = "english",
        country_code: str = "US",
        catalog_timeout: Optional[float] = None,
        detail_timeout: Optional[float] = None,
        search_timeout: Optional[float] = None,
        players_timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.language = language
        self.country_code = country_code
        if catalog_timeout is not None:
            self.catalog_timeout = catalog_timeout
        if detail_timeout is not None:
            self.detail_timeout = detail_timeout
        if search_timeout is not None:
            self.search_timeout = search_timeout
        if players_timeout is not None:
            self.players_timeout = players_timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                transport=self._transport,
                follow_redirects=True,
                headers={
                    'User-Agent': self.user_agent,
                    'Accept': 'application/json'
                }
            )
        return self._client

    async def close(self):
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        timeout: float = 10.0
    ) -> Any:
        """
        Make one GET request and decode the JSON body.

        Raises:
            RateLimited: 403 / 429
            NotFound: 404
            TransientUpstreamError: 5xx or connection failure
            UpstreamTimeout: request exceeded timeout
            MalformedResponse: any other status or an undecodable body
        """
        client = await self._get_client()

        try:
            response = await client.get(url, params=params, timeout=timeout)
        except httpx.TimeoutException as e:
            raise UpstreamTimeout(f"{url}: timed out after {timeout}s") from e
        except httpx.RequestError as e:
            raise TransientUpstreamError(f"{url}: request error ({e})") from e

        status = response.status_code
        if status in (403, 429):
            retry_after = response.headers.get("Retry-After", "0")
            try:
                retry_seconds = float(retry_after)
            except ValueError:
                retry_seconds = 0.0
            raise RateLimited(f"{url}: rate limited (HTTP {status})", retry_after=retry_seconds)
        if status == 404:
            raise NotFound(f"{url}: not found")
        if status >= 500:
            raise TransientUpstreamError(f"{url}: server error (HTTP {status})", status_code=status)
        if status != 200:
            raise MalformedResponse(f"{url}: unexpected HTTP {status}")

        try:
            return response.json()
        except (json.JSONDecodeError, ValueError) as e:
            raise MalformedResponse(f"{url}: invalid JSON ({e})") from e

    # =========================================================================
    # ENDPOINTS
    # =========================================================================

    async def fetch_catalog(self, url: str) -> Any:
        """Download a raw app list payload from a catalog source URL."""
        return await self._get_json(url, timeout=self.catalog_timeout)

    async def get_app_details(self, app_id: int) -> Dict[str, Any]:
        """
        Fetch the store record for one app.

        Returns:
            The `data` object of the appdetails answer

        Raises:
            NotFound: Steam answered success=false for this id
            MalformedResponse: answer is missing the app envelope
        """
        payload = await self._get_json(
            f"{self.store_url}/api/appdetails",
            params={'appids': app_id, 'l': self.language, 'cc': self.country_code},
            timeout=self.detail_timeout
        )

        if not isinstance(payload, dict):
            raise MalformedResponse(f"appdetails {app_id}: expected an object")

        envelope = payload.get(str(app_id))
        if not isinstance(envelope, dict):
            raise MalformedResponse(f"appdetails {app_id}: missing app envelope")
        if not envelope.get('success'):
            raise NotFound(f"appdetails {app_id}: no store record")

        data = envelope.get('data')
        if not isinstance(data, dict):
            raise MalformedResponse(f"appdetails {app_id}: missing data")
        return data

    async def store_search(self, term: str) -> List[Dict[str, Any]]:
        """Run a free-text store search and return the raw result items."""
        payload = await self._get_json(
            f"{self.store_url}/api/storesearch/",
            params={'term': term, 'l': self.language, 'cc': self.country_code},
            timeout=self.search_timeout
        )

        if not isinstance(payload, dict) or not isinstance(payload.get('items', []), list):
            raise MalformedResponse(f"storesearch '{term}': unexpected shape")
        return [item for item in payload.get('items', []) if isinstance(item, dict)]

    async def get_current_players(self, app_id: int) -> Optional[int]:
        """
        Get the current concurrent player count for an app.

        Best effort: any failure is logged at debug level and returns None.
        """
        try:
            payload = await self._get_json(
                f"{self.web_api_url}/ISteamUserStats/GetNumberOfCurrentPlayers/v1/",
                params={'appid': app_id},
                timeout=self.players_timeout
            )
            count = payload.get('response', {}).get('player_count')
            return int(count) if count is not None else None
        except Exception as e:
            logger.debug(f"{self.id}: player count unavailable for {app_id}: {e}")
            return None

    def __repr__(self):
        return f"<{self.__class__.__name__}(id='{self.id}', language='{self.language}')>"
