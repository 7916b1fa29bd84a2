"""
Engine configuration.

Every tuning constant of the catalog engine lives here and can be overridden
through the environment (a .env file is loaded by the package on import).
The similarity threshold, breaker threshold and cool-down are empirically
tuned values, not invariants.
"""

import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

DEFAULT_PRIMARY_URLS = [
    "https://api.steampowered.com/ISteamApps/GetAppList/v2/",
    "https://api.steampowered.com/ISteamApps/GetAppList/v0001/",
]
DEFAULT_SECONDARY_URLS = [
    "https://raw.githubusercontent.com/jsnli/steamappidlist/main/steamappidlist.json",
]
DEFAULT_TERTIARY_URLS = [
    "https://raw.githubusercontent.com/SteamDatabase/SteamTracking/master/AppList.json",
]


def _env_list(env: Mapping[str, str], key: str, default: List[str]) -> List[str]:
    raw = env.get(key, "")
    if not raw.strip():
        return list(default)
    return [part.strip() for part in raw.split(",") if part.strip()]


@dataclass
class EngineConfig:
    """Runtime settings for the catalog engine."""

    # Catalog acquisition
    data_dir: str = os.path.join(BASE_DIR, "data")
    catalog_file_name: str = "steam-app-list.json"
    catalog_ttl: float = 24 * 3600
    catalog_stale_after_days: float = 7
    catalog_failure_backoff: float = 60.0
    primary_urls: List[str] = field(default_factory=lambda: list(DEFAULT_PRIMARY_URLS))
    secondary_urls: List[str] = field(default_factory=lambda: list(DEFAULT_SECONDARY_URLS))
    tertiary_urls: List[str] = field(default_factory=lambda: list(DEFAULT_TERTIARY_URLS))

    # Circuit breaker (detail endpoint)
    breaker_failure_threshold: int = 5
    breaker_recovery_timeout: float = 300.0

    # Retry schedule for transient upstream errors
    retry_max_attempts: int = 3
    retry_base_delay: float = 1.0
    retry_backoff_factor: float = 2.0
    retry_max_delay: float = 5.0

    # Enrichment
    enrich_batch_size: int = 5
    enrich_batch_delay_min: float = 0.15
    enrich_batch_delay_max: float = 0.30
    detail_cache_ttl: float = 3600
    detail_cache_max_size: int = 2000

    # Matching, dedup, paging
    match_candidate_cap: int = 100
    dedup_similarity_threshold: float = 0.8
    default_page_size: int = 20
    max_page_size: int = 100

    # Upstream HTTP
    catalog_timeout: float = 30.0
    detail_timeout: float = 10.0
    search_timeout: float = 10.0
    players_timeout: float = 10.0
    steam_language: str = "english"
    steam_country_code: str = "US"

    @property
    def catalog_path(self) -> str:
        return os.path.join(self.data_dir, self.catalog_file_name)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """Build a config from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            data_dir=env.get("GAMEVAULT_DATA_DIR", defaults.data_dir),
            catalog_file_name=env.get("CATALOG_FILE_NAME", defaults.catalog_file_name),
            catalog_ttl=float(env.get("CATALOG_TTL_SECONDS", defaults.catalog_ttl)),
            catalog_stale_after_days=float(env.get("CATALOG_STALE_AFTER_DAYS", defaults.catalog_stale_after_days)),
            catalog_failure_backoff=float(env.get("CATALOG_FAILURE_BACKOFF_SECONDS", defaults.catalog_failure_backoff)),
            primary_urls=_env_list(env, "CATALOG_PRIMARY_URLS", DEFAULT_PRIMARY_URLS),
            secondary_urls=_env_list(env, "CATALOG_SECONDARY_URLS", DEFAULT_SECONDARY_URLS),
            tertiary_urls=_env_list(env, "CATALOG_TERTIARY_URLS", DEFAULT_TERTIARY_URLS),
            breaker_failure_threshold=int(env.get("BREAKER_FAILURE_THRESHOLD", defaults.breaker_failure_threshold)),
            breaker_recovery_timeout=float(env.get("BREAKER_RECOVERY_TIMEOUT", defaults.breaker_recovery_timeout)),
            retry_max_attempts=int(env.get("RETRY_MAX_ATTEMPTS", defaults.retry_max_attempts)),
            retry_base_delay=float(env.get("RETRY_BASE_DELAY", defaults.retry_base_delay)),
            retry_backoff_factor=float(env.get("RETRY_BACKOFF_FACTOR", defaults.retry_backoff_factor)),
            retry_max_delay=float(env.get("RETRY_MAX_DELAY", defaults.retry_max_delay)),
            enrich_batch_size=int(env.get("ENRICH_BATCH_SIZE", defaults.enrich_batch_size)),
            enrich_batch_delay_min=float(env.get("ENRICH_BATCH_DELAY_MIN", defaults.enrich_batch_delay_min)),
            enrich_batch_delay_max=float(env.get("ENRICH_BATCH_DELAY_MAX", defaults.enrich_batch_delay_max)),
            detail_cache_ttl=float(env.get("DETAIL_CACHE_TTL", defaults.detail_cache_ttl)),
            detail_cache_max_size=int(env.get("DETAIL_CACHE_MAX_SIZE", defaults.detail_cache_max_size)),
            match_candidate_cap=int(env.get("MATCH_CANDIDATE_CAP", defaults.match_candidate_cap)),
            dedup_similarity_threshold=float(env.get("DEDUP_SIMILARITY_THRESHOLD", defaults.dedup_similarity_threshold)),
            default_page_size=int(env.get("DEFAULT_PAGE_SIZE", defaults.default_page_size)),
            max_page_size=int(env.get("MAX_PAGE_SIZE", defaults.max_page_size)),
            catalog_timeout=float(env.get("CATALOG_TIMEOUT", defaults.catalog_timeout)),
            detail_timeout=float(env.get("DETAIL_TIMEOUT", defaults.detail_timeout)),
            search_timeout=float(env.get("SEARCH_TIMEOUT", defaults.search_timeout)),
            players_timeout=float(env.get("PLAYERS_TIMEOUT", defaults.players_timeout)),
            steam_language=env.get("STEAM_LANGUAGE", defaults.steam_language),
            steam_country_code=env.get("STEAM_COUNTRY_CODE", defaults.steam_country_code),
        )
