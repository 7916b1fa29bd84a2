import os

from gamevault_app.config import DEFAULT_PRIMARY_URLS, EngineConfig


def test_defaults_match_documented_tuning():
    config = EngineConfig.from_env({})

    assert config.catalog_ttl == 86400
    assert config.breaker_failure_threshold == 5
    assert config.breaker_recovery_timeout == 300
    assert config.enrich_batch_size == 5
    assert config.dedup_similarity_threshold == 0.8
    assert config.primary_urls == DEFAULT_PRIMARY_URLS
    assert config.catalog_path.endswith(os.path.join("data", "steam-app-list.json"))


def test_environment_overrides():
    config = EngineConfig.from_env({
        "GAMEVAULT_DATA_DIR": "/tmp/gv",
        "BREAKER_FAILURE_THRESHOLD": "3",
        "BREAKER_RECOVERY_TIMEOUT": "60",
        "CATALOG_SECONDARY_URLS": "https://a.example.com/x.json, https://b.example.com/y.json",
        "STEAM_COUNTRY_CODE": "DE",
    })

    assert config.catalog_path == os.path.join("/tmp/gv", "steam-app-list.json")
    assert config.breaker_failure_threshold == 3
    assert config.breaker_recovery_timeout == 60.0
    assert config.secondary_urls == ["https://a.example.com/x.json", "https://b.example.com/y.json"]
    assert config.steam_country_code == "DE"
