"""
================================================================================
GameVault v1.0 - Upstream Connectors
================================================================================
Everything that talks to (or protects us from) the Steam upstream:

  - steam_client.py    - async HTTP client for catalog/detail/search/players
  - circuit_breaker.py - short-circuits detail fetches while Steam throttles
  - retry.py           - backoff schedule for transient failures
  - exceptions.py      - error taxonomy shared by the whole engine
================================================================================
"""

from .circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitBreakerState,
    CircuitState,
    FailureKind,
)
from .exceptions import (
    CatalogEngineError,
    CatalogUnavailable,
    MalformedResponse,
    NoResultsFound,
    NotFound,
    RateLimited,
    TransientUpstreamError,
    UpstreamTimeout,
    UpstreamUnavailable,
)
from .retry import RetryPolicy, call_with_retry
from .steam_client import SteamClient

__all__ = [
    'CircuitBreaker', 'CircuitBreakerConfig', 'CircuitBreakerState', 'CircuitState', 'FailureKind',
    'CatalogEngineError', 'CatalogUnavailable', 'MalformedResponse', 'NoResultsFound', 'NotFound',
    'RateLimited', 'TransientUpstreamError', 'UpstreamTimeout', 'UpstreamUnavailable',
    'RetryPolicy', 'call_with_retry', 'SteamClient',
]
