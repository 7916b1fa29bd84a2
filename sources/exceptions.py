"""
sources/exceptions.py - Error taxonomy for upstream catalog access.

Every failure raised by the Steam connector or the engine built on top of it
derives from CatalogEngineError so callers can catch broadly or specifically.
Transport outcomes are mapped into these classes by SteamClient; only the
GameSearchService facade turns them into tagged result dicts.
"""

from typing import Optional


class CatalogEngineError(Exception):
    """Base class for all catalog engine exceptions."""


class UpstreamUnavailable(CatalogEngineError):
    """Raised when every catalog source failed."""


class CatalogUnavailable(UpstreamUnavailable):
    """Raised by the match engine when there is no local catalog to scan."""


class RateLimited(CatalogEngineError):
    """
    Raised on 403/429 answers and when the circuit breaker is open.

    Attributes
    ----------
    retry_after : Seconds until the upstream may be tried again (0 if unknown).
    """

    def __init__(self, message: str = "Upstream is rate limiting requests", retry_after: float = 0.0):
        self.retry_after = retry_after
        super().__init__(message)


class UpstreamTimeout(CatalogEngineError):
    """Raised when an upstream call exceeds its timeout."""


class TransientUpstreamError(CatalogEngineError):
    """Raised on 5xx answers and connection-level failures."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class NotFound(CatalogEngineError):
    """Raised when a single item does not exist upstream."""


class MalformedResponse(CatalogEngineError):
    """Raised when a payload cannot be decoded or has an unexpected shape."""


class NoResultsFound(CatalogEngineError):
    """A valid empty outcome. Never surfaced to callers as a failure."""
