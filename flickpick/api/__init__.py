"""
API Module

Upstream clients (TMDB, Groq) with shared rate limiting and error handling,
and the FastAPI backend in `flickpick.api.backend`.
"""

from .base_client import BaseAPIClient, APIClientError, APIResponseError
from .rate_limiter import UpstreamRateLimiter
from .tmdb_client import TmdbClient
from .groq_client import GroqClient
from .client_factory import APIClientFactory

__all__ = [
    # Base infrastructure
    "BaseAPIClient",
    "APIClientError",
    "APIResponseError",
    "UpstreamRateLimiter",

    # Upstream clients
    "TmdbClient",
    "GroqClient",

    # Client factory
    "APIClientFactory",
]
