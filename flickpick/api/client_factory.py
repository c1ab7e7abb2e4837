"""
API Client Factory

Creates the TMDB and Groq clients from SystemConfig, sharing one rate
limiter per upstream service.
"""

from typing import Optional, Dict, Any

import structlog

from .groq_client import GroqClient
from .rate_limiter import UpstreamRateLimiter
from .tmdb_client import TmdbClient
from ..models.config_models import SystemConfig

logger = structlog.get_logger(__name__)


class APIClientFactory:
    """
    Factory for configured upstream clients.

    A missing API key is not an error here: the create methods return None
    and callers fall back (curated movies, canned chat replies).
    """

    def __init__(self, system_config: Optional[SystemConfig] = None):
        self.system_config = system_config or SystemConfig()
        self.logger = logger.bind(service="APIClientFactory")

        # Shared across clients of the same upstream
        self._rate_limiters: Dict[str, UpstreamRateLimiter] = {}

        self.logger.info("API Client Factory initialized")

    def create_tmdb_client(
        self,
        api_key: Optional[str] = None,
        rate_limit: Optional[float] = None
    ) -> Optional[TmdbClient]:
        """
        Create a TMDB client.

        Args:
            api_key: TMDB API key (defaults to system config)
            rate_limit: Requests per second (defaults to system config)

        Returns:
            Configured TmdbClient, or None if no API key is available
        """
        api_key = api_key or self.system_config.tmdb_api_key
        if not api_key:
            self.logger.warning("TMDB API key not configured, catalog disabled")
            return None

        rate_limit = rate_limit or self.system_config.tmdb_rate_limit
        limiter_key = f"tmdb_{rate_limit}"
        if limiter_key not in self._rate_limiters:
            self._rate_limiters[limiter_key] = UpstreamRateLimiter.for_tmdb(rate_limit)

        client = TmdbClient(
            api_key=api_key,
            rate_limiter=self._rate_limiters[limiter_key],
            timeout=self.system_config.upstream_timeout_seconds
        )
        self.logger.info("TMDB client created", rate_limit=rate_limit)
        return client

    def create_groq_client(
        self,
        api_key: Optional[str] = None,
        calls_per_minute: Optional[int] = None
    ) -> Optional[GroqClient]:
        """
        Create a Groq chat client.

        Returns:
            Configured GroqClient, or None if no API key is available
        """
        api_key = api_key or self.system_config.groq_api_key
        if not api_key:
            self.logger.warning("Groq API key not configured, chat runs in fallback mode")
            return None

        calls_per_minute = calls_per_minute or self.system_config.groq_rate_limit
        limiter_key = f"groq_{calls_per_minute}"
        if limiter_key not in self._rate_limiters:
            self._rate_limiters[limiter_key] = UpstreamRateLimiter.for_groq(calls_per_minute)

        client = GroqClient(
            api_key=api_key,
            model=self.system_config.groq_model,
            rate_limiter=self._rate_limiters[limiter_key]
        )
        self.logger.info("Groq client created", calls_per_minute=calls_per_minute)
        return client

    def get_rate_limiter_stats(self) -> Dict[str, Dict[str, Any]]:
        return {key: limiter.get_current_usage() for key, limiter in self._rate_limiters.items()}
