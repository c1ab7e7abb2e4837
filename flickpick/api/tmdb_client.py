"""
TMDB API Client

Catalog access for movie discovery and trailers. Discovery calls raise on
failure so the aggregator can count them as failed branches; trailer lookup
degrades to None.
"""

from typing import Dict, List, Optional, Any

import structlog

from .base_client import BaseAPIClient, APIResponseError
from .rate_limiter import UpstreamRateLimiter
from ..models.movie_models import QuerySpec

logger = structlog.get_logger(__name__)

YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v="


class TmdbClient(BaseAPIClient):
    """
    TMDB v3 client.

    The API key is sent as the `api_key` query parameter on every call.
    """

    BASE_URL = "https://api.themoviedb.org/3"

    def __init__(
        self,
        api_key: str,
        rate_limiter: Optional[UpstreamRateLimiter] = None,
        timeout: float = 10,
        base_url: Optional[str] = None
    ):
        """
        Initialize TMDB client.

        Args:
            api_key: TMDB API key (required)
            rate_limiter: Rate limiter instance (created if not provided)
            timeout: Total request timeout in seconds
            base_url: Override for the API base URL
        """
        if not api_key:
            raise ValueError("TMDB API key is required")

        super().__init__(
            base_url=base_url or self.BASE_URL,
            rate_limiter=rate_limiter or UpstreamRateLimiter.for_tmdb(),
            timeout=timeout,
            service_name="TMDB"
        )
        self.api_key = api_key
        self.logger.info("TMDB client initialized")

    def _extract_api_error(self, data: Dict[str, Any]) -> Optional[str]:
        # TMDB error bodies carry success=false with a status_message
        if data.get("success") is False:
            return data.get("status_message", f"Error {data.get('status_code')}")
        return None

    def _with_auth(self, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        request_params = {"api_key": self.api_key}
        for key, value in (params or {}).items():
            if value is None:
                continue
            # aiohttp only accepts str/int/float query values
            request_params[key] = str(value).lower() if isinstance(value, bool) else value
        return request_params

    async def discover_movies(self, spec: QuerySpec, retries: int = 1) -> List[Dict[str, Any]]:
        """
        Run one /discover/movie call for a query spec.

        Args:
            spec: Query to execute
            retries: Retry attempts after the first

        Returns:
            Raw result records

        Raises:
            APIClientError: On transport failures and timeouts
            APIResponseError: On HTTP errors and malformed payloads
        """
        data = await self._make_request(
            "discover/movie",
            params=self._with_auth(spec.to_params()),
            retries=retries
        )
        results = data.get("results")
        if not isinstance(results, list):
            raise APIResponseError(self.service_name, "discover payload has no results list")

        self.logger.debug(
            "Discover call completed",
            bucket=spec.bucket,
            page=spec.page,
            results_count=len(results)
        )
        return results

    async def get_trailer_url(self, movie_id: int) -> Optional[str]:
        """
        Get the first YouTube trailer for a movie.

        Args:
            movie_id: TMDB movie id

        Returns:
            Full YouTube URL, or None if there is no trailer or the call failed
        """
        try:
            data = await self._make_request(
                f"movie/{movie_id}/videos",
                params=self._with_auth({"language": "en-US"}),
                retries=1
            )
        except Exception as e:
            self.logger.error("Trailer lookup failed", movie_id=movie_id, error=str(e))
            return None

        for video in data.get("results") or []:
            if video.get("type") == "Trailer" and video.get("site") == "YouTube" and video.get("key"):
                return f"{YOUTUBE_WATCH_URL}{video['key']}"
        return None
