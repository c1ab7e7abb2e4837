"""
Base API Client

Shared HTTP request handling, rate limiting and error handling for the
upstream clients (TMDB catalog, Groq chat completions).
"""

import asyncio
import json
import random
from abc import ABC, abstractmethod
from typing import Dict, Optional, Any

import aiohttp
import structlog

from .rate_limiter import UpstreamRateLimiter

logger = structlog.get_logger(__name__)


class APIClientError(Exception):
    """An upstream call could not be completed."""

    def __init__(self, service: str, message: str):
        super().__init__(f"{service}: {message}")
        self.service = service


class APIResponseError(APIClientError):
    """An upstream call returned a non-2xx status or an error payload."""

    def __init__(self, service: str, message: str, status: Optional[int] = None):
        super().__init__(service, message)
        self.status = status


class BaseAPIClient(ABC):
    """
    Base HTTP client with unified request handling, rate limiting and error handling.

    Subclasses supply the service-specific error extraction. The aiohttp
    session is opened with `open()` or `async with`, and closed with `close()`.
    """

    def __init__(
        self,
        base_url: str,
        rate_limiter: UpstreamRateLimiter,
        timeout: float = 10,
        service_name: str = "api"
    ):
        """
        Initialize base API client.

        Args:
            base_url: Base URL for the API
            rate_limiter: Rate limiter instance for this client
            timeout: Total request timeout in seconds
            service_name: Service name for logging and identification
        """
        self.base_url = base_url.rstrip('/')
        self.rate_limiter = rate_limiter
        self.timeout = timeout
        self.service_name = service_name
        self.session: Optional[aiohttp.ClientSession] = None

        self.logger = logger.bind(
            service=service_name,
            component="BaseAPIClient",
            base_url=self.base_url
        )
        self.logger.debug("Base API client initialized", timeout=timeout)

    async def open(self) -> None:
        """Create the underlying HTTP session if it does not exist."""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            self.logger.debug("API client session started")

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        if self.session and not self.session.closed:
            await self.session.close()
            self.logger.debug("API client session closed")
        self.session = None

    async def __aenter__(self):
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _make_request(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        json_body: Optional[Dict[str, Any]] = None,
        retries: int = 2
    ) -> Dict[str, Any]:
        """
        Make rate-limited HTTP request with error handling and retries.

        Args:
            endpoint: API endpoint (relative to base_url)
            params: Query parameters
            method: HTTP method
            headers: Additional headers
            json_body: JSON request body
            retries: Number of retry attempts after the first

        Returns:
            Parsed JSON response data

        Raises:
            APIResponseError: Non-retryable HTTP status or error payload
            APIClientError: Timeouts and transport errors after all retries
        """
        if self.session is None:
            self.logger.error("Client not initialized")
            raise APIClientError(
                self.service_name, "client not initialized; call open() or use async with"
            )

        url = f"{self.base_url}/{endpoint.lstrip('/')}" if endpoint else self.base_url
        request_headers = dict(headers or {})
        request_headers.setdefault('User-Agent', f'FlickPick-{self.service_name}/1.0')

        for attempt in range(retries + 1):
            await self.rate_limiter.wait_if_needed()
            try:
                self.logger.debug(
                    "Making API request",
                    method=method,
                    endpoint=endpoint,
                    attempt=attempt + 1,
                    max_attempts=retries + 1
                )

                async with self.session.request(
                    method=method,
                    url=url,
                    params=params,
                    json=json_body,
                    headers=request_headers
                ) as response:

                    if 200 <= response.status < 300:
                        data = await self._parse_response(response)
                        error_info = self._extract_api_error(data)
                        if error_info:
                            self.logger.error(
                                "API error in response body",
                                error=error_info,
                                endpoint=endpoint,
                                status=response.status
                            )
                            raise APIResponseError(self.service_name, error_info, response.status)
                        return data

                    if response.status == 429 and attempt < retries:
                        wait_time = self._calculate_backoff_time(response, attempt)
                        self.logger.warning(
                            "Rate limited - backing off",
                            attempt=attempt + 1,
                            wait_time=wait_time,
                            endpoint=endpoint
                        )
                        await asyncio.sleep(wait_time)
                        continue

                    self.logger.warning(
                        f"{self.service_name} HTTP error",
                        status=response.status,
                        endpoint=endpoint,
                        attempt=attempt + 1
                    )
                    # Client errors other than 429 are not worth retrying
                    if 400 <= response.status < 500 or attempt == retries:
                        raise APIResponseError(
                            self.service_name,
                            f"HTTP {response.status} from {endpoint or '/'}",
                            response.status
                        )

            except asyncio.TimeoutError:
                self.logger.warning(
                    "Request timeout",
                    attempt=attempt + 1,
                    endpoint=endpoint,
                    timeout=self.timeout
                )
                if attempt == retries:
                    raise APIClientError(
                        self.service_name, f"request timed out after {retries + 1} attempts"
                    )

            except aiohttp.ClientError as e:
                self.logger.error(
                    "HTTP client error",
                    error=str(e),
                    error_type=type(e).__name__,
                    attempt=attempt + 1,
                    endpoint=endpoint
                )
                if attempt == retries:
                    raise APIClientError(self.service_name, f"client error: {e}") from e

            await self._exponential_backoff(attempt)

        raise APIClientError(self.service_name, f"request failed after {retries + 1} attempts")

    async def _parse_response(self, response: aiohttp.ClientResponse) -> Dict[str, Any]:
        """Parse a JSON response body; malformed bodies are response errors."""
        try:
            data = await response.json(content_type=None)
        except (json.JSONDecodeError, aiohttp.ContentTypeError) as e:
            self.logger.error(f"{self.service_name} invalid JSON response", error=str(e))
            raise APIResponseError(self.service_name, "invalid JSON response", response.status) from e
        if not isinstance(data, dict):
            raise APIResponseError(self.service_name, "unexpected JSON payload", response.status)
        return data

    @abstractmethod
    def _extract_api_error(self, data: Dict[str, Any]) -> Optional[str]:
        """
        Extract API-specific error information from response data.

        Args:
            data: Parsed response data

        Returns:
            Error message if found, None otherwise
        """

    def _calculate_backoff_time(self, response: aiohttp.ClientResponse, attempt: int) -> float:
        retry_after = response.headers.get('Retry-After')
        if retry_after:
            try:
                return min(float(retry_after), 30.0)
            except ValueError:
                pass
        return min(2 ** attempt, 30)

    async def _exponential_backoff(self, attempt: int, base_delay: float = 0.5):
        """Exponential backoff with jitter."""
        delay = base_delay * (2 ** attempt)
        total_delay = min(delay + random.uniform(0.1, 0.3) * delay, 30.0)
        self.logger.debug("Backing off before retry", attempt=attempt + 1, delay=total_delay)
        await asyncio.sleep(total_delay)
