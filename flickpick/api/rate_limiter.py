"""
Upstream Rate Limiter

Keeps outbound calls to TMDB and Groq under their published limits.
TMDB is limited per second with a token bucket (the aggregator fires a burst
of discover calls at once); Groq is limited per minute with a sliding window.
"""

import asyncio
import time
from collections import deque
from typing import Optional

import structlog

logger = structlog.get_logger(__name__)


class UpstreamRateLimiter:
    """
    Rate limiter shared by all clients of one upstream service.

    Supports:
    - Per-second limiting with a token bucket for bursts (TMDB)
    - Per-minute limiting with a sliding window (Groq)
    """

    def __init__(
        self,
        calls_per_second: Optional[float] = None,
        calls_per_minute: Optional[int] = None,
        burst_size: Optional[int] = None,
        service_name: str = "api"
    ):
        """
        Initialize rate limiter with specified limits.

        Args:
            calls_per_second: Maximum calls per second
            calls_per_minute: Maximum calls per minute
            burst_size: Token bucket capacity (defaults to calls_per_second * 2)
            service_name: Service name for logging
        """
        self.calls_per_second = calls_per_second
        self.calls_per_minute = calls_per_minute
        self.service_name = service_name

        if calls_per_second:
            self.burst_size = burst_size or max(int(calls_per_second * 2), 1)
            self.tokens = float(self.burst_size)
            self.last_refill = time.monotonic()
        else:
            self.burst_size = None
            self.tokens = 0.0
            self.last_refill = 0.0

        self.request_times: deque = deque()
        self.lock = asyncio.Lock()

        self.logger = logger.bind(service=f"RateLimiter-{service_name}")
        self.logger.info(
            "Rate limiter initialized",
            calls_per_second=calls_per_second,
            calls_per_minute=calls_per_minute,
            burst_size=self.burst_size
        )

    @classmethod
    def for_tmdb(cls, calls_per_second: float = 40.0) -> "UpstreamRateLimiter":
        """Rate limiter configured for the TMDB API."""
        return cls(calls_per_second=calls_per_second, service_name="TMDB")

    @classmethod
    def for_groq(cls, calls_per_minute: int = 30) -> "UpstreamRateLimiter":
        """Rate limiter configured for the Groq chat completions API."""
        return cls(calls_per_minute=calls_per_minute, service_name="Groq")

    async def wait_if_needed(self) -> None:
        """
        Wait if necessary to respect rate limits.

        Call before each upstream request.
        """
        async with self.lock:
            now = time.monotonic()
            self._cleanup_old_requests(now)

            wait_time = 0.0
            if self.calls_per_second:
                wait_time = max(wait_time, self._check_per_second_limit(now))
            if self.calls_per_minute:
                wait_time = max(wait_time, self._check_per_minute_limit(now))

            if wait_time > 0:
                self.logger.debug(
                    "Rate limit wait required",
                    wait_time=round(wait_time, 3),
                    current_requests=len(self.request_times)
                )
                await asyncio.sleep(wait_time)
                now = time.monotonic()
                if self.calls_per_second:
                    self._refill(now)

            self.request_times.append(now)
            if self.calls_per_second:
                self.tokens = max(0.0, self.tokens - 1)

    def _refill(self, now: float) -> None:
        elapsed = now - self.last_refill
        self.tokens = min(float(self.burst_size), self.tokens + elapsed * self.calls_per_second)
        self.last_refill = now

    def _check_per_second_limit(self, now: float) -> float:
        """Token bucket check; returns seconds until a token is available."""
        self._refill(now)
        if self.tokens >= 1:
            return 0.0
        return (1.0 - self.tokens) / self.calls_per_second

    def _check_per_minute_limit(self, now: float) -> float:
        """Sliding window check; returns seconds until the oldest call leaves the window."""
        minute_ago = now - 60
        recent = [t for t in self.request_times if t > minute_ago]
        if len(recent) < self.calls_per_minute:
            return 0.0
        return max(0.0, 60 - (now - min(recent)))

    def _cleanup_old_requests(self, now: float) -> None:
        cutoff = now - 60
        while self.request_times and self.request_times[0] < cutoff:
            self.request_times.popleft()

    def get_current_usage(self) -> dict:
        """
        Get current rate limit usage statistics.

        Returns:
            Dictionary with current usage information
        """
        now = time.monotonic()
        minute_requests = len([t for t in self.request_times if t > now - 60])
        usage = {
            "service": self.service_name,
            "requests_last_minute": minute_requests,
        }
        if self.calls_per_second:
            usage["tokens_available"] = self.tokens
            usage["burst_capacity"] = self.burst_size
            usage["calls_per_second_limit"] = self.calls_per_second
        if self.calls_per_minute:
            usage["calls_per_minute_limit"] = self.calls_per_minute
            usage["minute_usage_percent"] = (minute_requests / self.calls_per_minute) * 100
        return usage
