"""
Groq Chat Client

Thin client for Groq's OpenAI-compatible chat completions endpoint.
"""

from typing import Dict, List, Optional, Any

import structlog

from .base_client import BaseAPIClient
from .rate_limiter import UpstreamRateLimiter

logger = structlog.get_logger(__name__)


class GroqClient(BaseAPIClient):
    """Chat completions client used by the FlickPick persona."""

    BASE_URL = "https://api.groq.com/openai/v1"

    def __init__(
        self,
        api_key: str,
        model: str = "llama-3.3-70b-versatile",
        rate_limiter: Optional[UpstreamRateLimiter] = None,
        timeout: float = 30,
        base_url: Optional[str] = None
    ):
        """
        Initialize Groq client.

        Args:
            api_key: Groq API key (required)
            model: Default model identifier
            rate_limiter: Rate limiter instance (created if not provided)
            timeout: Total request timeout in seconds
            base_url: Override for the API base URL
        """
        if not api_key:
            raise ValueError("Groq API key is required")

        super().__init__(
            base_url=base_url or self.BASE_URL,
            rate_limiter=rate_limiter or UpstreamRateLimiter.for_groq(),
            timeout=timeout,
            service_name="Groq"
        )
        self.api_key = api_key
        self.model = model
        self.logger.info("Groq client initialized", model=model)

    def _extract_api_error(self, data: Dict[str, Any]) -> Optional[str]:
        error = data.get("error")
        if not error:
            return None
        if isinstance(error, dict):
            return error.get("message", "unknown error")
        return str(error)

    async def complete_chat(
        self,
        messages: List[Dict[str, str]],
        model: Optional[str] = None,
        temperature: float = 0.9,
        max_tokens: int = 1024,
        top_p: float = 0.95
    ) -> str:
        """
        Send a message list and return the assistant reply text.

        Returns:
            Reply content, possibly empty
        """
        data = await self._make_request(
            "chat/completions",
            method="POST",
            headers={"Authorization": f"Bearer {self.api_key}"},
            json_body={
                "messages": messages,
                "model": model or self.model,
                "temperature": temperature,
                "max_tokens": max_tokens,
                "top_p": top_p,
            },
            retries=1
        )
        choices = data.get("choices") or []
        if not choices:
            return ""
        message = choices[0].get("message") or {}
        return (message.get("content") or "").strip()
