"""
Configuration Models

Pydantic system configuration, resolved from environment variables.
"""

import os
from typing import Optional

from pydantic import BaseModel, Field


class SystemConfig(BaseModel):
    """Overall system configuration"""

    # API configurations
    tmdb_api_key: Optional[str] = Field(default=None, description="TMDB API key")
    groq_api_key: Optional[str] = Field(default=None, description="Groq API key")
    groq_model: str = Field(default="llama-3.3-70b-versatile", description="Chat model identifier")

    # Rate limiting
    tmdb_rate_limit: float = Field(default=40.0, description="TMDB requests per second")
    groq_rate_limit: int = Field(default=30, description="Groq requests per minute")

    # Aggregation
    upstream_timeout_seconds: float = Field(default=10.0, gt=0, description="Per-call upstream timeout")
    aggregation_cap: int = Field(default=100, ge=1, description="Maximum candidates returned")
    regional_query_count: int = Field(default=15, ge=0, description="Queries in the regional bucket")

    # Conversation
    memory_max_turns: int = Field(default=30, ge=1, description="Turns kept per user in chat memory")
    chat_temperature: float = Field(default=0.9, ge=0.0, le=2.0)
    chat_max_tokens: int = Field(default=1024, ge=1)
    chat_top_p: float = Field(default=0.95, ge=0.0, le=1.0)

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_dir: str = Field(default="logs", description="Directory for rotating log files")

    @classmethod
    def from_env(cls) -> "SystemConfig":
        """Build configuration from environment variables, keeping defaults for unset ones."""
        env_map = {
            "tmdb_api_key": "TMDB_API_KEY",
            "groq_api_key": "GROQ_API_KEY",
            "groq_model": "GROQ_MODEL",
            "tmdb_rate_limit": "TMDB_RATE_LIMIT",
            "groq_rate_limit": "GROQ_RATE_LIMIT",
            "upstream_timeout_seconds": "UPSTREAM_TIMEOUT_SECONDS",
            "aggregation_cap": "AGGREGATION_CAP",
            "regional_query_count": "REGIONAL_QUERY_COUNT",
            "memory_max_turns": "MEMORY_MAX_TURNS",
            "log_level": "LOG_LEVEL",
            "log_dir": "LOG_DIR",
        }
        values = {
            field_name: os.getenv(env_name)
            for field_name, env_name in env_map.items()
            if os.getenv(env_name)
        }
        return cls(**values)
