"""
Data models for FlickPick.

Dataclasses for movie candidates, upstream queries and conversation state,
plus the pydantic system configuration.
"""

from .movie_models import (
    MovieCandidate,
    QuerySpec,
    AggregationOutcome,
    AggregationResult,
)
from .conversation_models import (
    ConversationRole,
    ConversationTurn,
    ConversationState,
    MoodStreak,
    StreakUpdate,
)
from .preference_models import UserPreferences, MovieHistoryEntry
from .config_models import SystemConfig

__all__ = [
    "MovieCandidate",
    "QuerySpec",
    "AggregationOutcome",
    "AggregationResult",
    "ConversationRole",
    "ConversationTurn",
    "ConversationState",
    "MoodStreak",
    "StreakUpdate",
    "UserPreferences",
    "MovieHistoryEntry",
    "SystemConfig",
]
