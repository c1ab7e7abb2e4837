"""
FlickPick services: query planning, aggregation, fallback, conversation
memory and state, mood streaks, chat and recommendation orchestration.
"""

from .query_planner import (
    UpstreamQueryPlanner,
    QueryFilters,
    QueryBucket,
    plan_queries,
    resolve_genre_ids,
    GENRE_MAP,
    MOOD_TO_GENRES,
)
from .movie_aggregator import ParallelAggregator
from .fallback_catalog import fallback_movies, available_genres, FALLBACK_MOVIES_BY_GENRE
from .conversation_state import (
    QuestionClassifier,
    KeywordQuestionClassifier,
    ConversationStateTracker,
    analyze_conversation,
    next_question,
    is_conversation_complete,
    extract_preferences,
)
from .conversation_memory import ConversationMemoryStore
from .preference_store import PreferenceStore, InMemoryPreferenceStore
from .mood_streak import MoodStreakTracker, compute_streak, streak_message
from .chat_service import ChatService
from .recommendation_service import RecommendationService, RecommendationResponse

__all__ = [
    "UpstreamQueryPlanner",
    "QueryFilters",
    "QueryBucket",
    "plan_queries",
    "resolve_genre_ids",
    "GENRE_MAP",
    "MOOD_TO_GENRES",
    "ParallelAggregator",
    "fallback_movies",
    "available_genres",
    "FALLBACK_MOVIES_BY_GENRE",
    "QuestionClassifier",
    "KeywordQuestionClassifier",
    "ConversationStateTracker",
    "analyze_conversation",
    "next_question",
    "is_conversation_complete",
    "extract_preferences",
    "ConversationMemoryStore",
    "PreferenceStore",
    "InMemoryPreferenceStore",
    "MoodStreakTracker",
    "compute_streak",
    "streak_message",
    "ChatService",
    "RecommendationService",
    "RecommendationResponse",
]
