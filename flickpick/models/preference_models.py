"""
Preference Models

Long-lived per-user records: default recommendation settings, the mood
streak and the list of picked movies.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Any, Optional

from .conversation_models import MoodStreak

MOVIE_LENGTHS = ("short", "long", "any")
AGE_RATINGS = ("pg", "teen", "mature", "any")
USER_REACTIONS = ("loved", "liked", "meh", "disliked")


@dataclass
class UserPreferences:
    """
    Stored preferences for one user.

    Powers default recommendation filters, the mood streak and the
    returning-user greeting.
    """
    user_id: str
    favorite_genres: List[str] = field(default_factory=list)
    avg_movie_length: str = "any"
    age_rating: str = "any"
    last_mood: Optional[str] = None
    mood_streak: MoodStreak = field(default_factory=MoodStreak)
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self):
        self.user_id = str(self.user_id)
        if self.avg_movie_length not in MOVIE_LENGTHS:
            raise ValueError(f"avg_movie_length must be one of {MOVIE_LENGTHS}")
        if self.age_rating not in AGE_RATINGS:
            raise ValueError(f"age_rating must be one of {AGE_RATINGS}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "favorite_genres": list(self.favorite_genres),
            "avg_movie_length": self.avg_movie_length,
            "age_rating": self.age_rating,
            "last_mood": self.last_mood,
            "mood_streak": self.mood_streak.to_dict(),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass
class MovieHistoryEntry:
    """A movie the user picked."""
    user_id: str
    movie_id: int
    movie_title: str
    movie_poster: Optional[str] = None
    genre: Optional[str] = None
    mood: Optional[str] = None
    picked_at: datetime = field(default_factory=datetime.utcnow)
    user_reaction: Optional[str] = None

    def __post_init__(self):
        self.user_id = str(self.user_id)
        if self.user_reaction is not None and self.user_reaction not in USER_REACTIONS:
            raise ValueError(f"user_reaction must be one of {USER_REACTIONS}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "movie_id": self.movie_id,
            "movie_title": self.movie_title,
            "movie_poster": self.movie_poster,
            "genre": self.genre,
            "mood": self.mood,
            "picked_at": self.picked_at.isoformat(),
            "user_reaction": self.user_reaction,
        }
