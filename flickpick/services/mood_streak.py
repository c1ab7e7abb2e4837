"""
Mood Streak Tracker

Counts consecutive selections of the same mood ("vibe streak"). The streak
lives on the user's preference record, so it survives restarts and sessions.
From the third selection in a row a mood-specific roast is attached.
"""

from datetime import datetime
from typing import Optional

import structlog

from ..models.conversation_models import MoodStreak, StreakUpdate
from ..models.preference_models import UserPreferences
from .preference_store import PreferenceStore
from ..utils.user_locks import UserLocks

logger = structlog.get_logger(__name__)

STREAK_MESSAGE_THRESHOLD = 3

STREAK_MESSAGES = {
    "action": "Action again? Adrenaline addiction is real 🔥",
    "comedy": "Comedy streak! Laughter is the best medicine 😂",
    "romance": "Romance hat-trick? Someone's in their feels 💕",
    "horror": "Third horror? You good bro? 😰",
}
DEFAULT_STREAK_MESSAGE = "Same vibe? Respect the consistency 🎬"


def streak_message(mood: str, count: int) -> Optional[str]:
    if count < STREAK_MESSAGE_THRESHOLD:
        return None
    return STREAK_MESSAGES.get(mood.lower(), DEFAULT_STREAK_MESSAGE)


def compute_streak(previous_mood: Optional[str], previous_count: int, new_mood: str) -> StreakUpdate:
    """
    Next streak state for a mood selection.

    Args:
        previous_mood: Last recorded mood, None if there is no record
        previous_count: Streak count stored with it
        new_mood: Newly selected mood

    Returns:
        Updated mood, count and optional message
    """
    if previous_mood is not None and previous_mood == new_mood:
        count = (previous_count or 0) + 1
    else:
        count = 1
    return StreakUpdate(mood=new_mood, count=count, message=streak_message(new_mood, count))


class MoodStreakTracker:
    """Reads and updates mood streaks on user preference records."""

    def __init__(self, preference_store: PreferenceStore):
        self.preference_store = preference_store
        self._locks = UserLocks()
        self.logger = logger.bind(component="MoodStreakTracker")

    async def update_mood_streak(self, user_id, new_mood: str) -> StreakUpdate:
        """
        Record a mood selection and return the updated streak.

        Raises:
            ValueError: If the mood is empty
        """
        if not new_mood or not new_mood.strip():
            raise ValueError("Mood is required")

        key = str(user_id)
        async with self._locks.hold(key):
            prefs = await self.preference_store.get_preferences(key)
            if prefs is None:
                update = compute_streak(None, 0, new_mood)
                prefs = UserPreferences(user_id=key)
            else:
                update = compute_streak(prefs.last_mood, prefs.mood_streak.count, new_mood)

            prefs.last_mood = new_mood
            prefs.mood_streak = MoodStreak(mood=update.mood, count=update.count)
            prefs.updated_at = datetime.utcnow()
            await self.preference_store.save_preferences(prefs)

        self.logger.info(
            "Mood streak updated",
            user_id=key,
            mood=update.mood,
            count=update.count,
            has_message=update.message is not None
        )
        return update
