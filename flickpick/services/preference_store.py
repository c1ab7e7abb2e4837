"""
Preference Store

Persistence boundary for user preferences and movie history. The backend
document store is external; InMemoryPreferenceStore is the in-process
implementation used by default and in tests.
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Dict, List, Optional

import structlog

from ..models.preference_models import UserPreferences, MovieHistoryEntry

logger = structlog.get_logger(__name__)


class PreferenceStore(ABC):
    """Storage for long-lived per-user records."""

    @abstractmethod
    async def get_preferences(self, user_id: str) -> Optional[UserPreferences]:
        """Preferences for a user, or None if never saved."""

    @abstractmethod
    async def save_preferences(self, preferences: UserPreferences) -> UserPreferences:
        """Insert or replace a user's preferences."""

    @abstractmethod
    async def add_history(self, entry: MovieHistoryEntry) -> MovieHistoryEntry:
        """Record a picked movie."""

    @abstractmethod
    async def recent_history(self, user_id: str, limit: int = 5) -> List[MovieHistoryEntry]:
        """Most recent picks first."""

    @abstractmethod
    async def count_history(self, user_id: str) -> int:
        """Number of picks recorded for a user."""

    @abstractmethod
    async def clear_history(self, user_id: str) -> int:
        """Delete all picks for a user; returns the number deleted."""


class InMemoryPreferenceStore(PreferenceStore):
    """Dictionary-backed store. Not durable across restarts."""

    def __init__(self):
        self._preferences: Dict[str, UserPreferences] = {}
        self._history: Dict[str, List[MovieHistoryEntry]] = defaultdict(list)
        self.logger = logger.bind(component="InMemoryPreferenceStore")

    async def get_preferences(self, user_id: str) -> Optional[UserPreferences]:
        return self._preferences.get(str(user_id))

    async def save_preferences(self, preferences: UserPreferences) -> UserPreferences:
        self._preferences[preferences.user_id] = preferences
        return preferences

    async def add_history(self, entry: MovieHistoryEntry) -> MovieHistoryEntry:
        self._history[entry.user_id].append(entry)
        return entry

    async def recent_history(self, user_id: str, limit: int = 5) -> List[MovieHistoryEntry]:
        entries = self._history.get(str(user_id), [])
        return sorted(entries, key=lambda e: e.picked_at, reverse=True)[:limit]

    async def count_history(self, user_id: str) -> int:
        return len(self._history.get(str(user_id), []))

    async def clear_history(self, user_id: str) -> int:
        deleted = len(self._history.pop(str(user_id), []))
        self.logger.info("History cleared", user_id=str(user_id), deleted=deleted)
        return deleted
