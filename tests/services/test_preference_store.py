"""
Tests for InMemoryPreferenceStore.
"""

from datetime import datetime, timedelta

import pytest

from flickpick.models.preference_models import UserPreferences, MovieHistoryEntry
from flickpick.services.preference_store import InMemoryPreferenceStore


class TestInMemoryPreferenceStore:

    @pytest.mark.asyncio
    async def test_preferences_roundtrip(self):
        store = InMemoryPreferenceStore()
        prefs = UserPreferences(user_id="u1", favorite_genres=["comedy"], age_rating="pg")

        await store.save_preferences(prefs)

        assert await store.get_preferences("u1") is prefs
        assert await store.get_preferences("u2") is None

    @pytest.mark.asyncio
    async def test_recent_history_newest_first(self):
        store = InMemoryPreferenceStore()
        base = datetime(2024, 1, 1)
        for i in range(7):
            await store.add_history(MovieHistoryEntry(
                user_id="u1", movie_id=i, movie_title=f"Movie {i}",
                picked_at=base + timedelta(days=i)
            ))

        recent = await store.recent_history("u1")

        assert [e.movie_id for e in recent] == [6, 5, 4, 3, 2]
        assert await store.count_history("u1") == 7

    @pytest.mark.asyncio
    async def test_clear_history(self):
        store = InMemoryPreferenceStore()
        await store.add_history(MovieHistoryEntry(user_id="u1", movie_id=1, movie_title="A"))

        assert await store.clear_history("u1") == 1
        assert await store.count_history("u1") == 0
        assert await store.clear_history("u1") == 0

    def test_invalid_preference_values_rejected(self):
        with pytest.raises(ValueError):
            UserPreferences(user_id="u1", avg_movie_length="forever")
        with pytest.raises(ValueError):
            MovieHistoryEntry(user_id="u1", movie_id=1, movie_title="A", user_reaction="hated")
