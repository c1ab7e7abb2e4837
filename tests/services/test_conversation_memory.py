"""
Tests for ConversationMemoryStore.
"""

import asyncio

import pytest

from flickpick.models.conversation_models import ConversationRole
from flickpick.services.conversation_memory import ConversationMemoryStore


class TestConversationMemoryStore:

    @pytest.mark.asyncio
    async def test_get_creates_empty_buffer(self):
        store = ConversationMemoryStore()

        assert await store.get("u1") == []
        assert store.active_users() == 1

    @pytest.mark.asyncio
    async def test_append_keeps_order(self):
        store = ConversationMemoryStore()
        await store.append("u1", ConversationRole.USER, "hi")
        await store.append("u1", "assistant", "yo")

        turns = await store.get("u1")

        assert [(t.role, t.content) for t in turns] == [
            (ConversationRole.USER, "hi"),
            (ConversationRole.ASSISTANT, "yo"),
        ]

    @pytest.mark.asyncio
    async def test_appending_past_cap_keeps_most_recent(self):
        store = ConversationMemoryStore(max_turns=30)
        for i in range(45):
            await store.append("u1", ConversationRole.USER, f"message {i}")

        turns = await store.get("u1")

        assert len(turns) == 30
        assert [t.content for t in turns] == [f"message {i}" for i in range(15, 45)]

    @pytest.mark.asyncio
    async def test_system_turn_can_be_trimmed(self):
        store = ConversationMemoryStore(max_turns=2)
        await store.append("u1", ConversationRole.SYSTEM, "context")
        await store.append("u1", ConversationRole.USER, "a")
        await store.append("u1", ConversationRole.USER, "b")

        turns = await store.get("u1")

        assert all(t.role is ConversationRole.USER for t in turns)

    @pytest.mark.asyncio
    async def test_get_returns_copy(self):
        store = ConversationMemoryStore()
        await store.append("u1", ConversationRole.USER, "hi")

        (await store.get("u1")).clear()

        assert len(await store.get("u1")) == 1

    @pytest.mark.asyncio
    async def test_users_are_isolated(self):
        store = ConversationMemoryStore()
        await store.append("u1", ConversationRole.USER, "hi")

        assert await store.get("u2") == []

    @pytest.mark.asyncio
    async def test_user_id_is_keyed_as_string(self):
        store = ConversationMemoryStore()
        await store.append(42, ConversationRole.USER, "hi")

        assert len(await store.get("42")) == 1

    @pytest.mark.asyncio
    async def test_clear(self):
        store = ConversationMemoryStore()
        await store.append("u1", ConversationRole.USER, "hi")

        assert await store.clear("u1") is True
        assert await store.clear("u1") is False
        assert await store.get("u1") == []

    @pytest.mark.asyncio
    async def test_refresh_rewrites_system_turn(self):
        store = ConversationMemoryStore()
        await store.append("u1", ConversationRole.SYSTEM, "old context")
        await store.append("u1", ConversationRole.USER, "hi")

        assert await store.refresh_system_context("u1", "new context") is True

        turns = await store.get("u1")
        assert turns[0].content == "new context"
        assert turns[1].content == "hi"

    @pytest.mark.asyncio
    async def test_refresh_without_system_turn_is_noop(self):
        store = ConversationMemoryStore()
        await store.append("u1", ConversationRole.USER, "hi")

        assert await store.refresh_system_context("u1", "context") is False
        assert await store.refresh_system_context("nobody", "context") is False
        assert (await store.get("u1"))[0].content == "hi"

    @pytest.mark.asyncio
    async def test_concurrent_appends_are_all_kept(self):
        store = ConversationMemoryStore(max_turns=100)

        await asyncio.gather(*(
            store.append("u1", ConversationRole.USER, str(i)) for i in range(50)
        ))

        assert len(await store.get("u1")) == 50

    @pytest.mark.asyncio
    async def test_same_user_waits_while_other_users_proceed(self):
        store = ConversationMemoryStore()

        async with store._locks.hold("u1"):
            queued = asyncio.ensure_future(store.append("u1", ConversationRole.USER, "queued"))
            await asyncio.wait_for(store.append("u2", ConversationRole.USER, "free"), timeout=1)
            await asyncio.sleep(0)
            assert not queued.done()
            assert await asyncio.wait_for(store.get("u2"), timeout=1) != []

        await queued
        assert [t.content for t in await store.get("u1")] == ["queued"]

    @pytest.mark.asyncio
    async def test_clear_releases_user_lock(self):
        store = ConversationMemoryStore()
        await store.append("u1", ConversationRole.USER, "hi")

        await store.clear("u1")

        assert not store._locks.is_held("u1")
        assert len(store._locks) == 0

    def test_invalid_max_turns(self):
        with pytest.raises(ValueError):
            ConversationMemoryStore(max_turns=0)
