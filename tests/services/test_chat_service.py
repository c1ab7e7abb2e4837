"""
Tests for ChatService.

The LLM client is an AsyncMock; memory and preferences use the in-process
implementations.
"""

import random
from unittest.mock import Mock, AsyncMock

import pytest

from flickpick.api.base_client import APIClientError
from flickpick.models.config_models import SystemConfig
from flickpick.models.conversation_models import ConversationRole
from flickpick.models.preference_models import UserPreferences, MovieHistoryEntry
from flickpick.services.chat_service import (
    ChatService,
    EMPTY_REPLY_LINE,
    PROVIDER_FAILURE_LINES,
    FLICKPICK_SYSTEM_PROMPT,
)
from flickpick.services.conversation_memory import ConversationMemoryStore
from flickpick.services.preference_store import InMemoryPreferenceStore


@pytest.fixture
def llm_client():
    """Mock LLM client."""
    client = Mock()
    client.complete_chat = AsyncMock(return_value="Try **Heat** (1995) - Michael Mann")
    return client


@pytest.fixture
def store():
    return InMemoryPreferenceStore()


@pytest.fixture
def memory():
    return ConversationMemoryStore(max_turns=30)


@pytest.fixture
def chat_service(memory, store, llm_client):
    return ChatService(memory, store, llm_client=llm_client, config=SystemConfig(), rng=random.Random(0))


class TestChat:

    @pytest.mark.asyncio
    async def test_first_turn_seeds_system_prompt(self, chat_service, memory, llm_client):
        reply = await chat_service.chat("u1", "something like Heat?")

        assert reply == "Try **Heat** (1995) - Michael Mann"
        turns = await memory.get("u1")
        assert [t.role for t in turns] == [
            ConversationRole.SYSTEM,
            ConversationRole.USER,
            ConversationRole.ASSISTANT,
        ]
        assert turns[0].content.startswith(FLICKPICK_SYSTEM_PROMPT)
        assert "NEW USER" in turns[0].content

        messages = llm_client.complete_chat.await_args.args[0]
        assert messages[0]["role"] == "system"
        assert messages[-1] == {"role": "user", "content": "something like Heat?"}

    @pytest.mark.asyncio
    async def test_sampling_parameters_from_config(self, chat_service, llm_client):
        await chat_service.chat("u1", "hey")

        kwargs = llm_client.complete_chat.await_args.kwargs
        assert kwargs["model"] == "llama-3.3-70b-versatile"
        assert kwargs["temperature"] == 0.9
        assert kwargs["max_tokens"] == 1024
        assert kwargs["top_p"] == 0.95

    @pytest.mark.asyncio
    async def test_returning_user_context(self, chat_service, store, memory):
        await store.save_preferences(UserPreferences(user_id="u1", favorite_genres=["horror"]))
        await store.add_history(MovieHistoryEntry(
            user_id="u1", movie_id=1, movie_title="Hereditary", genre="horror", user_reaction="loved"
        ))

        await chat_service.chat("u1", "hey")

        system = (await memory.get("u1"))[0].content
        assert "RETURNING USER" in system
        assert "Favorite Genres: horror" in system
        assert "Hereditary (horror) - User LOVED this" in system

    @pytest.mark.asyncio
    async def test_system_prompt_only_seeded_once(self, chat_service, memory):
        await chat_service.chat("u1", "one")
        await chat_service.chat("u1", "two")

        roles = [t.role for t in await memory.get("u1")]
        assert roles.count(ConversationRole.SYSTEM) == 1
        assert len(roles) == 5

    @pytest.mark.asyncio
    async def test_empty_reply_uses_filler(self, chat_service, llm_client, memory):
        llm_client.complete_chat.return_value = ""

        reply = await chat_service.chat("u1", "hey")

        assert reply == EMPTY_REPLY_LINE
        assert (await memory.get("u1"))[-1].content == EMPTY_REPLY_LINE

    @pytest.mark.asyncio
    async def test_provider_failure_never_raises(self, chat_service, llm_client, memory):
        llm_client.complete_chat.side_effect = APIClientError("Groq", "timeout")

        reply = await chat_service.chat("u1", "hey")

        assert reply in PROVIDER_FAILURE_LINES
        last = (await memory.get("u1"))[-1]
        assert last.role is ConversationRole.ASSISTANT
        assert last.content == reply

    @pytest.mark.asyncio
    async def test_turns_alternate_after_provider_failure(self, chat_service, llm_client, memory):
        llm_client.complete_chat.side_effect = [APIClientError("Groq", "timeout"), "Try **Ronin**"]

        await chat_service.chat("u1", "first")
        await chat_service.chat("u1", "second")

        sent = llm_client.complete_chat.await_args.args[0]
        assert [m["role"] for m in sent] == ["system", "user", "assistant", "user"]

    @pytest.mark.asyncio
    async def test_no_client_configured(self, memory, store):
        service = ChatService(memory, store)

        assert not service.is_available()
        assert await service.chat("u1", "hey") in PROVIDER_FAILURE_LINES


class TestContext:

    @pytest.mark.asyncio
    async def test_new_user_detection(self, chat_service, store):
        assert await chat_service.is_new_user("u1")

        await store.save_preferences(UserPreferences(user_id="u1"))
        assert await chat_service.is_new_user("u1")

        await store.save_preferences(UserPreferences(user_id="u1", favorite_genres=["comedy"]))
        assert not await chat_service.is_new_user("u1")

    @pytest.mark.asyncio
    async def test_refresh_context_rewrites_system_turn(self, chat_service, store, memory):
        await chat_service.chat("u1", "hey")
        await store.add_history(MovieHistoryEntry(user_id="u1", movie_id=9, movie_title="Parasite", genre="drama"))

        assert await chat_service.refresh_context("u1") is True

        system = (await memory.get("u1"))[0].content
        assert "Parasite (drama) - User WATCHED this" in system
        assert "Context refreshed" in system

    @pytest.mark.asyncio
    async def test_refresh_without_conversation(self, chat_service):
        assert await chat_service.refresh_context("u1") is False

    @pytest.mark.asyncio
    async def test_clear(self, chat_service, memory):
        await chat_service.chat("u1", "hey")

        assert await chat_service.clear("u1") is True
        assert await memory.get("u1") == []
