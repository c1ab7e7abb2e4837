"""
Chat Service

Runs one turn of the FlickPick persona chat: seeds new conversations with
the system prompt and the user's context, sends the buffered turns to the
LLM, and never lets a provider failure reach the user. Failures are
answered with a static in-character line.
"""

import random
from typing import Dict, List, Optional

import structlog

from ..models.config_models import SystemConfig
from ..models.conversation_models import ConversationRole
from .conversation_memory import ConversationMemoryStore
from .preference_store import PreferenceStore
from ..utils.user_locks import UserLocks

logger = structlog.get_logger(__name__)

FLICKPICK_SYSTEM_PROMPT = """You are FlickPick, an enthusiastic movie buddy with deep knowledge of cinema (Hollywood, Bollywood, Anime, World Cinema). You're like the best friend who has seen everything and always knows what to recommend.

PERSONALITY:
- Casual, friendly and conversational
- Genuinely excited about movies: share trivia, director insights, actor connections
- Reference movies the user told you about earlier and build on past conversations

RECOMMENDATIONS:
- Give 3-5 specific suggestions with brief, punchy reasons, including year and notable director
- Honor every constraint strictly (no horror means NO horror, 90s means 90s only)
- Mix mainstream hits with hidden gems, including Indian and international films when they fit
- Never recommend something from the user's watch history

CONVERSATION FLOW:
- New users: ask three quick setup questions, one at a time: favourite genres, quick watch or epic saga, family-friendly or mature
- Returning users: jump straight in and reference their last picks

Never break character. Keep replies to 3-5 sentences unless listing movies.

Format suggestions as:
**Movie Title** (Year) - Director
→ One line on why it fits + genre tags"""

EMPTY_REPLY_LINE = "Yo, my brain fried for a sec. Say that again?"
PROVIDER_FAILURE_LINES = (
    "My bad, I'm having trouble connecting to the movie database right now. Try again in a sec!",
    "Projector jammed on my end 🎞️ Give me a sec and hit me again!",
    "Popcorn machine exploded, brb 🍿 Try that one more time?",
)

HISTORY_CONTEXT_LIMIT = 20


class ChatService:
    """
    Persona chat over ConversationMemoryStore and an LLM client.

    The LLM client must expose `async complete_chat(messages, model=...,
    temperature=..., max_tokens=..., top_p=...) -> str`. Without a client
    every turn is answered with a provider-failure line.
    """

    def __init__(
        self,
        memory: ConversationMemoryStore,
        preference_store: PreferenceStore,
        llm_client=None,
        config: Optional[SystemConfig] = None,
        rng: Optional[random.Random] = None
    ):
        self.memory = memory
        self.preference_store = preference_store
        self.llm_client = llm_client
        self.config = config or SystemConfig()
        self.rng = rng or random.Random()
        self._turn_locks = UserLocks()
        self.logger = logger.bind(service="ChatService")
        self.logger.info("Chat service initialized", llm_available=self.is_available())

    def is_available(self) -> bool:
        return self.llm_client is not None

    async def is_new_user(self, user_id) -> bool:
        """A user with no preferences or no favourite genres yet."""
        prefs = await self.preference_store.get_preferences(str(user_id))
        return prefs is None or not prefs.favorite_genres

    async def build_user_context(self, user_id) -> str:
        """Summarize stored preferences and recent picks for the system prompt."""
        key = str(user_id)
        prefs = await self.preference_store.get_preferences(key)
        history = await self.preference_store.recent_history(key, limit=HISTORY_CONTEXT_LIMIT)

        lines: List[str] = []
        if prefs:
            lines.append("USER PREFERENCES:")
            lines.append(f"- Favorite Genres: {', '.join(prefs.favorite_genres) or 'Not set'}")
            lines.append(f"- Avg Length: {prefs.avg_movie_length or 'Any'}")
            lines.append(f"- Age Rating: {prefs.age_rating or 'Any'}")
            if prefs.last_mood:
                lines.append(f"- Last Mood: {prefs.last_mood}")

        if history:
            lines.append("RECENT WATCH HISTORY (Do not recommend these):")
            for entry in history:
                reaction = entry.user_reaction.upper() if entry.user_reaction else "WATCHED"
                lines.append(f"- {entry.movie_title} ({entry.genre or 'Unknown'}) - User {reaction} this")

        return "\n".join(lines)

    def _system_prompt(self, user_context: str, status_line: str) -> str:
        return f"{FLICKPICK_SYSTEM_PROMPT}\n\nCURRENT USER CONTEXT:\n{user_context}\n\n{status_line}"

    async def chat(self, user_id, message: str) -> str:
        """
        Run one chat turn and return the assistant reply.

        Turns for the same user run one at a time so back-to-back messages
        keep their order in memory.
        """
        key = str(user_id)
        async with self._turn_locks.hold(key):
            history = await self.memory.get(key)
            if not history:
                new_user = await self.is_new_user(key)
                status = (
                    "USER STATUS: NEW USER (Ask setup questions)"
                    if new_user else "USER STATUS: RETURNING USER (Welcome back)"
                )
                context = await self.build_user_context(key)
                await self.memory.append(key, ConversationRole.SYSTEM, self._system_prompt(context, status))

            await self.memory.append(key, ConversationRole.USER, message)
            messages = [turn.to_message() for turn in await self.memory.get(key)]

            try:
                reply = await self._complete(messages)
            except Exception as e:
                self.logger.error(
                    "Chat provider failed",
                    user_id=key,
                    error=str(e),
                    error_type=type(e).__name__
                )
                reply = self.rng.choice(PROVIDER_FAILURE_LINES)
                await self.memory.append(key, ConversationRole.ASSISTANT, reply)
                return reply

            if not reply:
                self.logger.warning("Chat provider returned empty reply", user_id=key)
                reply = EMPTY_REPLY_LINE

            await self.memory.append(key, ConversationRole.ASSISTANT, reply)
            return reply

    async def _complete(self, messages: List[Dict[str, str]]) -> str:
        if self.llm_client is None:
            raise RuntimeError("No chat provider configured")
        return await self.llm_client.complete_chat(
            messages,
            model=self.config.groq_model,
            temperature=self.config.chat_temperature,
            max_tokens=self.config.chat_max_tokens,
            top_p=self.config.chat_top_p
        )

    async def refresh_context(self, user_id) -> bool:
        """Rebuild the user context (e.g. after a pick) in the current conversation."""
        key = str(user_id)
        context = await self.build_user_context(key)
        return await self.memory.refresh_system_context(
            key, self._system_prompt(context, "(Context refreshed just now)")
        )

    async def clear(self, user_id) -> bool:
        return await self.memory.clear(user_id)
