"""
Conversation Memory Store

Short-term, per-user chat memory used as LLM context. Each user has a
bounded list of turns; appends past the limit drop the oldest turns, even
the system context turn.

Lifecycle: one store is created at application start and injected into the
chat service. Entries live for the process lifetime only and are lost on
restart. Operations on the same user are serialized with a per-user lock;
different users never wait on each other.
"""

from typing import Dict, List, Union

import structlog

from ..models.conversation_models import ConversationRole, ConversationTurn
from ..utils.user_locks import UserLocks

logger = structlog.get_logger(__name__)

DEFAULT_MAX_TURNS = 30


class ConversationMemoryStore:
    """Keyed store of bounded conversation buffers."""

    def __init__(self, max_turns: int = DEFAULT_MAX_TURNS):
        if max_turns < 1:
            raise ValueError("max_turns must be >= 1")
        self.max_turns = max_turns
        self._buffers: Dict[str, List[ConversationTurn]] = {}
        self._locks = UserLocks()
        self.logger = logger.bind(component="ConversationMemoryStore")
        self.logger.info("Conversation memory store initialized", max_turns=max_turns)

    @staticmethod
    def _key(user_id) -> str:
        return str(user_id)

    async def get(self, user_id) -> List[ConversationTurn]:
        """
        Ordered turns for a user, creating an empty buffer if none exists.

        Returns a copy; mutate through the store's methods.
        """
        key = self._key(user_id)
        async with self._locks.hold(key):
            return list(self._buffers.setdefault(key, []))

    async def append(
        self,
        user_id,
        role: Union[ConversationRole, str],
        content: str
    ) -> ConversationTurn:
        """Add one turn, then trim the buffer to the most recent max_turns."""
        key = self._key(user_id)
        turn = ConversationTurn(role=role, content=content)
        async with self._locks.hold(key):
            buffer = self._buffers.setdefault(key, [])
            buffer.append(turn)
            if len(buffer) > self.max_turns:
                dropped = len(buffer) - self.max_turns
                del buffer[:dropped]
                self.logger.debug("Trimmed conversation memory", user_id=key, dropped=dropped)
        return turn

    async def clear(self, user_id) -> bool:
        """Remove a user's buffer. Returns whether one existed."""
        key = self._key(user_id)
        async with self._locks.hold(key):
            existed = self._buffers.pop(key, None) is not None
        self.logger.info("Conversation memory cleared", user_id=key, existed=existed)
        return existed

    async def refresh_system_context(self, user_id, context_text: str) -> bool:
        """
        Rewrite the first turn if it is the system turn.

        Returns False, leaving the buffer untouched, when the first turn is
        not a system turn (or the buffer is empty); the caller then has to
        re-establish context on the next new conversation.
        """
        key = self._key(user_id)
        async with self._locks.hold(key):
            buffer = self._buffers.get(key)
            if not buffer or buffer[0].role is not ConversationRole.SYSTEM:
                self.logger.info("No system turn to refresh", user_id=key)
                return False
            buffer[0].content = context_text
        self.logger.info("System context refreshed", user_id=key)
        return True

    def active_users(self) -> int:
        return len(self._buffers)
