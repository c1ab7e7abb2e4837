"""
Conversation Models

Turns of a chat transcript, the setup-question state derived from them and
the mood streak record.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Dict, Any, Optional


class ConversationRole(Enum):
    """Author of a conversation turn."""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


@dataclass
class ConversationTurn:
    """One message in a transcript."""
    role: ConversationRole
    content: str
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self):
        # Accept plain strings from transport payloads
        if isinstance(self.role, str):
            self.role = ConversationRole(self.role)
        if self.content is None:
            self.content = ""

    def to_message(self) -> Dict[str, str]:
        """Chat-completions message shape."""
        return {"role": self.role.value, "content": self.content}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage."""
        return {
            "role": self.role.value,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConversationTurn":
        """Create from dictionary."""
        timestamp = data.get("timestamp")
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp)
        return cls(
            role=data["role"],
            content=data.get("content", ""),
            timestamp=timestamp or datetime.utcnow(),
        )


@dataclass
class ConversationState:
    """Which setup questions were asked and how the user answered them."""
    asked_genre: bool = False
    asked_length: bool = False
    asked_rating: bool = False
    genre_answer: Optional[str] = None
    length_answer: Optional[str] = None
    rating_answer: Optional[str] = None
    is_complete: bool = False
    turn_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return asdict(self)


@dataclass
class MoodStreak:
    """Consecutive selections of the same mood."""
    mood: Optional[str] = None
    count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class StreakUpdate:
    """Result of recording a mood selection."""
    mood: str
    count: int
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
