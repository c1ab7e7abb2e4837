"""
Conversation State Tracker

Works out which of the three setup questions (genre, length, rating) the
assistant has asked in a transcript, and how the user answered, so the chat
flow never asks the same question twice.

Classification is keyword based and deliberately loose. It sits behind the
QuestionClassifier interface so a different classifier can be swapped in
without touching the state machine.
"""

from abc import ABC, abstractmethod
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Union

import structlog

from ..models.conversation_models import (
    ConversationRole,
    ConversationTurn,
    ConversationState,
)

logger = structlog.get_logger(__name__)

GENRE = "genre"
LENGTH = "length"
RATING = "rating"
SETUP_QUESTIONS = (GENRE, LENGTH, RATING)

DEFAULT_KEYWORDS: Dict[str, tuple] = {
    GENRE: ("genre", "vibe", "type", "kind", "excited", "mood", "feeling", "style"),
    LENGTH: ("long", "quick", "watch", "time", "hour", "min", "length", "duration", "saga", "short"),
    RATING: ("rating", "friendly", "mature", "pg", "rated", "family", "kids", "adult"),
}

GENRE_PROMPT = "Genre? (action/comedy/horror/drama/thriller/romance/sci-fi)"
LENGTH_PROMPT = "Quick watch or epic saga? ⏱️"
RATING_PROMPT = "Family-friendly or mature content? 🔞"
COMPLETION_PHRASE = "Perfect! Curating your cinema experience... 🎬✨"
OPEN_PROMPT = "What's your vibe?"

MOOD_GREETINGS = {
    "energetic": "Adrenaline time! ⚡ What genre gets you PUMPED?",
    "chill": "Easy vibes 😌 What genre you feeling?",
    "emotional": "Feels incoming 💔 What genre hits different?",
    "thrilling": "Edge-of-seat time 🎢 What genre?",
    "fun": "Party mode! 🎉 What genre brings the energy?",
    "deep": "Big brain hours 🧠 What genre makes you think?",
    "romantic": "Love is in the air 💕 What genre warms your heart?",
    "dark": "Into the void 🌑 What genre embraces the darkness?",
}

MOOD_EMOJIS = {
    "energetic": "⚡",
    "chill": "😌",
    "emotional": "💔",
    "thrilling": "🎢",
    "fun": "🎉",
    "deep": "🧠",
    "romantic": "💕",
    "dark": "🌑",
}

TurnLike = Union[ConversationTurn, Dict[str, str]]


class QuestionClassifier(ABC):
    """Decides which setup questions an assistant message asks."""

    @abstractmethod
    def classify(self, text: str) -> FrozenSet[str]:
        """Return the setup question categories the text asks about."""


class KeywordQuestionClassifier(QuestionClassifier):
    """
    Case-insensitive substring matching against per-category keyword sets.

    A message can match several categories at once ("what kind of movie,
    and how long?" asks both genre and length).
    """

    def __init__(self, keywords: Optional[Dict[str, Iterable[str]]] = None):
        source = keywords or DEFAULT_KEYWORDS
        self.keywords = {
            category: tuple(word.lower() for word in words)
            for category, words in source.items()
        }

    def classify(self, text: str) -> FrozenSet[str]:
        lowered = (text or "").lower()
        return frozenset(
            category
            for category, words in self.keywords.items()
            if any(word in lowered for word in words)
        )


def _coerce_turn(turn: TurnLike) -> ConversationTurn:
    if isinstance(turn, ConversationTurn):
        return turn
    return ConversationTurn(role=turn["role"], content=turn.get("content", ""))


class ConversationStateTracker:
    """Derives ConversationState from a transcript. Stateless and safe to share."""

    def __init__(self, classifier: Optional[QuestionClassifier] = None):
        self.classifier = classifier or KeywordQuestionClassifier()
        self.logger = logger.bind(component="ConversationStateTracker")

    def analyze(self, transcript: Sequence[TurnLike]) -> ConversationState:
        """
        Scan the transcript and record asked questions and their answers.

        Only the first assistant turn that asks a category counts; the user
        turn right after it is the answer. A turn asking several categories
        gives all of them the same answer.
        """
        turns: List[ConversationTurn] = [_coerce_turn(t) for t in transcript]
        asked: Dict[str, bool] = {category: False for category in SETUP_QUESTIONS}
        answers: Dict[str, Optional[str]] = {category: None for category in SETUP_QUESTIONS}

        for index, turn in enumerate(turns):
            if turn.role is not ConversationRole.ASSISTANT:
                continue

            newly_asked = [
                category for category in SETUP_QUESTIONS
                if category in self.classifier.classify(turn.content) and not asked[category]
            ]
            if not newly_asked:
                continue

            if len(newly_asked) > 1:
                self.logger.debug(
                    "Assistant turn matched several setup questions",
                    turn_index=index,
                    categories=newly_asked
                )

            next_turn = turns[index + 1] if index + 1 < len(turns) else None
            answer = next_turn.content if next_turn and next_turn.role is ConversationRole.USER else None
            for category in newly_asked:
                asked[category] = True
                answers[category] = answer

        return ConversationState(
            asked_genre=asked[GENRE],
            asked_length=asked[LENGTH],
            asked_rating=asked[RATING],
            genre_answer=answers[GENRE],
            length_answer=answers[LENGTH],
            rating_answer=answers[RATING],
            is_complete=all(answers[category] for category in SETUP_QUESTIONS),
            turn_count=len(turns),
        )


_default_tracker = ConversationStateTracker()


def analyze_conversation(
    transcript: Sequence[TurnLike],
    classifier: Optional[QuestionClassifier] = None
) -> ConversationState:
    """Derive the setup-question state of a transcript."""
    tracker = ConversationStateTracker(classifier) if classifier else _default_tracker
    return tracker.analyze(transcript)


def next_question(state: ConversationState, mood: Optional[str] = None) -> str:
    """
    Pick the next thing the assistant should say.

    Genre, then length, then rating; never a category already asked. Once
    all three are answered, the completion phrase.
    """
    if not state.asked_genre:
        if state.turn_count == 0 and mood:
            mood_key = mood.strip().lower()
            return MOOD_GREETINGS.get(
                mood_key, f"Yo! 🎬 {MOOD_EMOJIS.get(mood_key, '🎬')} What genre?"
            )
        return GENRE_PROMPT
    if not state.asked_length:
        return LENGTH_PROMPT
    if not state.asked_rating:
        return RATING_PROMPT
    if state.is_complete:
        return COMPLETION_PHRASE
    return OPEN_PROMPT


def is_conversation_complete(state: ConversationState) -> bool:
    return state.is_complete


def extract_preferences(state: ConversationState) -> Optional[Dict[str, str]]:
    """User answers as recommendation filters, or None until all are in."""
    if not state.is_complete:
        return None
    return {
        "genre": state.genre_answer,
        "length": state.length_answer,
        "rating": state.rating_answer,
    }
