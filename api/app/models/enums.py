"""
Model enums.
"""
from enum import Enum, IntEnum


class PracticeType(str, Enum):
    """Practice types, in order of difficulty/unlock."""
    FOREIGN_RECOGNITION = "foreign_recognition"
    ENGLISH_PROMPT = "english_prompt"
    COMBINATION_SIMPLE = "combination_simple"
    TRANSFORMER_DRILLS = "transformer_drills"
    COMBINATION_COMPLEX = "combination_complex"
    CONVERSATION = "conversation"
    FREEFLOW = "freeflow"


class CardStatus(IntEnum):
    """Scheduling state of a card. Values 1-3 match fsrs.State."""
    NEW = 0
    LEARNING = 1
    REVIEW = 2
    RELEARNING = 3


class Grade(IntEnum):
    """Self-rated recall quality, sent on the wire as 1-4."""
    AGAIN = 1
    HARD = 2
    GOOD = 3
    EASY = 4


class SessionStartStatus(str, Enum):
    """Outcome of starting a practice session."""
    READY = "ready"
    NOTHING_DUE = "nothing_due"
