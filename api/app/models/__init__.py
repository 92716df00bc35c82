"""
Models package - imports all models so they register with SQLModel.
"""
from app.models.enums import PracticeType, CardStatus, Grade, SessionStartStatus
from app.models.vocabulary import Vocabulary
from app.models.card_state import CardState
from app.models.practice_session import PracticeSession
from app.models.practice_result import PracticeResult

__all__ = [
    'PracticeType',
    'CardStatus',
    'Grade',
    'SessionStartStatus',
    'Vocabulary',
    'CardState',
    'PracticeSession',
    'PracticeResult',
]
