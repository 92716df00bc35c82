"""
CardState model.
"""
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON, UniqueConstraint
from typing import Optional, List
from datetime import datetime

from app.models.enums import CardStatus, PracticeType
from app.utils.time_utils import utc_now


def default_unlocked_practice_types() -> List[str]:
    return [PracticeType.FOREIGN_RECOGNITION.value]


class CardState(SQLModel, table=True):
    """CardState table - per user, word and learning space scheduling state."""
    __tablename__ = "card_state"
    __table_args__ = (
        UniqueConstraint("user_id", "vocab_id", "learning_space_id", name="uq_card_state_user_vocab_space"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(index=True)
    learning_space_id: int = Field(index=True)
    vocab_id: int = Field(foreign_key="vocabulary.id")

    # FSRS scheduling fields
    difficulty: float = Field(default=5.0)  # 1-10
    stability: float = Field(default=0.0)  # Days until recall probability drops to ~90%
    state: int = Field(default=CardStatus.NEW.value)  # CardStatus value
    step: Optional[int] = None  # Learning/relearning step inside fsrs
    elapsed_days: int = Field(default=0)
    scheduled_days: int = Field(default=0)
    reps: int = Field(default=0)
    lapses: int = Field(default=0)
    last_review: Optional[datetime] = None
    due: datetime = Field(default_factory=utc_now, index=True)

    # Progression
    xp: int = Field(default=0)
    last_practice_type: Optional[str] = None
    unlocked_practice_types: List[str] = Field(
        default_factory=default_unlocked_practice_types,
        sa_column=Column(JSON, nullable=False),
    )

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: Optional[datetime] = None
