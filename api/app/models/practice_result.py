"""
PracticeResult model.
"""
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON, UniqueConstraint
from typing import Optional, List
from datetime import datetime

from app.utils.time_utils import utc_now


class PracticeResult(SQLModel, table=True):
    """PracticeResult table - one immutable row per answered exercise."""
    __tablename__ = "practice_result"
    __table_args__ = (
        # Idempotency key for result submission
        UniqueConstraint("session_id", "vocab_id", "exercise_order", name="uq_practice_result_exercise"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    session_id: int = Field(foreign_key="practice_session.id", index=True)
    vocab_id: int = Field(foreign_key="vocabulary.id")
    exercise_order: int
    practice_type: str
    grade: int  # 1=Again, 2=Hard, 3=Good, 4=Easy
    user_answer: Optional[str] = None
    correct_answer: Optional[str] = None
    prompt_text: Optional[str] = None
    response_time_ms: int
    xp_gained: int
    stability_before: float
    stability_after: float
    difficulty_before: float
    difficulty_after: float
    next_review_at: datetime
    unlocked_practice_types: List[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )  # Types unlocked by this answer
    created_at: datetime = Field(default_factory=utc_now)
