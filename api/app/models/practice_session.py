"""
PracticeSession model.
"""
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from app.utils.time_utils import utc_now


class PracticeSession(SQLModel, table=True):
    """PracticeSession table - one gym session from generation to completion."""
    __tablename__ = "practice_session"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(index=True)
    learning_space_id: int = Field(index=True)
    target_count: int
    started_at: datetime = Field(default_factory=utc_now)
    completed_at: Optional[datetime] = None  # Set when the session is completed
    completed_count: int = Field(default=0)  # Incremented in SQL per submitted result
    total_xp_gained: int = Field(default=0)
