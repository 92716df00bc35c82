"""
Vocabulary model.
"""
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from app.utils.time_utils import utc_now


class Vocabulary(SQLModel, table=True):
    """Vocabulary table - VoDex entries produced by the content pipeline (read-only here)."""
    __tablename__ = "vocabulary"

    id: Optional[int] = Field(default=None, primary_key=True)
    learning_space_id: int = Field(index=True)
    word: str  # The word in the target language
    lemma: str
    translation: str  # Meaning in the user's native language
    definition: Optional[str] = None
    word_kind: str  # noun, verb, adjective, etc.
    sex: Optional[str] = None  # masculine, feminine, none
    example_sentence: Optional[str] = None
    example_sentence_translation: Optional[str] = None
    example_audio_key: Optional[str] = None  # Object storage key
    image_key: Optional[str] = None  # Object storage key
    created_at: datetime = Field(default_factory=utc_now)
