"""
Gym (practice session) schemas.
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

from app.models.enums import PracticeType, Grade, SessionStartStatus


class VocabForExercise(BaseModel):
    """Vocabulary snapshot shown in an exercise."""
    id: int
    word: str
    lemma: str
    translation: str
    example_sentence: Optional[str] = None
    example_sentence_translation: Optional[str] = None
    word_kind: str
    sex: Optional[str] = None
    image_key: Optional[str] = None
    example_audio_key: Optional[str] = None

    class Config:
        from_attributes = True


class ExerciseResponse(BaseModel):
    """One exercise of a generated session."""
    vocab_id: int
    vocab: VocabForExercise
    practice_type: PracticeType
    order: int
    prompt_text: str
    correct_answer: str
    hints: List[str] = []
    instructions: str
    practice_data: Dict[str, Any] = {}


class StartSessionRequest(BaseModel):
    """Request to start a practice session."""
    user_id: int = Field(..., description="User ID")
    learning_space_id: int = Field(..., description="Active learning space ID")
    target_count: int = Field(20, ge=5, le=50, description="Number of exercises wanted")

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": 1,
                "learning_space_id": 3,
                "target_count": 20
            }
        }


class StartSessionResponse(BaseModel):
    """Generated session, or an empty state when nothing is due."""
    status: SessionStartStatus
    session_id: Optional[int] = None
    exercises: List[ExerciseResponse] = []
    estimated_duration_minutes: int = 0
    message: Optional[str] = None


class SubmitResultRequest(BaseModel):
    """Answer to one exercise."""
    user_id: int = Field(..., description="User ID")
    learning_space_id: int = Field(..., description="Active learning space ID")
    vocab_id: int = Field(..., description="Vocabulary ID of the exercise")
    practice_type: PracticeType = Field(..., description="Practice type tag of the exercise")
    grade: Grade = Field(..., description="1=Again, 2=Hard, 3=Good, 4=Easy")
    order: int = Field(..., ge=0, description="Order of the exercise within the session")
    response_time_ms: int = Field(..., ge=0, description="Time taken to answer in milliseconds")
    user_answer: Optional[str] = None
    correct_answer: Optional[str] = None
    prompt_text: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": 1,
                "learning_space_id": 3,
                "vocab_id": 42,
                "practice_type": "foreign_recognition",
                "grade": 3,
                "order": 0,
                "response_time_ms": 5400,
                "user_answer": "house",
                "correct_answer": "house"
            }
        }


class SubmitResultResponse(BaseModel):
    """Outcome of a submitted answer."""
    xp_gained: int
    next_review: datetime
    new_stability: float
    new_difficulty: float
    unlocked_practice_types: List[PracticeType] = []
    duplicate: bool = Field(False, description="True when this exercise was already submitted")


class SessionScopeRequest(BaseModel):
    """Identifies the owner of a session."""
    user_id: int
    learning_space_id: int


class RatingDistribution(BaseModel):
    again: int = 0
    hard: int = 0
    good: int = 0
    easy: int = 0


class SessionStatsResponse(BaseModel):
    """Aggregate statistics of a completed session."""
    session_id: int
    completed_at: Optional[datetime] = None
    completed_count: int
    total_xp: int
    rating_distribution: RatingDistribution
    average_response_time: float


class PracticeSessionResponse(BaseModel):
    id: int
    user_id: int
    learning_space_id: int
    target_count: int
    started_at: datetime
    completed_at: Optional[datetime] = None
    completed_count: int
    total_xp_gained: int

    class Config:
        from_attributes = True


class PracticeResultResponse(BaseModel):
    id: int
    vocab_id: int
    exercise_order: int
    practice_type: str
    grade: int
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
    created_at: datetime

    class Config:
        from_attributes = True


class SessionDetailResponse(BaseModel):
    """A past session with its results."""
    session: PracticeSessionResponse
    results: List[PracticeResultResponse]


class DueCountResponse(BaseModel):
    due_count: int
    total_count: int


class GymStatsResponse(BaseModel):
    """Gym overview for a learning space."""
    total_xp: int
    total_sessions: int
    total_exercises: int
    due_count: int
    total_vocab: int


class PracticeTypeConfigResponse(BaseModel):
    type: PracticeType
    display_name: str
    description: str
    required_stability: float
    xp_multiplier: float
    instructions: str
    available: bool


class PracticeTypesResponse(BaseModel):
    practice_types: List[PracticeTypeConfigResponse]


class RatingGuidanceResponse(BaseModel):
    suggested_grade: Grade
    guidance: str


class EnrollVocabularyRequest(BaseModel):
    """Start tracking a vocabulary item in the gym."""
    user_id: int
    learning_space_id: int
    vocab_id: int


class CardStateResponse(BaseModel):
    id: int
    user_id: int
    learning_space_id: int
    vocab_id: int
    difficulty: float
    stability: float
    state: int
    reps: int
    lapses: int
    last_review: Optional[datetime] = None
    due: datetime
    xp: int
    last_practice_type: Optional[str] = None
    unlocked_practice_types: List[str]

    class Config:
        from_attributes = True
