"""
Session generator: selects due words and builds the exercise list of a gym session.
"""
# pyright: reportAttributeAccessIssue=false
# pyright: reportArgumentType=false
import logging
import math
from collections import deque
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional

from sqlmodel import Session, select
from sqlalchemy import func

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.models.models import CardState, PracticeSession, Vocabulary
from app.models.enums import PracticeType, SessionStartStatus
from app.schemas.gym import ExerciseResponse, StartSessionResponse, VocabForExercise
from app.services.practice_types import (
    BASE_PRACTICE_TYPE,
    PRACTICE_TYPE_CONFIGS,
    available_practice_types,
)
from app.utils.time_utils import utc_now

logger = logging.getLogger(__name__)

VARIETY_WINDOW_SIZE = 3
NOTHING_DUE_MESSAGE = "No vocabulary due for review. Come back later!"


class RecentPracticeTypes:
    """Fixed-size window of the most recently selected practice types."""

    def __init__(self, size: int = VARIETY_WINDOW_SIZE):
        self._window: deque = deque(maxlen=size)

    def push(self, practice_type: PracticeType) -> None:
        self._window.append(practice_type)  # Oldest entry is evicted when full

    def __contains__(self, practice_type: object) -> bool:
        return practice_type in self._window

    def last_used(self, practice_type: PracticeType) -> int:
        """Index of the most recent use inside the window, -1 if not present."""
        for index in range(len(self._window) - 1, -1, -1):
            if self._window[index] == practice_type:
                return index
        return -1


def candidate_practice_types(unlocked: Optional[Iterable[str]]) -> List[PracticeType]:
    """
    Unlocked practice types that are implemented, in ladder order.

    Falls back to the base recognition type when nothing usable is unlocked.
    """
    unlocked_values = set(unlocked or [])
    candidates = [pt for pt in available_practice_types() if pt.value in unlocked_values]
    return candidates or [BASE_PRACTICE_TYPE]


def select_practice_type(
    unlocked: Optional[Iterable[str]],
    last_practice_type: Optional[str],
    recent: RecentPracticeTypes,
) -> PracticeType:
    """
    Pick the practice type for one word.

    The first candidate not used in the recent window and different from the
    word's own last practice type wins. When that filter leaves nothing, the
    unfiltered candidates are used, taking the one least recently used in the
    window. No randomness is involved.
    """
    candidates = candidate_practice_types(unlocked)

    filtered = [
        pt for pt in candidates
        if pt not in recent and pt.value != last_practice_type
    ]
    if filtered:
        return filtered[0]

    # Least recently used rather than first-match, so no type fills the whole window
    # min() keeps the first candidate on ties
    return min(candidates, key=recent.last_used)


def _recognition_exercise(vocab: VocabForExercise, practice_type: PracticeType, order: int) -> ExerciseResponse:
    return ExerciseResponse(
        vocab_id=vocab.id,
        vocab=vocab,
        practice_type=PracticeType.FOREIGN_RECOGNITION,
        order=order,
        prompt_text=vocab.word,  # Show target language word
        correct_answer=vocab.translation,  # Expect native language
        hints=[vocab.example_sentence] if vocab.example_sentence else [],
        instructions=PRACTICE_TYPE_CONFIGS[PracticeType.FOREIGN_RECOGNITION].instructions,
        practice_data={
            "type": "recognition",
            "show_example": bool(vocab.example_sentence),
        },
    )


def _production_exercise(vocab: VocabForExercise, practice_type: PracticeType, order: int) -> ExerciseResponse:
    return ExerciseResponse(
        vocab_id=vocab.id,
        vocab=vocab,
        practice_type=PracticeType.ENGLISH_PROMPT,
        order=order,
        prompt_text=vocab.translation,  # Show native language
        correct_answer=vocab.word,  # Expect target language
        hints=[vocab.example_sentence] if vocab.example_sentence else [],
        instructions=PRACTICE_TYPE_CONFIGS[PracticeType.ENGLISH_PROMPT].instructions,
        practice_data={
            "type": "production",
            "accept_variants": True,  # Accept different forms of the word
        },
    )


def _fallback_exercise(vocab: VocabForExercise, practice_type: PracticeType, order: int) -> ExerciseResponse:
    # Not implemented yet: recognition shape, tagged with the intended type
    exercise = _recognition_exercise(vocab, practice_type, order)
    exercise.hints = []
    exercise.practice_data = {
        "type": "recognition",
        "fallback_from": practice_type.value,
    }
    return exercise


ExerciseBuilder = Callable[[VocabForExercise, PracticeType, int], ExerciseResponse]

EXERCISE_BUILDERS: Dict[PracticeType, ExerciseBuilder] = {
    PracticeType.FOREIGN_RECOGNITION: _recognition_exercise,
    PracticeType.ENGLISH_PROMPT: _production_exercise,
    PracticeType.COMBINATION_SIMPLE: _fallback_exercise,
    PracticeType.TRANSFORMER_DRILLS: _fallback_exercise,
    PracticeType.COMBINATION_COMPLEX: _fallback_exercise,
    PracticeType.CONVERSATION: _fallback_exercise,
    PracticeType.FREEFLOW: _fallback_exercise,
}

_missing_builders = [pt.value for pt in PracticeType if pt not in EXERCISE_BUILDERS]
if _missing_builders:
    raise RuntimeError(f"No exercise builder for practice types: {', '.join(_missing_builders)}")


def build_exercise(vocab: VocabForExercise, practice_type: PracticeType, order: int) -> ExerciseResponse:
    """Build the exercise for a word in the given practice type."""
    return EXERCISE_BUILDERS[practice_type](vocab, practice_type, order)


def estimate_duration_minutes(exercise_count: int) -> int:
    return math.ceil(exercise_count * settings.gym_seconds_per_exercise / 60)


def get_due_card_states(
    session: Session,
    user_id: int,
    learning_space_id: int,
    limit: int,
    now: Optional[datetime] = None,
) -> List[tuple]:
    """
    Due cards with their vocabulary, most overdue first.

    Returns:
        List of (CardState, Vocabulary) tuples
    """
    now = now or utc_now()
    query = (
        select(CardState, Vocabulary)
        .join(Vocabulary, CardState.vocab_id == Vocabulary.id)
        .where(
            CardState.user_id == user_id,
            CardState.learning_space_id == learning_space_id,
            CardState.due <= now,
        )
        .order_by(CardState.due.asc(), CardState.id.asc())  # type: ignore
        .limit(limit)
    )
    return list(session.exec(query).all())


def get_due_count(session: Session, user_id: int, learning_space_id: int, now: Optional[datetime] = None) -> int:
    """Count of due vocabulary for a learning space."""
    now = now or utc_now()
    return session.exec(
        select(func.count(CardState.id)).where(
            CardState.user_id == user_id,
            CardState.learning_space_id == learning_space_id,
            CardState.due <= now,
        )
    ).one()


def get_total_count(session: Session, user_id: int, learning_space_id: int) -> int:
    """Count of all tracked vocabulary for a learning space."""
    return session.exec(
        select(func.count(CardState.id)).where(
            CardState.user_id == user_id,
            CardState.learning_space_id == learning_space_id,
        )
    ).one()


def generate_session(
    session: Session,
    user_id: int,
    learning_space_id: int,
    target_count: Optional[int] = None,
    now: Optional[datetime] = None,
) -> StartSessionResponse:
    """
    Generate a practice session for a user.

    Due words are taken most overdue first. Each word gets one of its unlocked,
    implemented practice types, avoiding the types used by the previous three
    exercises and the word's own last type where possible.

    Args:
        session: Database session
        user_id: The user ID
        learning_space_id: Active learning space ID
        target_count: Wanted number of exercises (defaults to settings)
        now: Reference time as naive UTC (defaults to now)

    Returns:
        StartSessionResponse with status READY and the exercises, or status
        NOTHING_DUE (and no session record) when no word is due

    Raises:
        ValidationError: If target_count is out of range
    """
    if target_count is None:
        target_count = settings.gym_default_target_count
    if target_count < 1 or target_count > settings.gym_max_target_count:
        raise ValidationError(
            f"target_count must be between 1 and {settings.gym_max_target_count}, got {target_count}"
        )
    now = now or utc_now()

    # Fetch extras for selection headroom
    due_items = get_due_card_states(session, user_id, learning_space_id, limit=target_count * 2, now=now)

    if not due_items:
        logger.info(f"No due vocabulary for user {user_id} in learning space {learning_space_id}")
        return StartSessionResponse(status=SessionStartStatus.NOTHING_DUE, message=NOTHING_DUE_MESSAGE)

    practice_session = PracticeSession(
        user_id=user_id,
        learning_space_id=learning_space_id,
        target_count=target_count,
        started_at=now,
    )
    session.add(practice_session)
    try:
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"Error creating practice session for user {user_id}: {str(e)}")
        raise
    session.refresh(practice_session)

    exercises: List[ExerciseResponse] = []
    recent = RecentPracticeTypes()

    for card_state, vocabulary in due_items[:target_count]:
        practice_type = select_practice_type(
            card_state.unlocked_practice_types,
            card_state.last_practice_type,
            recent,
        )
        vocab = VocabForExercise.model_validate(vocabulary)
        exercises.append(build_exercise(vocab, practice_type, len(exercises)))
        recent.push(practice_type)

    logger.info(
        f"Generated session {practice_session.id} for user {user_id}: "
        f"{len(exercises)} exercise(s) from {len(due_items)} due candidate(s), "
        f"types={[e.practice_type.value for e in exercises]}"
    )

    return StartSessionResponse(
        status=SessionStartStatus.READY,
        session_id=practice_session.id,
        exercises=exercises,
        estimated_duration_minutes=estimate_duration_minutes(len(exercises)),
    )
