"""
Practice service: result submission and completion of gym sessions.

The service keeps no notion of a "current exercise". The client walks the
generated exercise list and submits one result per exercise; only the
session's persisted counters carry state between calls.
"""
# pyright: reportAttributeAccessIssue=false
# pyright: reportArgumentType=false
import logging
from dataclasses import replace
from datetime import datetime
from typing import List, Optional

from sqlmodel import Session, select
from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError

from app.core.config import settings
from app.core.events import EventBus, PROGRESS, STATS_UPDATED
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.models import CardState, PracticeResult, PracticeSession
from app.models.enums import Grade, PracticeType
from app.schemas.gym import (
    GymStatsResponse,
    PracticeResultResponse,
    PracticeSessionResponse,
    RatingDistribution,
    SessionDetailResponse,
    SessionStatsResponse,
    SubmitResultResponse,
)
from app.services import scheduler_service
from app.services.practice_types import GRADE_LABELS, get_practice_config
from app.services.progression_service import (
    TRANSITION_STABILITY_FACTOR,
    apply_transition_penalty,
    calculate_xp,
    check_unlocks,
    is_harder_transition,
    merge_unlocked,
)
from app.services.session_generator import get_due_count, get_total_count
from app.utils.time_utils import utc_now

logger = logging.getLogger(__name__)


def _require_id(name: str, value: Optional[int]) -> None:
    if value is None:
        raise ValidationError(f"{name} is required")


def get_owned_session(
    session: Session,
    session_id: int,
    user_id: int,
    learning_space_id: int,
) -> PracticeSession:
    """
    Load a practice session owned by the user in the learning space.

    Raises:
        NotFoundError: If the session doesn't exist or belongs to someone else
    """
    practice_session = session.exec(
        select(PracticeSession).where(
            PracticeSession.id == session_id,
            PracticeSession.user_id == user_id,
            PracticeSession.learning_space_id == learning_space_id,
        )
    ).first()
    if not practice_session:
        raise NotFoundError(f"Practice session with id {session_id} not found")
    return practice_session


def _find_result(session: Session, session_id: int, vocab_id: int, exercise_order: int) -> Optional[PracticeResult]:
    return session.exec(
        select(PracticeResult).where(
            PracticeResult.session_id == session_id,
            PracticeResult.vocab_id == vocab_id,
            PracticeResult.exercise_order == exercise_order,
        )
    ).first()


def _replay(result: PracticeResult) -> SubmitResultResponse:
    return SubmitResultResponse(
        xp_gained=result.xp_gained,
        next_review=result.next_review_at,
        new_stability=result.stability_after,
        new_difficulty=result.difficulty_after,
        unlocked_practice_types=[PracticeType(t) for t in result.unlocked_practice_types],
        duplicate=True,
    )


def submit_result(
    session: Session,
    user_id: int,
    learning_space_id: int,
    session_id: int,
    vocab_id: int,
    practice_type: str,
    grade: int,
    response_time_ms: int,
    exercise_order: int,
    user_answer: Optional[str] = None,
    correct_answer: Optional[str] = None,
    prompt_text: Optional[str] = None,
    now: Optional[datetime] = None,
    events: Optional[EventBus] = None,
) -> SubmitResultResponse:
    """
    Record the answer to one exercise and advance the word's schedule.

    This function:
    1. Validates the input and the session (nothing is written on failure)
    2. Returns the stored outcome if this exercise was already submitted
    3. Schedules the word with FSRS
    4. Awards XP based on the stability before the review
    5. Unlocks practice types based on the stability after the review
    6. Updates the CardState, inserts the PracticeResult and increments the
       session counters in a single transaction

    Args:
        session: Database session
        user_id: The user ID
        learning_space_id: Active learning space ID
        session_id: Practice session ID
        vocab_id: Vocabulary ID of the exercise
        practice_type: Practice type tag of the exercise
        grade: Recall grade (1=Again, 2=Hard, 3=Good, 4=Easy)
        response_time_ms: Time taken to answer
        exercise_order: Order of the exercise within the session
        user_answer: What the user answered
        correct_answer: Expected answer
        prompt_text: Prompt shown to the user
        now: Review time as naive UTC (defaults to now)
        events: Event bus notified after commit

    Returns:
        SubmitResultResponse with XP, next review and newly unlocked types

    Raises:
        ValidationError: If grade, practice type or identifiers are invalid
        NotFoundError: If the session or the word's CardState doesn't exist
        ConflictError: If the session is completed or the CardState changed concurrently
    """
    _require_id("user_id", user_id)
    _require_id("learning_space_id", learning_space_id)
    _require_id("session_id", session_id)
    _require_id("vocab_id", vocab_id)
    try:
        grade = Grade(grade)
    except ValueError:
        raise ValidationError(f"Invalid grade: {grade}. Must be between 1 and 4")
    try:
        practice_type = PracticeType(practice_type)
    except ValueError:
        raise ValidationError(f"Unknown practice type: {practice_type}")
    if response_time_ms is None or response_time_ms < 0:
        raise ValidationError("response_time_ms must be >= 0")
    if exercise_order is None or exercise_order < 0:
        raise ValidationError("exercise_order must be >= 0")

    now = now or utc_now()

    practice_session = get_owned_session(session, session_id, user_id, learning_space_id)

    existing = _find_result(session, session_id, vocab_id, exercise_order)
    if existing:
        logger.info(
            f"Duplicate submission for session {session_id}, vocab {vocab_id}, order {exercise_order}; "
            f"returning stored result"
        )
        return _replay(existing)

    if practice_session.completed_at is not None:
        raise ConflictError(f"Practice session {session_id} is already completed")

    # 1. Get current progress
    card_state = session.exec(
        select(CardState).where(
            CardState.user_id == user_id,
            CardState.vocab_id == vocab_id,
            CardState.learning_space_id == learning_space_id,
        )
    ).first()
    if not card_state:
        raise NotFoundError(f"Vocabulary progress not found for vocab {vocab_id}")

    stability_before = card_state.stability
    difficulty_before = card_state.difficulty
    previous_reps = card_state.reps
    previous_due = card_state.due
    previous_type = card_state.last_practice_type
    currently_unlocked = list(card_state.unlocked_practice_types or [])

    # 2. Schedule next review
    current = scheduler_service.schedule_from_card_state(card_state)
    updated, _review_log = scheduler_service.schedule(current, grade, now=now, card_id=card_state.id)

    # 3. XP reflects the difficulty at the time of recall
    xp_gained = calculate_xp(grade, get_practice_config(practice_type), stability_before)

    # 4. Unlocks reflect the new mastery
    newly_unlocked = check_unlocks(updated.stability, currently_unlocked)
    unlocked = merge_unlocked(currently_unlocked, newly_unlocked)

    if settings.gym_apply_transition_penalty and is_harder_transition(previous_type, practice_type):
        stability, difficulty = apply_transition_penalty(updated.stability, updated.difficulty)
        updated = scheduler_service.scale_interval(updated, now, TRANSITION_STABILITY_FACTOR)
        updated = replace(updated, stability=stability, difficulty=difficulty)
        logger.info(
            f"Transition penalty for vocab {vocab_id} ({previous_type} -> {practice_type.value}): "
            f"stability={stability:.2f}, difficulty={difficulty:.2f}"
        )

    try:
        # 5. Update progress, guarded against concurrent or repeated writes
        update_result = session.exec(
            update(CardState)
            .where(
                CardState.id == card_state.id,
                CardState.reps == previous_reps,
                CardState.due == previous_due,
            )
            .values(
                difficulty=updated.difficulty,
                stability=updated.stability,
                state=updated.state.value,
                step=updated.step,
                elapsed_days=updated.elapsed_days,
                scheduled_days=updated.scheduled_days,
                reps=updated.reps,
                lapses=updated.lapses,
                last_review=updated.last_review,
                due=updated.due,
                xp=CardState.xp + xp_gained,
                last_practice_type=practice_type.value,
                unlocked_practice_types=unlocked,
                updated_at=now,
            )
        )
        if update_result.rowcount != 1:
            raise ConflictError(f"Progress for vocab {vocab_id} was changed by another request")

        # 6. Record result
        session.add(PracticeResult(
            session_id=session_id,
            vocab_id=vocab_id,
            exercise_order=exercise_order,
            practice_type=practice_type.value,
            grade=grade.value,
            user_answer=user_answer,
            correct_answer=correct_answer,
            prompt_text=prompt_text,
            response_time_ms=response_time_ms,
            xp_gained=xp_gained,
            stability_before=stability_before,
            stability_after=updated.stability,
            difficulty_before=difficulty_before,
            difficulty_after=updated.difficulty,
            next_review_at=updated.due,
            unlocked_practice_types=[pt.value for pt in newly_unlocked],
            created_at=now,
        ))
        session.flush()

        # 7. Update session progress
        session.exec(
            update(PracticeSession)
            .where(PracticeSession.id == session_id)
            .values(
                completed_count=PracticeSession.completed_count + 1,
                total_xp_gained=PracticeSession.total_xp_gained + xp_gained,
            )
        )
        session.commit()
    except IntegrityError:
        # Another request stored this exercise first
        session.rollback()
        existing = _find_result(session, session_id, vocab_id, exercise_order)
        if existing:
            logger.info(f"Concurrent duplicate submission for session {session_id}, vocab {vocab_id}")
            return _replay(existing)
        raise
    except Exception as e:
        session.rollback()
        logger.error(f"Error submitting result for session {session_id}, vocab {vocab_id}: {str(e)}")
        raise

    logger.info(
        f"Result submitted: session={session_id}, vocab={vocab_id}, type={practice_type.value}, "
        f"grade={grade.name}, xp={xp_gained}, stability {stability_before:.2f} -> {updated.stability:.2f}, "
        f"next_review={updated.due}, unlocked={[pt.value for pt in newly_unlocked]}"
    )

    if events is not None:
        events.publish(STATS_UPDATED, {
            "user_id": user_id,
            "learning_space_id": learning_space_id,
            "session_id": session_id,
        })
        events.publish(PROGRESS, {
            "user_id": user_id,
            "learning_space_id": learning_space_id,
            "session_id": session_id,
            "completed_count": practice_session.completed_count,
            "target_count": practice_session.target_count,
        })

    return SubmitResultResponse(
        xp_gained=xp_gained,
        next_review=updated.due,
        new_stability=updated.stability,
        new_difficulty=updated.difficulty,
        unlocked_practice_types=newly_unlocked,
    )


def _session_results(session: Session, session_id: int) -> List[PracticeResult]:
    return list(session.exec(
        select(PracticeResult)
        .where(PracticeResult.session_id == session_id)
        .order_by(PracticeResult.exercise_order, PracticeResult.id)  # type: ignore
    ).all())


def aggregate_results(session_id: int, results: List[PracticeResult], completed_at: Optional[datetime] = None) -> SessionStatsResponse:
    """Aggregate statistics over the immutable results of a session."""
    distribution = {label: 0 for label in GRADE_LABELS.values()}
    for result in results:
        distribution[GRADE_LABELS[Grade(result.grade)]] += 1

    total_response_time = sum(r.response_time_ms for r in results)
    return SessionStatsResponse(
        session_id=session_id,
        completed_at=completed_at,
        completed_count=len(results),
        total_xp=sum(r.xp_gained for r in results),
        rating_distribution=RatingDistribution(**distribution),
        average_response_time=total_response_time / len(results) if results else 0,
    )


def complete_session(
    session: Session,
    user_id: int,
    learning_space_id: int,
    session_id: int,
    now: Optional[datetime] = None,
    events: Optional[EventBus] = None,
) -> SessionStatsResponse:
    """
    Complete a session and return its statistics.

    The completion time is set on the first call only; statistics are always
    recomputed from the stored results, so repeated calls return the same
    numbers.

    Raises:
        NotFoundError: If the session doesn't exist or belongs to someone else
    """
    practice_session = get_owned_session(session, session_id, user_id, learning_space_id)

    if practice_session.completed_at is None:
        practice_session.completed_at = now or utc_now()
        session.add(practice_session)
        try:
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Error completing session {session_id}: {str(e)}")
            raise
        session.refresh(practice_session)
        logger.info(f"Completed session {session_id} for user {user_id}")

    stats = aggregate_results(session_id, _session_results(session, session_id), practice_session.completed_at)

    if events is not None:
        events.publish(STATS_UPDATED, {
            "user_id": user_id,
            "learning_space_id": learning_space_id,
            "session_id": session_id,
        })

    return stats


def get_session_detail(
    session: Session,
    user_id: int,
    learning_space_id: int,
    session_id: int,
) -> SessionDetailResponse:
    """A session with all of its results, for viewing past sessions."""
    practice_session = get_owned_session(session, session_id, user_id, learning_space_id)
    results = _session_results(session, session_id)
    return SessionDetailResponse(
        session=PracticeSessionResponse.model_validate(practice_session),
        results=[PracticeResultResponse.model_validate(r) for r in results],
    )


def get_gym_stats(
    session: Session,
    user_id: int,
    learning_space_id: int,
    now: Optional[datetime] = None,
) -> GymStatsResponse:
    """Gym overview for a learning space."""
    total_xp = session.exec(
        select(func.coalesce(func.sum(CardState.xp), 0)).where(
            CardState.user_id == user_id,
            CardState.learning_space_id == learning_space_id,
        )
    ).one()

    total_sessions = session.exec(
        select(func.count(PracticeSession.id)).where(
            PracticeSession.user_id == user_id,
            PracticeSession.learning_space_id == learning_space_id,
        )
    ).one()

    total_exercises = session.exec(
        select(func.count(PracticeResult.id))
        .join(PracticeSession, PracticeResult.session_id == PracticeSession.id)
        .where(
            PracticeSession.user_id == user_id,
            PracticeSession.learning_space_id == learning_space_id,
        )
    ).one()

    return GymStatsResponse(
        total_xp=int(total_xp or 0),
        total_sessions=total_sessions,
        total_exercises=total_exercises,
        due_count=get_due_count(session, user_id, learning_space_id, now=now),
        total_vocab=get_total_count(session, user_id, learning_space_id),
    )
