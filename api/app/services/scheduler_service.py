"""
Scheduler service wrapping the FSRS spaced repetition algorithm.

The FSRS maths lives in the ``fsrs`` library; this module converts between the
persisted CardState rows and ``fsrs.Card`` objects and keeps the bookkeeping
counters (reps, lapses, elapsed/scheduled days) the library does not track.
"""
import logging
from dataclasses import dataclass, replace
from datetime import datetime
from functools import lru_cache
from typing import Optional, Tuple

from fsrs import Card, Rating, ReviewLog, Scheduler, State

from app.core.config import settings
from app.models.card_state import CardState
from app.models.enums import CardStatus, Grade
from app.utils.time_utils import to_aware_utc, to_naive_utc, utc_now

logger = logging.getLogger(__name__)

NEW_CARD_DIFFICULTY = 5.0


@dataclass(frozen=True)
class CardSchedule:
    """Scheduling fields of a card, detached from the database row."""
    difficulty: float
    stability: float
    state: CardStatus
    step: Optional[int]
    elapsed_days: int
    scheduled_days: int
    reps: int
    lapses: int
    last_review: Optional[datetime]
    due: datetime


@lru_cache(maxsize=1)
def get_scheduler() -> Scheduler:
    """FSRS scheduler configured from settings, built once per process."""
    if settings.gym_enable_short_term:
        return Scheduler(
            desired_retention=settings.gym_desired_retention,
            maximum_interval=settings.gym_maximum_interval,
            enable_fuzzing=settings.gym_enable_fuzzing,
        )
    # Without steps every answer goes straight to day-level review scheduling
    return Scheduler(
        desired_retention=settings.gym_desired_retention,
        learning_steps=(),
        relearning_steps=(),
        maximum_interval=settings.gym_maximum_interval,
        enable_fuzzing=settings.gym_enable_fuzzing,
    )


def new_card_schedule(now: Optional[datetime] = None) -> CardSchedule:
    """Zero state for a word that has never been reviewed."""
    return CardSchedule(
        difficulty=NEW_CARD_DIFFICULTY,
        stability=0.0,
        state=CardStatus.NEW,
        step=None,
        elapsed_days=0,
        scheduled_days=0,
        reps=0,
        lapses=0,
        last_review=None,
        due=now or utc_now(),
    )


def schedule_from_card_state(card_state: CardState) -> CardSchedule:
    return CardSchedule(
        difficulty=card_state.difficulty,
        stability=card_state.stability,
        state=CardStatus(card_state.state),
        step=card_state.step,
        elapsed_days=card_state.elapsed_days,
        scheduled_days=card_state.scheduled_days,
        reps=card_state.reps,
        lapses=card_state.lapses,
        last_review=card_state.last_review,
        due=card_state.due,
    )


def apply_schedule(card_state: CardState, schedule: CardSchedule) -> None:
    """Copy scheduling fields onto a CardState row (does not touch progression fields)."""
    card_state.difficulty = schedule.difficulty
    card_state.stability = schedule.stability
    card_state.state = schedule.state.value
    card_state.step = schedule.step
    card_state.elapsed_days = schedule.elapsed_days
    card_state.scheduled_days = schedule.scheduled_days
    card_state.reps = schedule.reps
    card_state.lapses = schedule.lapses
    card_state.last_review = schedule.last_review
    card_state.due = schedule.due


def _to_fsrs_card(schedule: CardSchedule, now: datetime, card_id: Optional[int]) -> Card:
    if schedule.state == CardStatus.NEW:
        # fsrs starts every card in the first learning step
        return Card(card_id=card_id, due=to_aware_utc(now))
    return Card(
        card_id=card_id,
        state=State(schedule.state.value),
        step=schedule.step,
        stability=schedule.stability,
        difficulty=schedule.difficulty,
        due=to_aware_utc(schedule.due),
        last_review=to_aware_utc(schedule.last_review) if schedule.last_review else None,
    )


def schedule(
    state: CardSchedule,
    grade: Grade,
    now: Optional[datetime] = None,
    card_id: Optional[int] = None,
    scheduler: Optional[Scheduler] = None,
) -> Tuple[CardSchedule, ReviewLog]:
    """
    Review a card and compute its next scheduling state.

    Args:
        state: Current scheduling state (use new_card_schedule for first reviews)
        grade: Recall grade (1-4)
        now: Review time as naive UTC (defaults to now)
        card_id: Identifier passed to fsrs for its review log
        scheduler: FSRS scheduler (defaults to the configured one)

    Returns:
        Tuple of (updated schedule, fsrs review log)

    Raises:
        ValueError: If grade is not one of 1-4
    """
    grade = Grade(grade)
    now = to_naive_utc(now) if now else utc_now()
    scheduler = scheduler or get_scheduler()

    card = _to_fsrs_card(state, now, card_id)
    reviewed, review_log = scheduler.review_card(card, Rating(grade.value), review_datetime=to_aware_utc(now))

    next_due = to_naive_utc(reviewed.due)
    elapsed_days = (now - state.last_review).days if state.last_review else 0
    is_lapse = grade == Grade.AGAIN and state.state == CardStatus.REVIEW

    updated = CardSchedule(
        difficulty=float(reviewed.difficulty),
        stability=float(reviewed.stability),
        state=CardStatus(reviewed.state.value),
        step=reviewed.step,
        elapsed_days=max(0, elapsed_days),
        scheduled_days=max(0, (next_due - now).days),
        reps=state.reps + 1,
        lapses=state.lapses + 1 if is_lapse else state.lapses,
        last_review=now,
        due=next_due,
    )
    logger.debug(
        f"Scheduled card {card_id}: grade={grade.name}, state {state.state.name} -> {updated.state.name}, "
        f"stability {state.stability:.2f} -> {updated.stability:.2f}, due={updated.due}"
    )
    return updated, review_log


def scale_interval(state: CardSchedule, now: datetime, factor: float) -> CardSchedule:
    """
    Shrink the time until the next review by factor.

    FSRS intervals grow linearly with stability, so scaling stability and the
    interval by the same factor keeps the due date consistent with the model.
    """
    interval = state.due - now
    if interval.total_seconds() <= 0:
        return state
    due = now + interval * factor
    return replace(state, due=due, scheduled_days=max(0, (due - now).days))

