from dataclasses import replace
from datetime import timedelta

import pytest

from app.core.config import settings
from app.models.enums import CardStatus, Grade
from app.services import scheduler_service
from app.services.scheduler_service import (
    CardSchedule,
    new_card_schedule,
    scale_interval,
    schedule,
)


def review_schedule(now, stability=10.0, days_since_review=10, lapses=0):
    return CardSchedule(
        difficulty=5.0,
        stability=stability,
        state=CardStatus.REVIEW,
        step=None,
        elapsed_days=0,
        scheduled_days=days_since_review,
        reps=4,
        lapses=lapses,
        last_review=now - timedelta(days=days_since_review),
        due=now,
    )


def test_new_card_schedule_is_zero_state(now):
    state = new_card_schedule(now)

    assert state.state == CardStatus.NEW
    assert state.stability == 0.0
    assert state.difficulty == 5.0
    assert state.reps == 0
    assert state.lapses == 0
    assert state.last_review is None
    assert state.due == now


def test_first_good_review_schedules_into_future(now):
    updated, review_log = schedule(new_card_schedule(now), Grade.GOOD, now=now)

    assert updated.reps == 1
    assert updated.stability > 0
    assert updated.due > now
    assert updated.last_review == now
    assert updated.state != CardStatus.NEW
    assert updated.due.tzinfo is None
    assert review_log.rating.value == Grade.GOOD.value


@pytest.mark.parametrize("grade", list(Grade))
def test_every_grade_increments_reps_and_keeps_difficulty_in_range(now, grade):
    updated, _ = schedule(review_schedule(now), grade, now=now)

    assert updated.reps == 5
    assert 1.0 <= updated.difficulty <= 10.0
    assert updated.stability > 0
    assert updated.due > now


def test_again_on_review_card_counts_a_lapse(now):
    updated, _ = schedule(review_schedule(now, lapses=2), Grade.AGAIN, now=now)

    assert updated.lapses == 3
    assert updated.state == CardStatus.REVIEW
    assert updated.due >= now + timedelta(days=1)


def test_new_word_graded_good_leaves_for_days(now):
    updated, _ = schedule(new_card_schedule(now), Grade.GOOD, now=now)

    assert updated.state == CardStatus.REVIEW
    assert updated.step is None
    assert updated.due >= now + timedelta(days=1)
    assert updated.scheduled_days >= 1


def test_short_term_steps_can_be_enabled(now, monkeypatch):
    monkeypatch.setattr(settings, "gym_enable_short_term", True)
    scheduler_service.get_scheduler.cache_clear()
    try:
        updated, _ = schedule(new_card_schedule(now), Grade.GOOD, now=now)
    finally:
        scheduler_service.get_scheduler.cache_clear()

    assert updated.state == CardStatus.LEARNING
    assert updated.due < now + timedelta(days=1)


def test_again_on_new_card_is_not_a_lapse(now):
    updated, _ = schedule(new_card_schedule(now), Grade.AGAIN, now=now)

    assert updated.lapses == 0
    assert updated.reps == 1


def test_successful_review_grows_stability(now):
    before = review_schedule(now, stability=10.0)
    updated, _ = schedule(before, Grade.GOOD, now=now)

    assert updated.stability > before.stability
    assert updated.elapsed_days == 10


def test_invalid_grade_is_rejected(now):
    with pytest.raises(ValueError):
        schedule(new_card_schedule(now), 5, now=now)


def test_scheduler_is_built_once():
    assert scheduler_service.get_scheduler() is scheduler_service.get_scheduler()


def test_scale_interval_shrinks_time_until_due(now):
    state = review_schedule(now)
    state = replace(state, due=now + timedelta(days=10))

    scaled = scale_interval(state, now, 0.6)

    assert scaled.due == now + timedelta(days=6)
    assert scaled.scheduled_days == 6
    assert scaled.stability == state.stability


def test_scale_interval_leaves_overdue_cards_alone(now):
    state = review_schedule(now)

    assert scale_interval(state, now + timedelta(hours=1), 0.6) == state
