from datetime import timedelta

import pytest
from sqlalchemy import update
from sqlmodel import select

from app.core.config import settings
from app.core.events import PROGRESS, STATS_UPDATED, EventBus
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.enums import CardStatus, Grade, PracticeType
from app.models.models import CardState, PracticeResult, PracticeSession
from app.services import scheduler_service
from app.services.practice_service import (
    complete_session,
    get_gym_stats,
    get_session_detail,
    submit_result,
)
from app.services.session_generator import generate_session

USER_ID = 1
SPACE_ID = 10

RECOGNITION = PracticeType.FOREIGN_RECOGNITION
PRODUCTION = PracticeType.ENGLISH_PROMPT


@pytest.fixture
def start_session(session, now):
    def _start(target_count=10):
        response = generate_session(session, USER_ID, SPACE_ID, target_count=target_count, now=now)
        return response.session_id

    return _start


@pytest.fixture
def submit(session, now):
    def _submit(session_id, card, grade=Grade.GOOD, practice_type=RECOGNITION, order=0, **kwargs):
        params = dict(
            user_id=USER_ID,
            learning_space_id=SPACE_ID,
            session_id=session_id,
            vocab_id=card.vocab_id,
            practice_type=practice_type,
            grade=grade,
            response_time_ms=4000,
            exercise_order=order,
            now=now,
        )
        params.update(kwargs)
        return submit_result(session, **params)

    return _submit


def result_count(session):
    return len(session.exec(select(PracticeResult)).all())


def test_first_review_of_a_new_word(session, make_card, start_session, submit, now):
    card = make_card()
    session_id = start_session()

    response = submit(session_id, card, grade=Grade.GOOD)

    assert response.xp_gained == 25
    assert response.new_stability > 0
    assert response.next_review > now
    assert response.duplicate is False

    card = session.get(CardState, card.id)
    assert card.reps == 1
    assert card.due > now
    assert card.stability > 0
    assert card.state != CardStatus.NEW.value
    assert card.xp == 25
    assert card.last_practice_type == RECOGNITION.value

    practice_session = session.get(PracticeSession, session_id)
    assert practice_session.completed_count == 1
    assert practice_session.total_xp_gained == 25

    result = session.exec(select(PracticeResult)).one()
    assert result.stability_before == 0
    assert result.stability_after == card.stability
    assert result.next_review_at == card.due


def test_resubmitting_the_same_exercise_changes_nothing(session, make_card, start_session, submit):
    card = make_card()
    session_id = start_session()

    first = submit(session_id, card, grade=Grade.EASY)
    card_after_first = session.get(CardState, card.id)
    reps, due = card_after_first.reps, card_after_first.due

    second = submit(session_id, card, grade=Grade.EASY)

    assert second.duplicate is True
    assert second.xp_gained == first.xp_gained
    assert second.next_review == first.next_review
    assert second.new_stability == first.new_stability

    practice_session = session.get(PracticeSession, session_id)
    assert practice_session.completed_count == 1
    assert practice_session.total_xp_gained == first.xp_gained
    assert result_count(session) == 1

    card = session.get(CardState, card.id)
    assert card.reps == reps
    assert card.due == due
    assert card.xp == first.xp_gained


def test_same_word_at_another_order_is_a_new_result(session, make_card, start_session, submit):
    card = make_card()
    session_id = start_session()

    submit(session_id, card, order=0)
    response = submit(session_id, card, order=1)

    assert response.duplicate is False
    assert session.get(PracticeSession, session_id).completed_count == 2
    assert session.get(CardState, card.id).reps == 2


def test_rising_stability_unlocks_production(session, make_card, start_session, submit):
    card = make_card(
        state=CardStatus.REVIEW,
        stability=2.0,
        last_review_offset=timedelta(days=-3),
        due_offset=timedelta(hours=-1),
    )
    session_id = start_session()

    response = submit(session_id, card, grade=Grade.EASY)

    assert response.new_stability >= 3
    assert response.unlocked_practice_types == [PRODUCTION]

    card = session.get(CardState, card.id)
    assert card.unlocked_practice_types == [RECOGNITION.value, PRODUCTION.value]
    result = session.exec(select(PracticeResult)).one()
    assert result.unlocked_practice_types == [PRODUCTION.value]


def test_forgetting_never_revokes_unlocks(session, make_card, start_session, submit):
    card = make_card(
        state=CardStatus.REVIEW,
        stability=4.0,
        last_review_offset=timedelta(days=-4),
        unlocked=[RECOGNITION.value, PRODUCTION.value],
    )
    session_id = start_session()

    response = submit(session_id, card, grade=Grade.AGAIN, practice_type=PRODUCTION)

    assert response.unlocked_practice_types == []
    card = session.get(CardState, card.id)
    assert card.unlocked_practice_types == [RECOGNITION.value, PRODUCTION.value]
    assert card.lapses == 1


def test_xp_uses_stability_before_the_review(session, make_card, start_session, submit):
    card = make_card(
        state=CardStatus.REVIEW,
        stability=30.0,
        last_review_offset=timedelta(days=-30),
        unlocked=[RECOGNITION.value, PRODUCTION.value],
    )
    session_id = start_session()

    response = submit(session_id, card, grade=Grade.GOOD, practice_type=RECOGNITION)

    # 25 * 1.0 * (1 + 1 * 0.5)
    assert response.xp_gained == 38


@pytest.mark.parametrize("overrides", [
    {"grade": 0},
    {"grade": 5},
    {"practice_type": "dictation"},
    {"response_time_ms": -1},
    {"order": -1},
])
def test_invalid_input_has_no_side_effects(session, make_card, start_session, submit, overrides):
    card = make_card()
    session_id = start_session()

    with pytest.raises(ValidationError):
        submit(session_id, card, **overrides)

    assert result_count(session) == 0
    assert session.get(PracticeSession, session_id).completed_count == 0
    assert session.get(CardState, card.id).reps == 0


def test_unknown_session(session, make_card, submit):
    card = make_card()

    with pytest.raises(NotFoundError):
        submit(999, card)


def test_session_of_another_user_is_not_found(session, make_card, start_session, submit):
    card = make_card()
    session_id = start_session()

    with pytest.raises(NotFoundError):
        submit(session_id, card, user_id=USER_ID + 1)


def test_word_without_card_state(session, make_card, make_vocab, start_session, submit):
    card = make_card()
    session_id = start_session()
    vocab = make_vocab()

    with pytest.raises(NotFoundError):
        submit(session_id, card, vocab_id=vocab.id)

    assert result_count(session) == 0
    assert session.get(PracticeSession, session_id).completed_count == 0


def test_submitting_to_a_completed_session(session, make_card, start_session, submit):
    first, second = make_card(), make_card()
    session_id = start_session()
    stored = submit(session_id, first, order=0)
    complete_session(session, USER_ID, SPACE_ID, session_id)

    with pytest.raises(ConflictError):
        submit(session_id, second, order=1)

    replay = submit(session_id, first, order=0)
    assert replay.duplicate is True
    assert replay.xp_gained == stored.xp_gained
    assert session.get(CardState, second.id).reps == 0


def test_concurrent_card_change_is_rejected(session, make_card, start_session, submit, monkeypatch):
    card = make_card()
    session_id = start_session()
    original_schedule = scheduler_service.schedule

    def schedule_after_concurrent_review(*args, **kwargs):
        session.exec(update(CardState).where(CardState.id == card.id).values(reps=CardState.reps + 1))
        return original_schedule(*args, **kwargs)

    monkeypatch.setattr(scheduler_service, "schedule", schedule_after_concurrent_review)

    with pytest.raises(ConflictError):
        submit(session_id, card)

    assert result_count(session) == 0
    practice_session = session.get(PracticeSession, session_id)
    assert practice_session.completed_count == 0
    assert practice_session.total_xp_gained == 0


def test_transition_penalty_on_harder_practice_type(session, make_card, start_session, submit, now, monkeypatch):
    monkeypatch.setattr(settings, "gym_apply_transition_penalty", True)
    card = make_card(
        state=CardStatus.REVIEW,
        stability=10.0,
        difficulty=5.0,
        last_review_offset=timedelta(days=-10),
        unlocked=[RECOGNITION.value, PRODUCTION.value],
        last_practice_type=RECOGNITION.value,
    )
    expected, _ = scheduler_service.schedule(
        scheduler_service.schedule_from_card_state(card), Grade.GOOD, now=now
    )
    session_id = start_session()

    response = submit(session_id, card, grade=Grade.GOOD, practice_type=PRODUCTION)

    assert response.new_stability == pytest.approx(expected.stability * 0.6)
    assert response.new_difficulty == pytest.approx(min(expected.difficulty + 0.5, 10.0))
    assert now < response.next_review < expected.due


def test_no_transition_penalty_by_default(session, make_card, start_session, submit, now):
    card = make_card(
        state=CardStatus.REVIEW,
        stability=10.0,
        last_review_offset=timedelta(days=-10),
        unlocked=[RECOGNITION.value, PRODUCTION.value],
        last_practice_type=RECOGNITION.value,
    )
    expected, _ = scheduler_service.schedule(
        scheduler_service.schedule_from_card_state(card), Grade.GOOD, now=now
    )
    session_id = start_session()

    response = submit(session_id, card, grade=Grade.GOOD, practice_type=PRODUCTION)

    assert response.new_stability == pytest.approx(expected.stability)


def test_complete_session_is_idempotent(session, make_card, start_session, submit, now):
    cards = [make_card(), make_card(), make_card()]
    session_id = start_session()
    submit(session_id, cards[0], grade=Grade.AGAIN, order=0, response_time_ms=1000)
    submit(session_id, cards[1], grade=Grade.GOOD, order=1, response_time_ms=2000)
    submit(session_id, cards[2], grade=Grade.GOOD, order=2, response_time_ms=6000)

    first = complete_session(session, USER_ID, SPACE_ID, session_id, now=now)
    second = complete_session(session, USER_ID, SPACE_ID, session_id, now=now + timedelta(minutes=5))

    assert first == second
    assert first.completed_at == now
    assert first.completed_count == 3
    assert first.total_xp == 5 + 25 + 25
    assert first.rating_distribution.again == 1
    assert first.rating_distribution.good == 2
    assert first.rating_distribution.hard == 0
    assert first.average_response_time == pytest.approx(3000)
    assert session.get(PracticeSession, session_id).completed_at == now


def test_complete_empty_session(session, make_card, start_session):
    make_card()
    session_id = start_session()

    stats = complete_session(session, USER_ID, SPACE_ID, session_id)

    assert stats.completed_count == 0
    assert stats.total_xp == 0
    assert stats.average_response_time == 0


def test_complete_unknown_session(session):
    with pytest.raises(NotFoundError):
        complete_session(session, USER_ID, SPACE_ID, 12345)


def test_stats_updates_are_published(session, make_card, start_session, submit):
    events = EventBus()
    received = []
    events.subscribe(STATS_UPDATED, received.append)
    card = make_card()
    session_id = start_session()

    submit(session_id, card, events=events)
    complete_session(session, USER_ID, SPACE_ID, session_id, events=events)

    assert received == [
        {"user_id": USER_ID, "learning_space_id": SPACE_ID, "session_id": session_id},
        {"user_id": USER_ID, "learning_space_id": SPACE_ID, "session_id": session_id},
    ]


def test_failing_subscriber_does_not_undo_submission(session, make_card, start_session, submit):
    events = EventBus()

    def broken(payload):
        raise RuntimeError("listener down")

    events.subscribe(STATS_UPDATED, broken)
    card = make_card()
    session_id = start_session()

    response = submit(session_id, card, events=events)

    assert response.xp_gained == 25
    assert session.get(PracticeSession, session_id).completed_count == 1


def test_session_detail_and_gym_stats(session, make_card, start_session, submit, now):
    first, second = make_card(), make_card()
    make_card(due_offset=timedelta(days=3))
    session_id = start_session()
    submit(session_id, second, order=1)
    submit(session_id, first, order=0)

    detail = get_session_detail(session, USER_ID, SPACE_ID, session_id)

    assert detail.session.id == session_id
    assert detail.session.completed_count == 2
    assert [r.exercise_order for r in detail.results] == [0, 1]

    stats = get_gym_stats(session, USER_ID, SPACE_ID, now=now)

    assert stats.total_xp == 50
    assert stats.total_sessions == 1
    assert stats.total_exercises == 2
    assert stats.total_vocab == 3
    assert stats.due_count == 0


def test_session_progress_is_published(session, make_card, start_session, submit):
    events = EventBus()
    received = []
    events.subscribe(PROGRESS, received.append)
    first, second = make_card(), make_card()
    session_id = start_session(target_count=5)

    submit(session_id, first, order=0, events=events)
    submit(session_id, second, order=1, events=events)

    assert [p["completed_count"] for p in received] == [1, 2]
    assert all(p["target_count"] == 5 for p in received)
    assert all(p["session_id"] == session_id for p in received)


def test_reviewed_word_is_not_due_again_in_the_same_day(session, make_card, start_session, submit, now):
    card = make_card()
    session_id = start_session()

    submit(session_id, card, grade=Grade.GOOD)

    card = session.get(CardState, card.id)
    assert card.state == CardStatus.REVIEW.value
    assert card.due >= now + timedelta(days=1)
    assert generate_session(session, USER_ID, SPACE_ID, target_count=5, now=now + timedelta(hours=1)).exercises == []
