from datetime import timedelta

from sqlmodel import select

from app.models.models import CardState
from app.utils.time_utils import utc_now


def test_naive_utc_timestamps_round_trip(session, make_vocab):
    now = utc_now()
    vocab = make_vocab()
    card = CardState(user_id=1, learning_space_id=vocab.learning_space_id, vocab_id=vocab.id, due=now)
    session.add(card)
    session.commit()
    session.refresh(card)

    assert card.due == now
    assert card.due.tzinfo is None
    assert card.created_at.tzinfo is None


def test_due_comparison_with_naive_utc(session, make_vocab):
    now = utc_now()
    vocab = make_vocab()
    session.add(CardState(user_id=1, learning_space_id=vocab.learning_space_id, vocab_id=vocab.id, due=now))
    session.commit()

    due = session.exec(select(CardState).where(CardState.due <= now + timedelta(seconds=1))).all()
    later = session.exec(select(CardState).where(CardState.due > now)).all()

    assert len(due) == 1
    assert later == []
