import os

# Settings require DATABASE_URL at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import timedelta
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.core.database import get_session
from app.main import app
from app.models.enums import CardStatus, PracticeType
from app.models.models import CardState, Vocabulary
from app.utils.time_utils import utc_now

USER_ID = 1
SPACE_ID = 10


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(session):
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def now():
    return utc_now()


@pytest.fixture
def make_vocab(session):
    """Creates a vocabulary entry in the catalog."""
    counter = {"n": 0}

    def _make(
        learning_space_id: int = SPACE_ID,
        word: Optional[str] = None,
        translation: Optional[str] = None,
        example_sentence: Optional[str] = None,
    ) -> Vocabulary:
        counter["n"] += 1
        vocab = Vocabulary(
            learning_space_id=learning_space_id,
            word=word or f"palabra{counter['n']}",
            lemma=word or f"palabra{counter['n']}",
            translation=translation or f"word{counter['n']}",
            word_kind="noun",
            example_sentence=example_sentence,
        )
        session.add(vocab)
        session.commit()
        session.refresh(vocab)
        return vocab

    return _make


@pytest.fixture
def make_card(session, make_vocab, now):
    """Creates a vocabulary entry and its CardState."""

    def _make(
        due_offset: timedelta = timedelta(hours=-1),
        stability: float = 0.0,
        difficulty: float = 5.0,
        state: CardStatus = CardStatus.NEW,
        unlocked: Optional[List[str]] = None,
        last_practice_type: Optional[str] = None,
        last_review_offset: Optional[timedelta] = None,
        user_id: int = USER_ID,
        learning_space_id: int = SPACE_ID,
        example_sentence: Optional[str] = None,
    ) -> CardState:
        vocab = make_vocab(learning_space_id=learning_space_id, example_sentence=example_sentence)
        card = CardState(
            user_id=user_id,
            learning_space_id=learning_space_id,
            vocab_id=vocab.id,
            stability=stability,
            difficulty=difficulty,
            state=state.value,
            reps=0 if state == CardStatus.NEW else 3,
            last_review=now + last_review_offset if last_review_offset is not None else None,
            due=now + due_offset,
            last_practice_type=last_practice_type,
            unlocked_practice_types=unlocked or [PracticeType.FOREIGN_RECOGNITION.value],
        )
        session.add(card)
        session.commit()
        session.refresh(card)
        return card

    return _make
