"""
Card service: start tracking vocabulary in the gym.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlmodel import Session, select
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import NotFoundError, ValidationError
from app.models.models import CardState, Vocabulary
from app.models.card_state import default_unlocked_practice_types
from app.services.scheduler_service import apply_schedule, new_card_schedule
from app.utils.time_utils import utc_now

logger = logging.getLogger(__name__)


def get_card_state(
    session: Session,
    user_id: int,
    learning_space_id: int,
    vocab_id: int,
) -> Optional[CardState]:
    return session.exec(
        select(CardState).where(
            CardState.user_id == user_id,
            CardState.learning_space_id == learning_space_id,
            CardState.vocab_id == vocab_id,
        )
    ).first()


def enroll_vocabulary(
    session: Session,
    user_id: int,
    learning_space_id: int,
    vocab_id: int,
    now: Optional[datetime] = None,
) -> CardState:
    """
    Get or create the CardState of a vocabulary item.

    New cards start with the zero state (difficulty 5, stability 0, due now)
    and only the recognition practice type unlocked. Existing cards are
    returned unchanged.

    Raises:
        NotFoundError: If the vocabulary doesn't exist
        ValidationError: If the vocabulary belongs to another learning space
    """
    vocabulary = session.get(Vocabulary, vocab_id)
    if not vocabulary:
        raise NotFoundError(f"Vocabulary with id {vocab_id} not found")
    if vocabulary.learning_space_id != learning_space_id:
        raise ValidationError(
            f"Vocabulary {vocab_id} does not belong to learning space {learning_space_id}"
        )

    existing = get_card_state(session, user_id, learning_space_id, vocab_id)
    if existing:
        return existing

    now = now or utc_now()
    card_state = CardState(
        user_id=user_id,
        learning_space_id=learning_space_id,
        vocab_id=vocab_id,
        unlocked_practice_types=default_unlocked_practice_types(),
        created_at=now,
    )
    apply_schedule(card_state, new_card_schedule(now))
    session.add(card_state)
    try:
        session.commit()
    except IntegrityError:
        # Enrolled concurrently by another request
        session.rollback()
        existing = get_card_state(session, user_id, learning_space_id, vocab_id)
        if existing:
            return existing
        raise
    session.refresh(card_state)

    logger.info(f"Enrolled vocab {vocab_id} for user {user_id} in learning space {learning_space_id}")
    return card_state
