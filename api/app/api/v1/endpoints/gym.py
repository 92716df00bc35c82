"""
Gym (spaced repetition practice) endpoints.
"""
# pyright: reportAttributeAccessIssue=false
# pyright: reportCallIssue=false
# pyright: reportArgumentType=false
from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from app.core.database import get_session
from app.core.events import EventBus, get_event_bus
from app.schemas.gym import (
    CardStateResponse,
    DueCountResponse,
    EnrollVocabularyRequest,
    GymStatsResponse,
    PracticeTypeConfigResponse,
    PracticeTypesResponse,
    RatingGuidanceResponse,
    SessionDetailResponse,
    SessionScopeRequest,
    SessionStatsResponse,
    StartSessionRequest,
    StartSessionResponse,
    SubmitResultRequest,
    SubmitResultResponse,
)
from app.services.card_service import enroll_vocabulary
from app.services.practice_service import (
    complete_session,
    get_gym_stats,
    get_session_detail,
    submit_result,
)
from app.services.practice_types import PRACTICE_TYPE_CONFIGS
from app.services.progression_service import get_rating_guidance
from app.services.session_generator import generate_session, get_due_count, get_total_count

router = APIRouter(prefix="/gym", tags=["gym"])


@router.get("/due-count", response_model=DueCountResponse)
async def due_count(
    user_id: int,
    learning_space_id: int,
    session: Session = Depends(get_session)
):
    """Get the number of due and tracked vocabulary items in a learning space."""
    return DueCountResponse(
        due_count=get_due_count(session, user_id, learning_space_id),
        total_count=get_total_count(session, user_id, learning_space_id),
    )


@router.get("/stats", response_model=GymStatsResponse)
async def gym_stats(
    user_id: int,
    learning_space_id: int,
    session: Session = Depends(get_session)
):
    """Get gym overview stats (XP, sessions, exercises, due and total vocabulary)."""
    return get_gym_stats(session, user_id, learning_space_id)


@router.get("/practice-types", response_model=PracticeTypesResponse)
async def practice_types():
    """List the practice type ladder, including types that are not available yet."""
    return PracticeTypesResponse(
        practice_types=[
            PracticeTypeConfigResponse(
                type=config.type,
                display_name=config.display_name,
                description=config.description,
                required_stability=config.required_stability,
                xp_multiplier=config.xp_multiplier,
                instructions=config.instructions,
                available=config.available,
            )
            for config in PRACTICE_TYPE_CONFIGS.values()
        ]
    )


@router.get("/rating-guidance", response_model=RatingGuidanceResponse)
async def rating_guidance(response_time_ms: int = Query(..., ge=0)):
    """Suggest a grade based on how long the answer took."""
    suggested_grade, guidance = get_rating_guidance(response_time_ms)
    return RatingGuidanceResponse(suggested_grade=suggested_grade, guidance=guidance)


@router.post("/cards", response_model=CardStateResponse, status_code=status.HTTP_201_CREATED)
async def enroll_card(
    request: EnrollVocabularyRequest,
    session: Session = Depends(get_session)
):
    """Start tracking a vocabulary item, or return its existing progress."""
    card_state = enroll_vocabulary(
        session,
        user_id=request.user_id,
        learning_space_id=request.learning_space_id,
        vocab_id=request.vocab_id,
    )
    return CardStateResponse.model_validate(card_state)


@router.post("/sessions", response_model=StartSessionResponse)
async def start_session(
    request: StartSessionRequest,
    session: Session = Depends(get_session)
):
    """
    Start a new practice session.

    Returns status 'nothing_due' with no exercises when no vocabulary is due.
    """
    return generate_session(
        session,
        user_id=request.user_id,
        learning_space_id=request.learning_space_id,
        target_count=request.target_count,
    )


@router.post("/sessions/{session_id}/results", response_model=SubmitResultResponse)
async def submit_session_result(
    session_id: int,
    request: SubmitResultRequest,
    session: Session = Depends(get_session),
    events: EventBus = Depends(get_event_bus)
):
    """
    Submit the answer to one exercise of a session.

    Submitting the same exercise (session, vocabulary, order) again returns the
    stored outcome with duplicate=true and changes nothing.
    """
    return submit_result(
        session,
        user_id=request.user_id,
        learning_space_id=request.learning_space_id,
        session_id=session_id,
        vocab_id=request.vocab_id,
        practice_type=request.practice_type,
        grade=request.grade,
        response_time_ms=request.response_time_ms,
        exercise_order=request.order,
        user_answer=request.user_answer,
        correct_answer=request.correct_answer,
        prompt_text=request.prompt_text,
        events=events,
    )


@router.post("/sessions/{session_id}/complete", response_model=SessionStatsResponse)
async def complete_practice_session(
    session_id: int,
    request: SessionScopeRequest,
    session: Session = Depends(get_session),
    events: EventBus = Depends(get_event_bus)
):
    """Complete a session and return its statistics. Safe to call more than once."""
    return complete_session(
        session,
        user_id=request.user_id,
        learning_space_id=request.learning_space_id,
        session_id=session_id,
        events=events,
    )


@router.get("/sessions/{session_id}", response_model=SessionDetailResponse)
async def session_detail(
    session_id: int,
    user_id: int,
    learning_space_id: int,
    session: Session = Depends(get_session)
):
    """Get a past session with its results."""
    return get_session_detail(session, user_id, learning_space_id, session_id)
