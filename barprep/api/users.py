"""User profile, progress, chat history and recommendation routes.

There is no authentication: the user id in the path identifies the learner.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from barprep.api.deps import get_user_or_404
from barprep.config import settings
from barprep.db.models import ChatMessage, TestSession, User
from barprep.db.session import get_db
from barprep.schemas import (
    AnalyticsSummary,
    ChatMessageRead,
    RecommendationCreate,
    RecommendationRead,
    TestSessionRead,
    UserAnalyticsRead,
    UserCreate,
    UserRead,
)
from barprep.services import recommendations as recommendation_service
from barprep.services.analytics import get_user_analytics, pass_probability_from

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user(body: UserCreate, db: Session = Depends(get_db)):
    existing = db.query(User).filter(User.username == body.username).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username already taken",
        )
    user = User(username=body.username, email=body.email)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created user %s (%s)", user.id, user.username)
    return user


@router.get("/{user_id}", response_model=UserRead)
def get_user(user: User = Depends(get_user_or_404)):
    return user


# ── Analytics ─────────────────────────────────────────────────────────────────


@router.get("/{user_id}/analytics", response_model=AnalyticsSummary)
def get_analytics(user: User = Depends(get_user_or_404), db: Session = Depends(get_db)):
    """Per-subject tallies, overall accuracy and the most recent sessions."""
    rows = get_user_analytics(db, user.id)
    total_questions = sum(r.total_questions for r in rows)
    total_correct = sum(r.correct_answers for r in rows)
    average_score = total_correct / total_questions * 100 if total_questions else 0.0

    recent = (
        db.query(TestSession)
        .filter(TestSession.user_id == user.id)
        .order_by(TestSession.time_started.desc())
        .limit(settings.RECENT_SESSIONS_LIMIT)
        .all()
    )

    return AnalyticsSummary(
        subject_analytics=[UserAnalyticsRead.model_validate(r) for r in rows],
        pass_probability=pass_probability_from((r.subject, r.mastery_level) for r in rows),
        total_questions=total_questions,
        average_score=average_score,
        test_sessions=[TestSessionRead.from_model(s) for s in recent],
    )


# ── Chat history ──────────────────────────────────────────────────────────────


@router.get("/{user_id}/chat-history", response_model=list[ChatMessageRead])
def get_chat_history(
    limit: int = Query(settings.CHAT_HISTORY_LIMIT, ge=1, le=500),
    user: User = Depends(get_user_or_404),
    db: Session = Depends(get_db),
):
    """Most recent turns first."""
    return (
        db.query(ChatMessage)
        .filter(ChatMessage.user_id == user.id)
        .order_by(ChatMessage.created_at.desc())
        .limit(limit)
        .all()
    )


@router.delete("/{user_id}/chat-history", status_code=status.HTTP_204_NO_CONTENT)
def clear_chat_history(user: User = Depends(get_user_or_404), db: Session = Depends(get_db)):
    deleted = (
        db.query(ChatMessage)
        .filter(ChatMessage.user_id == user.id)
        .delete(synchronize_session=False)
    )
    db.commit()
    logger.info("Cleared %d chat messages for user %s", deleted, user.id)
    return None


# ── Recommendations ───────────────────────────────────────────────────────────


@router.get("/{user_id}/recommendations", response_model=list[RecommendationRead])
def list_recommendations(user: User = Depends(get_user_or_404), db: Session = Depends(get_db)):
    return recommendation_service.list_open(db, user.id)


@router.post(
    "/{user_id}/recommendations",
    response_model=RecommendationRead,
    status_code=status.HTTP_201_CREATED,
)
def create_recommendation(
    body: RecommendationCreate,
    user: User = Depends(get_user_or_404),
    db: Session = Depends(get_db),
):
    return recommendation_service.create(
        db, user.id, body.type, body.subject, body.priority, body.recommendation
    )


@router.post(
    "/{user_id}/recommendations/generate",
    response_model=list[RecommendationRead],
    status_code=status.HTTP_201_CREATED,
)
def generate_recommendations(user: User = Depends(get_user_or_404), db: Session = Depends(get_db)):
    """Weak-area suggestions for every subject below the mastery threshold."""
    return recommendation_service.generate_weak_area(db, user.id)
