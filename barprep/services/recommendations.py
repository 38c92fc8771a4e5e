"""Study recommendations: listing, completion and weak-area generation."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy.orm import Session

from barprep.config import settings
from barprep.core.exceptions import NotFoundError
from barprep.db.models import RecommendationTypeEnum, StudyRecommendation
from barprep.services.analytics import get_user_analytics, subject_weight

logger = logging.getLogger(__name__)


def list_open(db: Session, user_id: uuid.UUID) -> list[StudyRecommendation]:
    return (
        db.query(StudyRecommendation)
        .filter(
            StudyRecommendation.user_id == user_id,
            StudyRecommendation.completed.is_(False),
        )
        .order_by(StudyRecommendation.priority.desc(), StudyRecommendation.created_at.desc())
        .all()
    )


def create(
    db: Session,
    user_id: uuid.UUID,
    type: RecommendationTypeEnum,
    subject: str,
    priority: int,
    text: str,
) -> StudyRecommendation:
    rec = StudyRecommendation(
        user_id=user_id,
        type=type,
        subject=subject,
        priority=priority,
        recommendation=text,
    )
    db.add(rec)
    db.commit()
    db.refresh(rec)
    return rec


def complete(db: Session, recommendation_id: uuid.UUID) -> StudyRecommendation:
    rec = (
        db.query(StudyRecommendation)
        .filter(StudyRecommendation.id == recommendation_id)
        .first()
    )
    if rec is None:
        raise NotFoundError("Recommendation", recommendation_id)
    rec.completed = True
    db.commit()
    db.refresh(rec)
    return rec


def weak_area_priority(subject: str, mastery: float, threshold: float) -> int:
    """1–5: heavier subjects and bigger deficits come first."""
    deficit = max(0.0, threshold - mastery)
    weight = subject_weight(subject)
    weight_bonus = 2 if weight >= 0.15 else 1 if weight >= 0.10 else 0
    return max(1, min(5, 1 + round(deficit / threshold * 2) + weight_bonus))


def generate_weak_area(db: Session, user_id: uuid.UUID) -> list[StudyRecommendation]:
    """Create a weak-area recommendation for every subject below the threshold.

    Subjects that already carry an open weak-area recommendation are skipped,
    so calling this repeatedly does not pile up duplicates.
    """
    threshold = settings.WEAK_TOPIC_THRESHOLD
    already_open = {
        rec.subject
        for rec in list_open(db, user_id)
        if rec.type is RecommendationTypeEnum.WEAK_AREA
    }

    created: list[StudyRecommendation] = []
    for row in get_user_analytics(db, user_id):
        if row.mastery_level >= threshold or row.subject in already_open:
            continue
        rec = StudyRecommendation(
            user_id=user_id,
            type=RecommendationTypeEnum.WEAK_AREA,
            subject=row.subject,
            priority=weak_area_priority(row.subject, row.mastery_level, threshold),
            recommendation=(
                f"Practice more {row.subject} questions: your mastery is "
                f"{row.mastery_level:.0f}%, below the {threshold:.0f}% target."
            ),
        )
        db.add(rec)
        created.append(rec)

    if created:
        db.commit()
        for rec in created:
            db.refresh(rec)
        logger.info(
            "Generated %d weak-area recommendations for user %s", len(created), user_id
        )
    return created
