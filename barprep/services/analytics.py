"""Per‑subject running tallies and the pass‑probability heuristic.

``record_outcome`` is the only writer of ``user_analytics``. Counters are
incremented together inside one UPDATE statement, so concurrent graded
answers for the same (user, subject) cannot lose an increment, and
``correct_answers <= total_questions`` holds at every commit.

Mastery is the raw running average capped at 100 — not a decayed or
recency‑weighted estimate.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy import Float, case, cast, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from barprep.db.models import UserAnalytics

logger = logging.getLogger(__name__)

# Weight of each subject in the pass‑probability estimate
SUBJECT_WEIGHTS: dict[str, float] = {
    "constitutional-law": 0.15,
    "contracts": 0.15,
    "torts": 0.15,
    "criminal-law": 0.15,
    "evidence": 0.10,
    "real-property": 0.10,
    "civil-procedure": 0.10,
    "family-law": 0.05,
    "wills-trusts": 0.05,
}
DEFAULT_SUBJECT_WEIGHT = 0.05

# 50% weighted mastery maps to 0, 100% maps to 100
PASS_FLOOR = 50.0
PASS_SCALE = 2.0


def subject_weight(subject: str) -> float:
    return SUBJECT_WEIGHTS.get(subject, DEFAULT_SUBJECT_WEIGHT)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── recordOutcome ─────────────────────────────────────────────────────────────


def _increment(
    db: Session, user_id: uuid.UUID, subject: str, correct: int, now: datetime
) -> bool:
    """Atomically bump an existing row. Returns False when there is none."""
    new_total = UserAnalytics.total_questions + 1
    new_correct = UserAnalytics.correct_answers + correct
    # same operation order as correct / total * 100 in Python
    average = cast(new_correct, Float) / new_total * 100
    stmt = (
        update(UserAnalytics)
        .where(UserAnalytics.user_id == user_id, UserAnalytics.subject == subject)
        .values(
            total_questions=new_total,
            correct_answers=new_correct,
            average_score=average,
            mastery_level=case((average > 100, 100.0), else_=average),
            last_practiced=now,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    return db.execute(stmt).rowcount > 0


def record_outcome(db: Session, user_id: uuid.UUID, subject: str, is_correct: bool) -> None:
    """Fold one graded answer into the (user, subject) tally and commit."""
    correct = 1 if is_correct else 0
    now = _utcnow()

    if _increment(db, user_id, subject, correct, now):
        db.commit()
        return

    average = correct / 1 * 100
    db.add(
        UserAnalytics(
            user_id=user_id,
            subject=subject,
            total_questions=1,
            correct_answers=correct,
            average_score=average,
            mastery_level=min(100.0, average),
            last_practiced=now,
            updated_at=now,
        )
    )
    try:
        db.commit()
    except IntegrityError:
        # another request created the row between our UPDATE and INSERT
        db.rollback()
        logger.info("Analytics row for user %s / %s created concurrently; incrementing", user_id, subject)
        _increment(db, user_id, subject, correct, now)
        db.commit()
    else:
        logger.info("Started analytics for user %s in %s", user_id, subject)


# ── computePassProbability ────────────────────────────────────────────────────


def pass_probability_from(masteries: Iterable[tuple[str, float]]) -> float:
    """Weighted mastery rescaled to 0–100. ``masteries`` is (subject, mastery) pairs."""
    weighted_sum = 0.0
    total_weight = 0.0
    for subject, mastery in masteries:
        weight = subject_weight(subject)
        weighted_sum += (mastery or 0.0) * weight
        total_weight += weight

    if total_weight == 0:
        return 0.0
    weighted_mastery = weighted_sum / total_weight
    return min(100.0, max(0.0, (weighted_mastery - PASS_FLOOR) * PASS_SCALE))


def get_user_analytics(db: Session, user_id: uuid.UUID) -> list[UserAnalytics]:
    return (
        db.query(UserAnalytics)
        .filter(UserAnalytics.user_id == user_id)
        .order_by(UserAnalytics.subject)
        .all()
    )


def compute_pass_probability(db: Session, user_id: uuid.UUID) -> float:
    rows = (
        db.query(UserAnalytics.subject, UserAnalytics.mastery_level)
        .filter(UserAnalytics.user_id == user_id)
        .all()
    )
    return pass_probability_from((r.subject, r.mastery_level) for r in rows)
