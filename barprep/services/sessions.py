"""Session / response orchestration.

Lifecycle of a test session::

    create ─▶ next question (generate) ─▶ submit answer (grade)
                 ▲                             │
                 └─────────────────────────────┤
                                               ▼
                            record analytics ─▶ complete when all answered

Sessions go ``active → completed`` here; ``abandoned`` is only ever set by a
client PATCH. Diagnostic runs may defer grading and submit every answer in one
batch at the end (:func:`submit_batch`).

Nothing is retried and nothing is rolled back across collections: if grading
fails, the session simply has one response fewer and the client may resubmit.
"""

from __future__ import annotations

import logging
import random
import uuid
from datetime import datetime, timezone
from typing import Any, Sequence

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from barprep.config import settings
from barprep.core.exceptions import NotFoundError, SubmissionRejected
from barprep.db.models import (
    QuestionResponse,
    QuestionTypeEnum,
    SessionStatusEnum,
    TestSession,
    User,
)
from barprep.providers import AIService
from barprep.schemas.question import AIGrading, AIQuestion, Difficulty
from barprep.schemas.session import AnswerSubmit, DiagnosticType
from barprep.services.analytics import compute_pass_probability, record_outcome
from barprep.services.exam_format import BAR_SUBJECTS, effective_total, question_kind_for

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Lookups ───────────────────────────────────────────────────────────────────


def require_user(db: Session, user_id: uuid.UUID) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise NotFoundError("User", user_id)
    return user


def get_session(db: Session, session_id: uuid.UUID) -> TestSession:
    session = db.query(TestSession).filter(TestSession.id == session_id).first()
    if session is None:
        raise NotFoundError("Test session", session_id)
    return session


def session_total(session: TestSession) -> int:
    return effective_total(session.test_type, session.total_questions)


def list_responses(db: Session, session_id: uuid.UUID) -> list[QuestionResponse]:
    return (
        db.query(QuestionResponse)
        .filter(QuestionResponse.session_id == session_id)
        .order_by(QuestionResponse.question_number)
        .all()
    )


def _answered_numbers(db: Session, session_id: uuid.UUID) -> set[int]:
    rows = (
        db.query(QuestionResponse.question_number)
        .filter(QuestionResponse.session_id == session_id)
        .all()
    )
    return {r.question_number for r in rows}


# ── create / update ───────────────────────────────────────────────────────────


def create_session(
    db: Session,
    user_id: uuid.UUID,
    test_type: str,
    llm_provider: str,
    total_questions: int | None = None,
    metadata: dict[str, Any] | None = None,
) -> TestSession:
    require_user(db, user_id)
    session = TestSession(
        user_id=user_id,
        test_type=test_type,
        llm_provider=llm_provider,
        total_questions=total_questions,
        current_question_index=0,
        status=SessionStatusEnum.ACTIVE,
        session_metadata=metadata,
    )
    db.add(session)
    db.commit()
    db.refresh(session)
    logger.info(
        "Created %s session %s for user %s via %s (%s questions)",
        test_type, session.id, user_id, llm_provider, total_questions or "default",
    )
    return session


def update_session(db: Session, session: TestSession, changes: dict[str, Any]) -> TestSession:
    """Apply a partial update; completing a session stamps its completion time.

    A new size may not drop below the highest question already answered. A size
    that the stored answers already reach completes the session right away.
    """
    if "total_questions" in changes:
        new_total = effective_total(session.test_type, changes["total_questions"])
        highest = max(_answered_numbers(db, session.id), default=0)
        if new_total < highest:
            raise SubmissionRejected(
                f"Session already has answers up to question {highest}; "
                f"it cannot shrink to {new_total} questions"
            )

    for field, value in changes.items():
        setattr(session, field, value)
    if session.status is SessionStatusEnum.COMPLETED and session.time_completed is None:
        session.time_completed = _utcnow()
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    _complete_if_finished(db, session)
    db.refresh(session)
    return session


# ── next question ─────────────────────────────────────────────────────────────


def _require_active(session: TestSession) -> None:
    if session.status is not SessionStatusEnum.ACTIVE:
        raise SubmissionRejected(
            f"Test session is {session.status.value}, not active", status_code=409
        )


def _require_within_total(session: TestSession, question_number: int) -> None:
    total = session_total(session)
    if question_number > total:
        raise SubmissionRejected(
            f"Question {question_number} is beyond this session's {total} questions"
        )


def next_question(
    ai: AIService,
    session: TestSession,
    question_number: int,
    subject: str | None = None,
    difficulty: Difficulty = Difficulty.MEDIUM,
) -> AIQuestion:
    """Generate the question scheduled at *question_number* for this session."""
    _require_active(session)
    _require_within_total(session, question_number)

    kind = question_kind_for(session.test_type, question_number, session.total_questions)
    return ai.generate_question(
        session.llm_provider, kind, subject or random.choice(BAR_SUBJECTS), difficulty
    )


# ── submit ────────────────────────────────────────────────────────────────────


def _complete_if_finished(db: Session, session: TestSession) -> None:
    if session.status is not SessionStatusEnum.ACTIVE:
        return
    answered, correct = (
        db.query(
            func.count(QuestionResponse.id),
            func.count(QuestionResponse.id).filter(QuestionResponse.is_correct.is_(True)),
        )
        .filter(QuestionResponse.session_id == session.id)
        .one()
    )
    if answered < session_total(session):
        return

    session.status = SessionStatusEnum.COMPLETED
    session.time_completed = _utcnow()
    session.score = round(correct / answered * 100, 2)
    session.pass_probability = compute_pass_probability(db, session.user_id)
    db.commit()
    logger.info(
        "Session %s completed: %d/%d correct, pass probability %.1f",
        session.id, correct, answered, session.pass_probability,
    )


def submit_answer(
    db: Session,
    ai: AIService,
    session: TestSession,
    answer: AnswerSubmit,
    llm_provider: str,
) -> tuple[QuestionResponse, AIGrading]:
    """Grade one answer, store it, update analytics, maybe complete the session."""
    _require_active(session)
    _require_within_total(session, answer.question_number)
    if answer.question_number in _answered_numbers(db, session.id):
        raise SubmissionRejected(
            f"Question {answer.question_number} already answered in this session",
            status_code=409,
        )

    grading = ai.grade_response(
        llm_provider,
        answer.question_text,
        answer.user_answer,
        answer.correct_answer,
        answer.question_type,
    )
    is_correct = grading.score >= settings.PASSING_SCORE

    response = QuestionResponse(
        session_id=session.id,
        question_number=answer.question_number,
        question_type=QuestionTypeEnum(answer.question_type),
        subject=answer.subject,
        question_text=answer.question_text,
        options=answer.options,
        user_answer=answer.user_answer,
        correct_answer=answer.correct_answer or grading.correct_answer,
        is_correct=is_correct,
        explanation=grading.feedback,
        ai_grading=grading.model_dump(mode="json", by_alias=True, exclude_none=True),
        time_spent=answer.time_spent,
        llm_provider=llm_provider,
    )
    db.add(response)
    session.current_question_index = max(
        session.current_question_index or 0, answer.question_number
    )
    try:
        db.commit()
    except IntegrityError as exc:
        # lost a race with an identical submission
        db.rollback()
        raise SubmissionRejected(
            f"Question {answer.question_number} already answered in this session",
            status_code=409,
        ) from exc
    db.refresh(response)

    if answer.subject:
        record_outcome(db, session.user_id, answer.subject, is_correct)

    _complete_if_finished(db, session)
    return response, grading


def submit_batch(
    db: Session,
    ai: AIService,
    session: TestSession,
    answers: Sequence[AnswerSubmit],
    llm_provider: str,
) -> list[tuple[QuestionResponse, AIGrading]]:
    """Deferred diagnostic grading: all remaining answers at once.

    The batch must cover exactly the questions not yet answered. Answers are
    graded one after another; the first failure stops the batch and the
    answers graded before it stay stored.
    """
    _require_active(session)
    numbers = [a.question_number for a in answers]
    if len(set(numbers)) != len(numbers):
        raise SubmissionRejected("Batch contains the same question number twice")

    answered = _answered_numbers(db, session.id)
    if answered.intersection(numbers):
        raise SubmissionRejected(
            f"Questions {sorted(answered.intersection(numbers))} already answered",
            status_code=409,
        )

    remaining = set(range(1, session_total(session) + 1)) - answered
    if set(numbers) != remaining:
        raise SubmissionRejected(
            f"Batch must answer exactly the {len(remaining)} remaining questions"
        )

    logger.info("Grading batch of %d answers for session %s", len(answers), session.id)
    return [
        submit_answer(db, ai, session, answer, llm_provider)
        for answer in sorted(answers, key=lambda a: a.question_number)
    ]


# ── developer diagnostics ─────────────────────────────────────────────────────

_MC = QuestionTypeEnum.MULTIPLE_CHOICE
_SA = QuestionTypeEnum.SHORT_ANSWER
_ESSAY = QuestionTypeEnum.ESSAY

DIAGNOSTIC_PLANS: dict[DiagnosticType, list[tuple[QuestionTypeEnum, str]]] = {
    DiagnosticType.SINGLE_MC: [(_MC, "constitutional-law")],
    DiagnosticType.SINGLE_SA: [(_SA, "contracts")],
    DiagnosticType.SINGLE_ESSAY: [(_ESSAY, "torts")],
    DiagnosticType.THREE_MIXED: [
        (_MC, "constitutional-law"),
        (_SA, "contracts"),
        (_ESSAY, "torts"),
    ],
}


def create_diagnostic_test(
    db: Session,
    ai: AIService,
    user_id: uuid.UUID,
    diagnostic_type: DiagnosticType,
    llm_provider: str,
) -> tuple[TestSession, list[AIQuestion]]:
    """Bootstrap a short fixed-shape test: questions first, then the session.

    ``full-diagnostic`` opens a standard 20-question diagnostic and returns
    only its first question; the rest come from :func:`next_question`.
    """
    require_user(db, user_id)

    if diagnostic_type is DiagnosticType.FULL_DIAGNOSTIC:
        first_kind = question_kind_for("diagnostic", 1, 20)
        questions = [
            ai.generate_question(llm_provider, first_kind, random.choice(BAR_SUBJECTS))
        ]
        session = create_session(
            db,
            user_id,
            "diagnostic",
            llm_provider,
            total_questions=20,
            metadata={"diagnosticType": diagnostic_type.value},
        )
        return session, questions

    questions = [
        ai.generate_question(llm_provider, kind, subject)
        for kind, subject in DIAGNOSTIC_PLANS[diagnostic_type]
    ]
    session = create_session(
        db,
        user_id,
        f"diagnostic-{diagnostic_type.value}",
        llm_provider,
        total_questions=len(questions),
        metadata={"diagnosticType": diagnostic_type.value},
    )
    return session, questions
