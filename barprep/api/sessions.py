"""Test session routes.

Routes:
  POST  /api/test-sessions                      → open a session
  GET   /api/test-sessions/{id}                 → fetch a session
  PATCH /api/test-sessions/{id}                 → partial update
  POST  /api/test-sessions/{id}/next-question   → generate the scheduled question
  GET   /api/test-sessions/{id}/responses       → answered questions, in order
  POST  /api/test-sessions/{id}/responses       → deferred (batch) grading
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from barprep.api.deps import get_session_or_404, provider_call
from barprep.db.models import TestSession
from barprep.db.session import get_db
from barprep.providers import AIService, get_ai_service
from barprep.schemas import (
    BatchSubmit,
    BatchSubmitRead,
    GeneratedQuestionRead,
    GradedResponseRead,
    NextQuestionRequest,
    QuestionResponseRead,
    SuccessResponse,
    TestSessionCreate,
    TestSessionRead,
    TestSessionUpdate,
)
from barprep.services import sessions as session_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", response_model=TestSessionRead, status_code=status.HTTP_201_CREATED)
def create_test_session(body: TestSessionCreate, db: Session = Depends(get_db)):
    session = session_service.create_session(
        db,
        body.user_id,
        body.test_type,
        body.llm_provider.value,
        total_questions=body.total_questions,
        metadata=body.session_metadata,
    )
    return TestSessionRead.from_model(session)


@router.get("/{session_id}", response_model=TestSessionRead)
def get_test_session(session: TestSession = Depends(get_session_or_404)):
    return TestSessionRead.from_model(session)


@router.patch("/{session_id}", response_model=SuccessResponse)
def update_test_session(
    body: TestSessionUpdate,
    session: TestSession = Depends(get_session_or_404),
    db: Session = Depends(get_db),
):
    """Partial update; only the fields present in the body are touched."""
    session_service.update_session(db, session, body.model_dump(exclude_unset=True))
    return SuccessResponse()


@router.post("/{session_id}/next-question", response_model=GeneratedQuestionRead)
def next_question(
    body: NextQuestionRequest,
    session: TestSession = Depends(get_session_or_404),
    ai: AIService = Depends(get_ai_service),
):
    """Generate the question the exam format puts at ``questionNumber``."""
    with provider_call("generate question"):
        question = session_service.next_question(
            ai, session, body.question_number, body.subject, body.difficulty
        )
    return GeneratedQuestionRead(
        **question.model_dump(),
        question_number=body.question_number,
        generated_by=session.llm_provider,
    )


@router.get("/{session_id}/responses", response_model=list[QuestionResponseRead])
def list_session_responses(
    session: TestSession = Depends(get_session_or_404),
    db: Session = Depends(get_db),
):
    return session_service.list_responses(db, session.id)


@router.post("/{session_id}/responses", response_model=BatchSubmitRead)
def submit_session_responses(
    body: BatchSubmit,
    session: TestSession = Depends(get_session_or_404),
    db: Session = Depends(get_db),
    ai: AIService = Depends(get_ai_service),
):
    """Grade every remaining answer of the session in one go."""
    provider = body.llm_provider.value if body.llm_provider else session.llm_provider
    with provider_call("grade responses"):
        graded = session_service.submit_batch(db, ai, session, body.answers, provider)
    db.refresh(session)
    return BatchSubmitRead(
        session=TestSessionRead.from_model(session),
        responses=[
            GradedResponseRead.from_graded(response, grading, provider)
            for response, grading in graded
        ],
    )
