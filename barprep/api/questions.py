"""Stand-alone question generation and developer diagnostics.

Routes:
  POST /api/generate-question  → one question from the chosen provider
  POST /api/diagnostic-tests   → open a short fixed-shape test with its questions
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from barprep.api.deps import provider_call
from barprep.db.session import get_db
from barprep.providers import AIService, get_ai_service
from barprep.schemas import (
    DiagnosticTestRead,
    DiagnosticTestRequest,
    GeneratedQuestionRead,
    GenerateQuestionRequest,
    TestSessionRead,
)
from barprep.services import sessions as session_service

router = APIRouter()


@router.post("/generate-question", response_model=GeneratedQuestionRead)
def generate_question(
    body: GenerateQuestionRequest,
    ai: AIService = Depends(get_ai_service),
):
    with provider_call("generate question"):
        question = ai.generate_question(
            body.provider.value, body.type, body.subject, body.difficulty
        )
    return GeneratedQuestionRead(**question.model_dump(), generated_by=body.provider)


@router.post(
    "/diagnostic-tests",
    response_model=DiagnosticTestRead,
    status_code=status.HTTP_201_CREATED,
)
def create_diagnostic_test(
    body: DiagnosticTestRequest,
    db: Session = Depends(get_db),
    ai: AIService = Depends(get_ai_service),
):
    with provider_call("create diagnostic test"):
        session, questions = session_service.create_diagnostic_test(
            db, ai, body.user_id, body.type, body.provider.value
        )
    return DiagnosticTestRead(
        session=TestSessionRead.from_model(session),
        questions=[
            GeneratedQuestionRead(
                **question.model_dump(), question_number=number, generated_by=body.provider
            )
            for number, question in enumerate(questions, start=1)
        ],
    )
