"""Single-answer submission.

Routes:
  POST /api/question-responses  → grade, store and fold into analytics
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from barprep.api.deps import provider_call
from barprep.db.session import get_db
from barprep.providers import AIService, get_ai_service
from barprep.schemas import GradedResponseRead, QuestionResponseSubmit
from barprep.services import sessions as session_service

router = APIRouter()


@router.post("", response_model=GradedResponseRead, status_code=status.HTTP_201_CREATED)
def submit_question_response(
    body: QuestionResponseSubmit,
    db: Session = Depends(get_db),
    ai: AIService = Depends(get_ai_service),
):
    """Grade one answer; the session completes itself after its last question."""
    session = session_service.get_session(db, body.session_id)
    provider = body.llm_provider.value
    with provider_call("grade response"):
        response, grading = session_service.submit_answer(db, ai, session, body, provider)
    return GradedResponseRead.from_graded(response, grading, provider)
