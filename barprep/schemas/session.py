"""Test session and question response schemas."""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field, field_validator

from barprep.db.models import QuestionTypeEnum, SessionStatusEnum
from barprep.schemas.common import CamelModel
from barprep.schemas.question import AIGrading, Difficulty, GeneratedQuestionRead, LLMProvider


# ── Sessions ──────────────────────────────────────────────────────────────────


class TestSessionCreate(CamelModel):
    """POST /api/test-sessions"""

    user_id: uuid.UUID
    test_type: str = Field(min_length=1, max_length=50)
    llm_provider: LLMProvider
    total_questions: int | None = Field(default=None, ge=1)
    session_metadata: dict[str, Any] | None = Field(default=None, alias="metadata")


class TestSessionUpdate(CamelModel):
    """PATCH /api/test-sessions/{id} — every field optional."""

    status: SessionStatusEnum | None = None
    total_questions: int | None = Field(default=None, ge=1)
    current_question_index: int | None = Field(default=None, ge=0)
    score: float | None = None
    pass_probability: float | None = None
    time_completed: datetime | None = None
    session_metadata: dict[str, Any] | None = Field(default=None, alias="metadata")

    @field_validator("status", "current_question_index", mode="before")
    @classmethod
    def _not_null(cls, value: Any) -> Any:
        # may be omitted, but the columns are NOT NULL
        if value is None:
            raise ValueError("may be omitted but not set to null")
        return value


class TestSessionRead(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    test_type: str
    llm_provider: str
    status: SessionStatusEnum
    total_questions: int | None = None
    current_question_index: int = 0
    score: float | None = None
    pass_probability: float | None = None
    time_started: datetime
    time_completed: datetime | None = None
    session_metadata: dict[str, Any] | None = Field(default=None, alias="metadata")

    @classmethod
    def from_model(cls, session: Any) -> "TestSessionRead":
        # ORM ``.metadata`` is the declarative MetaData, so the column is
        # mapped as ``session_metadata`` and copied across by name
        return cls(
            id=session.id,
            user_id=session.user_id,
            test_type=session.test_type,
            llm_provider=session.llm_provider,
            status=session.status,
            total_questions=session.total_questions,
            current_question_index=session.current_question_index or 0,
            score=session.score,
            pass_probability=session.pass_probability,
            time_started=session.time_started,
            time_completed=session.time_completed,
            session_metadata=session.session_metadata,
        )


class NextQuestionRequest(CamelModel):
    """POST /api/test-sessions/{id}/next-question"""

    question_number: int = Field(ge=1)
    subject: str | None = None
    difficulty: Difficulty = Difficulty.MEDIUM


# ── Responses ─────────────────────────────────────────────────────────────────


class AnswerSubmit(CamelModel):
    """One answered question. Shared by single and batch submission."""

    question_number: int = Field(ge=1)
    question_type: QuestionTypeEnum
    subject: str | None = None
    question_text: str = Field(min_length=1)
    options: list[str] | None = None
    user_answer: str
    correct_answer: str | None = None
    time_spent: int | None = Field(default=None, ge=0)


class QuestionResponseSubmit(AnswerSubmit):
    """POST /api/question-responses"""

    session_id: uuid.UUID
    llm_provider: LLMProvider


class BatchSubmit(CamelModel):
    """POST /api/test-sessions/{id}/responses — deferred diagnostic grading."""

    llm_provider: LLMProvider | None = None  # defaults to the session's provider
    answers: list[AnswerSubmit] = Field(min_length=1)


class QuestionResponseRead(CamelModel):
    id: uuid.UUID
    session_id: uuid.UUID
    question_number: int
    question_type: QuestionTypeEnum
    subject: str | None = None
    question_text: str
    options: list[str] | None = None
    user_answer: str | None = None
    correct_answer: str | None = None
    is_correct: bool | None = None
    explanation: str | None = None
    ai_grading: dict[str, Any] | None = None
    time_spent: int | None = None
    llm_provider: str
    created_at: datetime


class GradedResponseRead(QuestionResponseRead):
    """A freshly graded response with the verdict that produced it."""

    grading: AIGrading
    graded_by: str

    @classmethod
    def from_graded(cls, response: Any, grading: AIGrading, graded_by: str) -> "GradedResponseRead":
        base = QuestionResponseRead.model_validate(response)
        return cls(**base.model_dump(), grading=grading, graded_by=graded_by)


class BatchSubmitRead(CamelModel):
    session: TestSessionRead
    responses: list[GradedResponseRead]


# ── Developer diagnostics ─────────────────────────────────────────────────────


class DiagnosticType(str, Enum):
    SINGLE_MC = "single-mc"
    SINGLE_SA = "single-sa"
    SINGLE_ESSAY = "single-essay"
    THREE_MIXED = "three-mixed"
    FULL_DIAGNOSTIC = "full-diagnostic"


class DiagnosticTestRequest(CamelModel):
    """POST /api/diagnostic-tests"""

    type: DiagnosticType
    provider: LLMProvider
    user_id: uuid.UUID


class DiagnosticTestRead(CamelModel):
    session: TestSessionRead
    questions: list[GeneratedQuestionRead]
