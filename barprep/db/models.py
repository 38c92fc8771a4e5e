"""SQLAlchemy ORM models for the bar‑prep platform.

Tables
------
- users                 – learner profiles
- test_sessions         – one sitting of a diagnostic / exam‑day / practice run
- question_responses    – graded answers within a session
- user_analytics        – per‑user per‑subject running tallies
- chat_messages         – tutoring exchanges
- study_recommendations – generated study suggestions
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from barprep.db.session import Base


# ── helpers ───────────────────────────────────────────────────────────────────


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _uuid() -> uuid.UUID:
    return uuid.uuid4()


# ── Enums (stored as VARCHAR via SQLAlchemy Enum) ─────────────────────────────


class SessionStatusEnum(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class QuestionTypeEnum(str, enum.Enum):
    MULTIPLE_CHOICE = "multiple-choice"
    SHORT_ANSWER = "short-answer"
    ESSAY = "essay"


class RecommendationTypeEnum(str, enum.Enum):
    WEAK_AREA = "weak-area"
    REVIEW = "review"
    PRACTICE = "practice"


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


# ── Users ─────────────────────────────────────────────────────────────────────


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=_uuid
    )
    username: Mapped[str] = mapped_column(String(150), unique=True, index=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    # relationships
    test_sessions: Mapped[list["TestSession"]] = relationship(back_populates="user")
    analytics: Mapped[list["UserAnalytics"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )
    chat_messages: Mapped[list["ChatMessage"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )
    recommendations: Mapped[list["StudyRecommendation"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )


# ── Test sessions ─────────────────────────────────────────────────────────────


class TestSession(Base):
    """One sitting of an exam or practice run."""

    __tablename__ = "test_sessions"
    __test__ = False  # keep pytest from collecting the model as a test class

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=_uuid
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), index=True
    )
    # diagnostic, diagnostic-dev, full-exam, day1, day2, day3, practice, diagnostic-<type>
    test_type: Mapped[str] = mapped_column(String(50))
    llm_provider: Mapped[str] = mapped_column(String(30))
    status: Mapped[SessionStatusEnum] = mapped_column(
        Enum(
            SessionStatusEnum,
            name="session_status_enum",
            values_callable=_enum_values,
        ),
        default=SessionStatusEnum.ACTIVE,
    )
    total_questions: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_question_index: Mapped[int] = mapped_column(Integer, default=0)
    score: Mapped[float | None] = mapped_column(Float, nullable=True)
    pass_probability: Mapped[float | None] = mapped_column(Float, nullable=True)
    time_started: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, index=True
    )
    time_completed: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    # ``metadata`` is reserved on declarative classes
    session_metadata: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata", JSON, nullable=True
    )

    user: Mapped["User"] = relationship(back_populates="test_sessions")
    responses: Mapped[list["QuestionResponse"]] = relationship(
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="QuestionResponse.question_number",
    )


class QuestionResponse(Base):
    """A graded answer to one question within a session."""

    __tablename__ = "question_responses"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=_uuid
    )
    session_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("test_sessions.id"), index=True
    )
    question_number: Mapped[int] = mapped_column(Integer)
    question_type: Mapped[QuestionTypeEnum] = mapped_column(
        Enum(
            QuestionTypeEnum,
            name="question_type_enum",
            values_callable=_enum_values,
        )
    )
    subject: Mapped[str | None] = mapped_column(String(100), nullable=True)
    question_text: Mapped[str] = mapped_column(Text)
    options: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    user_answer: Mapped[str | None] = mapped_column(Text, nullable=True)
    correct_answer: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_correct: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    explanation: Mapped[str | None] = mapped_column(Text, nullable=True)
    ai_grading: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    time_spent: Mapped[int | None] = mapped_column(Integer, nullable=True)  # seconds
    llm_provider: Mapped[str] = mapped_column(String(30))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )

    session: Mapped["TestSession"] = relationship(back_populates="responses")

    __table_args__ = (
        UniqueConstraint(
            "session_id", "question_number", name="uq_session_question_number"
        ),
    )


# ── Analytics (per‑user, per‑subject running metrics) ─────────────────────────


class UserAnalytics(Base):
    __tablename__ = "user_analytics"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=_uuid
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id")
    )
    subject: Mapped[str] = mapped_column(String(100))
    total_questions: Mapped[int] = mapped_column(Integer, default=0)
    correct_answers: Mapped[int] = mapped_column(Integer, default=0)
    average_score: Mapped[float] = mapped_column(Float, default=0.0)
    mastery_level: Mapped[float] = mapped_column(Float, default=0.0)  # 0‑100
    last_practiced: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    user: Mapped["User"] = relationship(back_populates="analytics")

    __table_args__ = (
        UniqueConstraint("user_id", "subject", name="uq_user_subject_analytics"),
    )


# ── Chat messages ─────────────────────────────────────────────────────────────


class ChatMessage(Base):
    """One tutoring exchange: the learner's prompt and the provider's reply."""

    __tablename__ = "chat_messages"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=_uuid
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), index=True
    )
    message: Mapped[str] = mapped_column(Text)
    response: Mapped[str] = mapped_column(Text)
    llm_provider: Mapped[str] = mapped_column(String(30))
    context: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )

    user: Mapped["User"] = relationship(back_populates="chat_messages")


# ── Study recommendations ─────────────────────────────────────────────────────


class StudyRecommendation(Base):
    __tablename__ = "study_recommendations"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=_uuid
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), index=True
    )
    type: Mapped[RecommendationTypeEnum] = mapped_column(
        Enum(
            RecommendationTypeEnum,
            name="recommendation_type_enum",
            values_callable=_enum_values,
        )
    )
    subject: Mapped[str] = mapped_column(String(100))
    priority: Mapped[int] = mapped_column(Integer)  # 1‑5, 5 being highest
    recommendation: Mapped[str] = mapped_column(Text)
    completed: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )

    user: Mapped["User"] = relationship(back_populates="recommendations")
