"""Tutor chat schemas."""

import uuid
from datetime import datetime

from pydantic import Field

from barprep.schemas.common import CamelModel
from barprep.schemas.question import LLMProvider


class ChatRequest(CamelModel):
    """POST /api/chat"""

    user_id: uuid.UUID
    message: str = Field(min_length=1)
    provider: LLMProvider
    context: str | None = None  # bar-prep, question-help, general


class ChatMessageRead(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    message: str
    response: str
    llm_provider: str
    context: str | None = None
    created_at: datetime


class ChatTurnRead(ChatMessageRead):
    responded_by: str
