"""Tutor chat.

Routes:
  POST /api/chat  → one tutoring turn, persisted

History lives under ``/api/users/{id}/chat-history`` (see :mod:`barprep.api.users`).
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from barprep.api.deps import provider_call
from barprep.db.models import ChatMessage
from barprep.db.session import get_db
from barprep.providers import AIService, get_ai_service
from barprep.schemas import ChatMessageRead, ChatRequest, ChatTurnRead
from barprep.services.sessions import require_user

logger = logging.getLogger(__name__)
router = APIRouter()

DEFAULT_CONTEXT = "bar-prep"


@router.post("", response_model=ChatTurnRead, status_code=status.HTTP_201_CREATED)
def chat(
    body: ChatRequest,
    db: Session = Depends(get_db),
    ai: AIService = Depends(get_ai_service),
):
    require_user(db, body.user_id)
    context = body.context or DEFAULT_CONTEXT
    provider = body.provider.value

    with provider_call("get chat response"):
        reply = ai.get_chat_response(provider, body.message, context)

    message = ChatMessage(
        user_id=body.user_id,
        message=body.message,
        response=reply,
        llm_provider=provider,
        context=context,
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    logger.info("Chat turn %s for user %s via %s", message.id, body.user_id, provider)

    base = ChatMessageRead.model_validate(message)
    return ChatTurnRead(**base.model_dump(), responded_by=provider)
