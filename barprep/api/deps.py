"""FastAPI dependencies and helpers shared across routes."""

import logging
import uuid
from contextlib import contextmanager
from typing import Iterator

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from barprep.core.exceptions import ProviderError
from barprep.db.models import TestSession, User
from barprep.db.session import get_db

logger = logging.getLogger(__name__)


def get_user_or_404(user_id: uuid.UUID, db: Session = Depends(get_db)) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def get_session_or_404(session_id: uuid.UUID, db: Session = Depends(get_db)) -> TestSession:
    session = db.query(TestSession).filter(TestSession.id == session_id).first()
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Test session not found"
        )
    return session


@contextmanager
def provider_call(action: str) -> Iterator[None]:
    """Turn a provider failure into ``500 {"detail": "Failed to <action>"}``."""
    try:
        yield
    except ProviderError as exc:
        logger.error("provider failure [%s] while trying to %s: %s", exc.category, action, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to {action}",
        ) from exc
