"""User schemas."""

import uuid
from datetime import datetime

from pydantic import EmailStr, Field

from barprep.schemas.common import CamelModel


class UserCreate(CamelModel):
    """POST /api/users"""

    username: str = Field(min_length=1, max_length=150)
    email: EmailStr | None = None


class UserRead(CamelModel):
    id: uuid.UUID
    username: str
    email: str | None = None
    created_at: datetime
