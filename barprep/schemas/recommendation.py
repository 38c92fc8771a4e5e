"""Study recommendation schemas."""

import uuid
from datetime import datetime

from pydantic import Field

from barprep.db.models import RecommendationTypeEnum
from barprep.schemas.common import CamelModel


class RecommendationCreate(CamelModel):
    """POST /api/users/{id}/recommendations"""

    type: RecommendationTypeEnum
    subject: str = Field(min_length=1)
    priority: int = Field(ge=1, le=5)
    recommendation: str = Field(min_length=1)


class RecommendationUpdate(CamelModel):
    """PATCH /api/recommendations/{id} — completion is the only mutation."""

    completed: bool = True


class RecommendationRead(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    type: RecommendationTypeEnum
    subject: str
    priority: int
    recommendation: str
    completed: bool
    created_at: datetime
