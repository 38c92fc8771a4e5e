"""Progress / analytics schemas."""

import uuid
from datetime import datetime

from barprep.schemas.common import CamelModel
from barprep.schemas.session import TestSessionRead


class UserAnalyticsRead(CamelModel):
    """Running tally for one subject."""

    id: uuid.UUID
    user_id: uuid.UUID
    subject: str
    total_questions: int
    correct_answers: int
    average_score: float
    mastery_level: float
    last_practiced: datetime | None = None
    updated_at: datetime


class AnalyticsSummary(CamelModel):
    """GET /api/users/{id}/analytics"""

    subject_analytics: list[UserAnalyticsRead] = []
    pass_probability: float
    total_questions: int
    average_score: float
    test_sessions: list[TestSessionRead] = []
