"""Pydantic schemas — re‑exported for convenience."""

from barprep.schemas.common import CamelModel, SuccessResponse  # noqa: F401
from barprep.schemas.user import UserCreate, UserRead  # noqa: F401
from barprep.schemas.question import (  # noqa: F401
    AIGrading,
    AIQuestion,
    Difficulty,
    GenerateQuestionRequest,
    GeneratedQuestionRead,
    LLMProvider,
)
from barprep.schemas.session import (  # noqa: F401
    AnswerSubmit,
    BatchSubmit,
    BatchSubmitRead,
    DiagnosticTestRead,
    DiagnosticTestRequest,
    DiagnosticType,
    GradedResponseRead,
    NextQuestionRequest,
    QuestionResponseRead,
    QuestionResponseSubmit,
    TestSessionCreate,
    TestSessionRead,
    TestSessionUpdate,
)
from barprep.schemas.analytics import AnalyticsSummary, UserAnalyticsRead  # noqa: F401
from barprep.schemas.chat import ChatMessageRead, ChatRequest, ChatTurnRead  # noqa: F401
from barprep.schemas.recommendation import (  # noqa: F401
    RecommendationCreate,
    RecommendationRead,
    RecommendationUpdate,
)
