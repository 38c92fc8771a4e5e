"""Question generation and grading schemas — the adapter's two result shapes."""

from enum import Enum

from pydantic import Field

from barprep.db.models import QuestionTypeEnum
from barprep.schemas.common import CamelModel


class LLMProvider(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    DEEPSEEK = "deepseek"
    PERPLEXITY = "perplexity"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class AIQuestion(CamelModel):
    """A generated question, normalized from any provider's reply."""

    type: QuestionTypeEnum
    subject: str
    question_text: str = Field(min_length=1)
    options: list[str] | None = None  # multiple-choice only
    correct_answer: str | None = None
    explanation: str = ""
    difficulty: Difficulty = Difficulty.MEDIUM


class AIGrading(CamelModel):
    """A grading verdict. ``score`` is on a 0–100 scale."""

    score: float = Field(ge=0, le=100)
    feedback: str = ""
    strengths: list[str] = []
    improvements: list[str] = []
    correct_answer: str | None = None
    # calibration grading only: "equal to/better than/worse than model A+"
    comparison: str | None = None


class GenerateQuestionRequest(CamelModel):
    """POST /api/generate-question"""

    provider: LLMProvider
    type: QuestionTypeEnum
    subject: str = Field(min_length=1)
    difficulty: Difficulty = Difficulty.MEDIUM


class GeneratedQuestionRead(AIQuestion):
    """A question as served to the client, tagged with its provider."""

    question_number: int | None = None
    generated_by: LLMProvider
