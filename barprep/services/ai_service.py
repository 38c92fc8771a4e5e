"""Question generation, grading and tutor chat on top of any LLM backend.

Each function takes a :class:`~barprep.llms.base.LLMBackend`, builds the
natural-language instruction for the requested kind, sends it once, and
normalizes the reply into one of the two result shapes
(:class:`AIQuestion` / :class:`AIGrading`) or plain reply text.

Provider selection lives in :mod:`barprep.providers`; nothing here knows
which vendor it is talking to.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from barprep.core.exceptions import ProviderResponseError
from barprep.db.models import QuestionTypeEnum
from barprep.llms.base import LLMBackend
from barprep.schemas.question import AIGrading, AIQuestion, Difficulty
from barprep.services.calibration import build_calibration_prompt
from barprep.services.json_extract import MalformedJSONError, extract_json_object

logger = logging.getLogger(__name__)

GENERATION_MAX_TOKENS = 2000
GRADING_MAX_TOKENS = 1000
CHAT_MAX_TOKENS = 1000

_QUESTION_SYSTEM_PROMPT = (
    "You are an expert in Texas Bar Exam questions. Always respond with valid JSON."
)
_GRADING_SYSTEM_PROMPT = (
    "You are an expert grader for bar exam responses. Always respond with valid JSON."
)
_CHAT_SYSTEM_PROMPT = """\
You are an expert legal tutor specializing in Texas Bar Exam preparation.
You have deep knowledge of all bar exam subjects and can explain complex legal concepts clearly.
Context: {context}. Provide helpful, accurate, and educational responses."""

# ── Prompt templates ──────────────────────────────────────────────────────────

_QUESTION_PROMPT = """\
Generate a completely fresh, unique {difficulty} difficulty {kind} question for \
the Texas Bar Exam covering {subject}.

IMPORTANT: Generate a brand new question that has never been created before. \
Use unique fact patterns and legal scenarios.

Timestamp: {timestamp}

Requirements:
- The question must be realistic and similar to actual bar exam questions
- Include proper legal terminology and concepts
- For multiple choice: provide 4 options (A, B, C, D) with one clearly correct answer
- For essays: provide a complex fact pattern requiring analysis
- Include a detailed explanation of the correct answer

Respond in JSON format with the following structure:
{{
  "questionText": "The question text...",
  "options": ["A) ...", "B) ...", "C) ...", "D) ..."],
  "correctAnswer": "The correct answer...",
  "explanation": "Detailed explanation...",
  "subject": "{subject}",
  "difficulty": "{difficulty}"
}}
Only include "options" for multiple choice questions."""

_MC_GRADING_PROMPT = """\
Here is the user's selected answer: {user_answer}

Question: {question}
{answer_key}
Was it correct? If not, what is the correct answer and why? Provide a realistic \
score out of 100 based on legal reasoning and accuracy.

Respond in JSON format:
{{
  "score": number (0-100),
  "feedback": "detailed explanation",
  "strengths": ["strength1", "strength2"],
  "improvements": ["improvement1", "improvement2"],
  "correctAnswer": "the correct answer if user was wrong"
}}"""


def build_question_prompt(
    kind: QuestionTypeEnum, subject: str, difficulty: Difficulty
) -> str:
    return _QUESTION_PROMPT.format(
        difficulty=difficulty.value,
        kind=kind.value,
        subject=subject,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


def build_grading_prompt(
    question: str,
    user_answer: str,
    correct_answer: str | None,
    kind: QuestionTypeEnum,
) -> str:
    """Multiple choice gets a right/wrong prompt; free text gets calibration."""
    if kind is QuestionTypeEnum.MULTIPLE_CHOICE:
        answer_key = f"Answer key: {correct_answer}\n" if correct_answer else ""
        return _MC_GRADING_PROMPT.format(
            user_answer=user_answer, question=question, answer_key=answer_key
        )
    return build_calibration_prompt(user_answer, question)


# ── Reply normalization ───────────────────────────────────────────────────────


def _parse(backend: LLMBackend, raw_text: str) -> dict[str, Any]:
    try:
        parsed = extract_json_object(raw_text)
    except MalformedJSONError as exc:
        logger.warning("%s returned unparseable JSON: %s", backend.name, raw_text[:200])
        raise ProviderResponseError(backend.name, str(exc)) from exc
    return parsed


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def _normalize_options(value: Any) -> list[str] | None:
    if value is None:
        return None
    if isinstance(value, dict):  # {"A": "...", "B": "..."}
        return [f"{key}) {text}" for key, text in value.items()]
    if isinstance(value, list):
        return [str(option) for option in value]
    return None


def normalize_question(
    backend: LLMBackend,
    raw: dict[str, Any],
    kind: QuestionTypeEnum,
    subject: str,
    difficulty: Difficulty,
) -> AIQuestion:
    """Coerce a provider's question JSON into :class:`AIQuestion`.

    The requested kind always wins; subject and difficulty fall back to the
    requested values when the reply omits them or uses an unknown label.
    """
    reply_difficulty = str(raw.get("difficulty") or "").strip().lower()
    if reply_difficulty not in {d.value for d in Difficulty}:
        reply_difficulty = difficulty.value

    options = None
    if kind is QuestionTypeEnum.MULTIPLE_CHOICE:
        options = _normalize_options(raw.get("options"))

    try:
        return AIQuestion(
            type=kind,
            subject=raw.get("subject") or subject,
            question_text=_as_text(raw.get("questionText", raw.get("question_text"))) or "",
            options=options,
            correct_answer=_as_text(raw.get("correctAnswer", raw.get("correct_answer"))),
            explanation=_as_text(raw.get("explanation")) or "",
            difficulty=reply_difficulty,
        )
    except ValidationError as exc:
        raise ProviderResponseError(backend.name, f"invalid question shape: {exc}") from exc


def normalize_grading(backend: LLMBackend, raw: dict[str, Any]) -> AIGrading:
    """Coerce a provider's grading JSON into :class:`AIGrading`."""
    cleaned = {key: value for key, value in raw.items() if value is not None}
    for key in ("strengths", "improvements"):
        if isinstance(cleaned.get(key), str):
            cleaned[key] = [cleaned[key]]
    if "correctAnswer" in cleaned:
        cleaned["correctAnswer"] = _as_text(cleaned["correctAnswer"])
    try:
        return AIGrading.model_validate(cleaned)
    except ValidationError as exc:
        raise ProviderResponseError(backend.name, f"invalid grading shape: {exc}") from exc


# ── Capabilities ──────────────────────────────────────────────────────────────


def generate_question(
    backend: LLMBackend,
    kind: QuestionTypeEnum,
    subject: str,
    difficulty: Difficulty = Difficulty.MEDIUM,
) -> AIQuestion:
    """Ask *backend* for one new question of *kind* on *subject*."""
    prompt = build_question_prompt(kind, subject, difficulty)
    logger.info("Generating %s %s question on %s via %s", difficulty.value, kind.value, subject, backend.name)
    raw_text = backend.complete(
        prompt,
        system_prompt=_QUESTION_SYSTEM_PROMPT,
        json_mode=True,
        max_tokens=GENERATION_MAX_TOKENS,
    )
    return normalize_question(backend, _parse(backend, raw_text), kind, subject, difficulty)


def grade_answer(
    backend: LLMBackend,
    question: str,
    user_answer: str,
    correct_answer: str | None = None,
    kind: QuestionTypeEnum = QuestionTypeEnum.ESSAY,
) -> AIGrading:
    """Ask *backend* to score *user_answer* on a 0–100 scale."""
    prompt = build_grading_prompt(question, user_answer, correct_answer, kind)
    raw_text = backend.complete(
        prompt,
        system_prompt=_GRADING_SYSTEM_PROMPT,
        json_mode=True,
        max_tokens=GRADING_MAX_TOKENS,
    )
    grading = normalize_grading(backend, _parse(backend, raw_text))
    logger.info("%s graded %s answer: %.1f", backend.name, kind.value, grading.score)
    return grading


def chat_reply(backend: LLMBackend, message: str, context: str = "bar-prep") -> str:
    """One tutoring turn; returns the reply text as-is."""
    return backend.complete(
        message,
        system_prompt=_CHAT_SYSTEM_PROMPT.format(context=context),
        max_tokens=CHAT_MAX_TOKENS,
    )
