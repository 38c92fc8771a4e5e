"""Tests for the provider registry, prompt building and reply normalization.

No network: a scripted backend stands in for the vendors, and the HTTP
backend runs against ``httpx.MockTransport``.
"""

import json

import httpx
import pytest

from barprep.core.exceptions import (
    ProviderResponseError,
    ProviderUnavailableError,
    UnsupportedProviderError,
)
from barprep.db.models import QuestionTypeEnum
from barprep.llms import LLMBackend, OpenAIBackend, OpenAICompatibleBackend
from barprep import providers
from barprep.providers import AIService, ProviderRegistry, build_default_registry
from barprep.schemas import Difficulty
from barprep.services.ai_service import build_grading_prompt, normalize_grading
from barprep.services.calibration import MODEL_ANSWERS


class ScriptedBackend(LLMBackend):
    """Returns canned replies in order and records every call."""

    name = "scripted"

    def __init__(self, *replies: str) -> None:
        self.replies = list(replies)
        self.calls: list[dict] = []
        self.closed = False

    def complete(self, prompt, *, system_prompt=None, json_mode=False, max_tokens=None):
        self.calls.append(
            {
                "prompt": prompt,
                "system_prompt": system_prompt,
                "json_mode": json_mode,
                "max_tokens": max_tokens,
            }
        )
        return self.replies.pop(0)

    def close(self):
        self.closed = True


def _service(backend: LLMBackend) -> AIService:
    registry = ProviderRegistry()
    registry.register("scripted", lambda: backend)
    return AIService(registry)


QUESTION_REPLY = """Here you go:
```json
{
  "questionText": "A landowner digs a pit near a public sidewalk...",
  "options": {"A": "Liable", "B": "Not liable", "C": "Strictly liable", "D": "Immune"},
  "correctAnswer": "A",
  "explanation": "Duty to those on the adjacent way.",
  "subject": "torts",
  "difficulty": "extreme"
}
```"""


# ── registry ──────────────────────────────────────────────────────────────────


def test_default_registry_lists_four_providers():
    assert build_default_registry().providers == ["anthropic", "deepseek", "openai", "perplexity"]


def test_unknown_provider_is_rejected():
    with pytest.raises(UnsupportedProviderError):
        AIService(ProviderRegistry()).generate_question(
            "gemini", QuestionTypeEnum.MULTIPLE_CHOICE, "torts"
        )


def test_missing_api_key_is_unavailable_and_not_cached():
    registry = ProviderRegistry()
    registry.register("openai", lambda: OpenAIBackend(api_key=""))
    with pytest.raises(ProviderUnavailableError):
        registry.capabilities("openai")
    with pytest.raises(ProviderUnavailableError):
        registry.capabilities("openai")


def test_backend_is_built_once():
    built = []

    def factory():
        built.append(1)
        return ScriptedBackend()

    registry = ProviderRegistry()
    registry.register("scripted", factory)
    assert registry.capabilities("scripted") is registry.capabilities("scripted")
    assert len(built) == 1


def test_close_releases_built_backends_and_rebuilds_on_next_use():
    backends = []

    def factory():
        backends.append(ScriptedBackend())
        return backends[-1]

    registry = ProviderRegistry()
    registry.register("scripted", factory)
    registry.register("unused", ScriptedBackend)
    first = registry.capabilities("scripted")

    registry.close()
    assert backends[0].closed

    assert registry.capabilities("scripted") is not first
    assert len(backends) == 2
    assert not backends[1].closed


def test_reregistering_closes_the_replaced_backend():
    old = ScriptedBackend()
    registry = ProviderRegistry()
    registry.register("scripted", lambda: old)
    registry.capabilities("scripted")

    registry.register("scripted", ScriptedBackend)
    assert old.closed


def test_close_ai_service_closes_the_shared_adapter(monkeypatch):
    backend = ScriptedBackend()
    service = _service(backend)
    service.registry.capabilities("scripted")
    monkeypatch.setattr(providers, "_instance", service)

    providers.close_ai_service()
    assert backend.closed
    assert providers._instance is None

    providers.close_ai_service()  # nothing left to close


# ── generation ────────────────────────────────────────────────────────────────


def test_generate_question_normalizes_reply():
    backend = ScriptedBackend(QUESTION_REPLY)
    question = _service(backend).generate_question(
        "scripted", QuestionTypeEnum.MULTIPLE_CHOICE, "torts", Difficulty.HARD
    )

    assert question.type is QuestionTypeEnum.MULTIPLE_CHOICE
    assert question.options == ["A) Liable", "B) Not liable", "C) Strictly liable", "D) Immune"]
    assert question.correct_answer == "A"
    # unknown difficulty label falls back to the requested one
    assert question.difficulty is Difficulty.HARD
    call = backend.calls[0]
    assert call["json_mode"] is True
    assert "hard difficulty multiple-choice question" in call["prompt"]
    assert "covering torts" in call["prompt"]


def test_essay_question_drops_options():
    reply = json.dumps(
        {"questionText": "Discuss.", "options": ["A) x"], "explanation": "IRAC"}
    )
    question = _service(ScriptedBackend(reply)).generate_question(
        "scripted", QuestionTypeEnum.ESSAY, "wills-trusts"
    )
    assert question.options is None
    assert question.subject == "wills-trusts"


def test_question_without_text_is_a_response_error():
    with pytest.raises(ProviderResponseError):
        _service(ScriptedBackend('{"options": []}')).generate_question(
            "scripted", QuestionTypeEnum.MULTIPLE_CHOICE, "torts"
        )


def test_non_json_reply_is_a_response_error():
    with pytest.raises(ProviderResponseError):
        _service(ScriptedBackend("I cannot help with that.")).generate_question(
            "scripted", QuestionTypeEnum.MULTIPLE_CHOICE, "torts"
        )


# ── grading ───────────────────────────────────────────────────────────────────


def test_free_text_grading_uses_calibration_example():
    backend = ScriptedBackend('{"score": 88, "feedback": "Solid IRAC.", "comparison": "worse than"}')
    grading = _service(backend).grade_response(
        "scripted", "Analyze negligence.", "Duty, breach...", None, QuestionTypeEnum.ESSAY
    )

    assert grading.score == 88
    assert grading.comparison == "worse than"
    prompt = backend.calls[0]["prompt"]
    assert "MODEL A+ ANSWER (Score: 95/100)" in prompt
    assert MODEL_ANSWERS["A+"]["content"] in prompt
    assert "Duty, breach..." in prompt


def test_multiple_choice_grading_includes_answer_key():
    prompt = build_grading_prompt("Q?", "B", "A", QuestionTypeEnum.MULTIPLE_CHOICE)
    assert "Here is the user's selected answer: B" in prompt
    assert "Answer key: A" in prompt
    assert "MODEL A+" not in prompt


def test_grading_normalization_tolerates_loose_shapes():
    grading = normalize_grading(
        ScriptedBackend(),
        {"score": 70, "strengths": "clear rule statement", "improvements": None, "correctAnswer": 3},
    )
    assert grading.strengths == ["clear rule statement"]
    assert grading.improvements == []
    assert grading.correct_answer == "3"


def test_out_of_range_score_is_a_response_error():
    with pytest.raises(ProviderResponseError):
        normalize_grading(ScriptedBackend(), {"score": 140})


# ── chat ──────────────────────────────────────────────────────────────────────


def test_chat_uses_tutor_prompt_with_context():
    backend = ScriptedBackend("Consideration is a bargained-for exchange.")
    reply = _service(backend).get_chat_response("scripted", "What is consideration?", "question-help")

    assert reply == "Consideration is a bargained-for exchange."
    assert "expert legal tutor" in backend.calls[0]["system_prompt"]
    assert "Context: question-help" in backend.calls[0]["system_prompt"]
    assert backend.calls[0]["json_mode"] is False


# ── OpenAI-compatible HTTP backend ────────────────────────────────────────────


def _http_backend(handler, supports_json_mode=True) -> OpenAICompatibleBackend:
    backend = OpenAICompatibleBackend(
        "deepseek",
        base_url="https://api.example.test/v1",
        api_key="sk-test",
        model="deepseek-chat",
        supports_json_mode=supports_json_mode,
    )
    backend._http = httpx.Client(
        base_url="https://api.example.test/v1",
        transport=httpx.MockTransport(handler),
    )
    return backend


def test_http_backend_sends_chat_completion():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": "{}"}}]})

    assert _http_backend(handler).complete("hi", system_prompt="sys", json_mode=True) == "{}"
    assert seen["path"] == "/v1/chat/completions"
    assert seen["body"]["model"] == "deepseek-chat"
    assert seen["body"]["response_format"] == {"type": "json_object"}
    assert seen["body"]["messages"][0] == {"role": "system", "content": "sys"}


def test_http_backend_without_json_mode_omits_response_format():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]})

    _http_backend(handler, supports_json_mode=False).complete("hi", json_mode=True)
    assert "response_format" not in seen["body"]


def test_http_error_status_is_unavailable():
    backend = _http_backend(lambda request: httpx.Response(503, text="overloaded"))
    with pytest.raises(ProviderUnavailableError):
        backend.complete("hi")


def test_unexpected_body_is_a_response_error():
    backend = _http_backend(lambda request: httpx.Response(200, json={"data": []}))
    with pytest.raises(ProviderResponseError):
        backend.complete("hi")


def test_http_backend_close_releases_the_client():
    backend = _http_backend(lambda request: httpx.Response(200, json={}))
    backend.close()
    assert backend._http.is_closed
