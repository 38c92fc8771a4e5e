"""Registered-capability table for the LLM providers.

Each provider id maps to a backend factory. The first time a provider is
used its backend is built and bound to the three capabilities
(``generate``, ``grade``, ``chat``); adding a provider is one
:meth:`ProviderRegistry.register` call rather than a new branch in every
call site.

There is no fallback: an unknown id, a missing API key or a
failed call is reported to the caller as a
:class:`~barprep.core.exceptions.ProviderError`.
"""

import logging
import threading
from dataclasses import dataclass
from functools import partial
from typing import Callable, Optional

from barprep.config import settings
from barprep.core.exceptions import UnsupportedProviderError
from barprep.db.models import QuestionTypeEnum
from barprep.llms import AnthropicBackend, LLMBackend, OpenAIBackend, OpenAICompatibleBackend
from barprep.schemas.question import AIGrading, AIQuestion, Difficulty
from barprep.services.ai_service import chat_reply, generate_question, grade_answer

logger = logging.getLogger(__name__)

BackendFactory = Callable[[], LLMBackend]


@dataclass(frozen=True)
class ProviderCapabilities:
    """The three operations a provider offers, bound to its backend."""

    generate: Callable[..., AIQuestion]
    grade: Callable[..., AIGrading]
    chat: Callable[..., str]


def capabilities_for(backend: LLMBackend) -> ProviderCapabilities:
    return ProviderCapabilities(
        generate=partial(generate_question, backend),
        grade=partial(grade_answer, backend),
        chat=partial(chat_reply, backend),
    )


class ProviderRegistry:
    """Provider id → lazily built :class:`ProviderCapabilities`."""

    def __init__(self) -> None:
        self._factories: dict[str, BackendFactory] = {}
        self._built: dict[str, ProviderCapabilities] = {}
        self._backends: dict[str, LLMBackend] = {}
        self._lock = threading.Lock()

    def register(self, provider: str, factory: BackendFactory) -> None:
        with self._lock:
            self._factories[provider] = factory
            self._built.pop(provider, None)
            stale = self._backends.pop(provider, None)
        if stale is not None:
            stale.close()

    @property
    def providers(self) -> list[str]:
        return sorted(self._factories)

    def capabilities(self, provider: str) -> ProviderCapabilities:
        with self._lock:
            built = self._built.get(provider)
            if built is not None:
                return built
            factory = self._factories.get(provider)
            if factory is None:
                raise UnsupportedProviderError(provider)
            # a missing API key raises here and nothing is cached
            backend = factory()
            built = capabilities_for(backend)
            self._backends[provider] = backend
            self._built[provider] = built
            logger.info("Provider %s ready", provider)
            return built

    def close(self) -> None:
        """Close every built backend; the next call rebuilds it."""
        with self._lock:
            backends = list(self._backends.items())
            self._backends.clear()
            self._built.clear()
        for provider, backend in backends:
            backend.close()
            logger.info("Provider %s closed", provider)


# ── Default backends ──────────────────────────────────────────────────────────


def _openai() -> LLMBackend:
    return OpenAIBackend(
        api_key=settings.OPENAI_API_KEY,
        model=settings.OPENAI_MODEL,
        timeout=settings.PROVIDER_TIMEOUT_SECONDS,
    )


def _anthropic() -> LLMBackend:
    return AnthropicBackend(
        api_key=settings.ANTHROPIC_API_KEY,
        model=settings.ANTHROPIC_MODEL,
        timeout=settings.PROVIDER_TIMEOUT_SECONDS,
    )


def _deepseek() -> LLMBackend:
    return OpenAICompatibleBackend(
        "deepseek",
        base_url=settings.DEEPSEEK_BASE_URL,
        api_key=settings.DEEPSEEK_API_KEY,
        model=settings.DEEPSEEK_MODEL,
        supports_json_mode=True,
        timeout=settings.PROVIDER_TIMEOUT_SECONDS,
    )


def _perplexity() -> LLMBackend:
    return OpenAICompatibleBackend(
        "perplexity",
        base_url=settings.PERPLEXITY_BASE_URL,
        api_key=settings.PERPLEXITY_API_KEY,
        model=settings.PERPLEXITY_MODEL,
        supports_json_mode=False,
        timeout=settings.PROVIDER_TIMEOUT_SECONDS,
    )


def build_default_registry() -> ProviderRegistry:
    registry = ProviderRegistry()
    registry.register("openai", _openai)
    registry.register("anthropic", _anthropic)
    registry.register("deepseek", _deepseek)
    registry.register("perplexity", _perplexity)
    return registry


# ── Adapter facade ────────────────────────────────────────────────────────────


class AIService:
    """Content-provider adapter: provider id + kind + parameters → content."""

    def __init__(self, registry: Optional[ProviderRegistry] = None) -> None:
        self.registry = registry or build_default_registry()

    def generate_question(
        self,
        provider: str,
        kind: QuestionTypeEnum,
        subject: str,
        difficulty: Difficulty = Difficulty.MEDIUM,
    ) -> AIQuestion:
        return self.registry.capabilities(provider).generate(kind, subject, difficulty)

    def grade_response(
        self,
        provider: str,
        question: str,
        user_answer: str,
        correct_answer: Optional[str] = None,
        kind: QuestionTypeEnum = QuestionTypeEnum.ESSAY,
    ) -> AIGrading:
        return self.registry.capabilities(provider).grade(
            question, user_answer, correct_answer, kind
        )

    def get_chat_response(
        self, provider: str, message: str, context: str = "bar-prep"
    ) -> str:
        return self.registry.capabilities(provider).chat(message, context)


# ── singleton accessor ────────────────────────────────────────────────────────

_instance: AIService | None = None


def get_ai_service() -> AIService:
    """FastAPI dependency returning the process-wide adapter."""
    global _instance
    if _instance is None:
        _instance = AIService()
        logger.info("AI service initialised → %s", ", ".join(_instance.registry.providers))
    return _instance


def close_ai_service() -> None:
    """Close the adapter's provider connections on shutdown."""
    global _instance
    if _instance is not None:
        _instance.registry.close()
        _instance = None
