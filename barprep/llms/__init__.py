"""Text-completion backends, one per LLM vendor."""

from .anthropic_llm import AnthropicBackend
from .base import LLMBackend
from .openai_compatible import OpenAICompatibleBackend
from .openai_llm import OpenAIBackend

__all__ = ["AnthropicBackend", "LLMBackend", "OpenAICompatibleBackend", "OpenAIBackend"]
