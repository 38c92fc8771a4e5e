"""Common interface for the text-completion backends."""

from abc import ABC, abstractmethod
from typing import Optional


class LLMBackend(ABC):
    """A single vendor endpoint that turns a prompt into reply text.

    Backends know nothing about questions or grading; they send one request,
    wait at most the configured timeout, and return the raw text. Every
    failure surfaces as a :class:`~barprep.core.exceptions.ProviderError`.
    """

    #: provider id used in logs and error messages
    name: str = "base"

    @abstractmethod
    def complete(
        self,
        prompt: str,
        *,
        system_prompt: Optional[str] = None,
        json_mode: bool = False,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Send *prompt* and return the reply text."""

    def close(self) -> None:
        """Release the backend's HTTP connections."""
