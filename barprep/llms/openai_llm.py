"""OpenAI chat-completions backend."""

import logging
from typing import Optional

import openai

from barprep.core.exceptions import ProviderUnavailableError
from barprep.llms.base import LLMBackend

logger = logging.getLogger(__name__)


class OpenAIBackend(LLMBackend):
    """Chat completions through the official ``openai`` SDK."""

    name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        timeout: float = 60.0,
    ) -> None:
        if not api_key:
            raise ProviderUnavailableError(self.name, "OPENAI_API_KEY not configured")
        self.model = model
        # SDK retries are disabled: a failed call is terminal
        self.client = openai.OpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        logger.info("Initialized OpenAI backend with model: %s", model)

    def complete(
        self,
        prompt: str,
        *,
        system_prompt: Optional[str] = None,
        json_mode: bool = False,
        max_tokens: Optional[int] = None,
    ) -> str:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        if max_tokens:
            kwargs["max_tokens"] = max_tokens

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                **kwargs,
            )
        except openai.APIError as exc:
            raise ProviderUnavailableError(self.name, str(exc)) from exc

        return response.choices[0].message.content or ""

    def close(self) -> None:
        self.client.close()
