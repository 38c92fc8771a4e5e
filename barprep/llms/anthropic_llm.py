"""Anthropic messages-API backend."""

import logging
from typing import Optional

import anthropic

from barprep.core.exceptions import ProviderUnavailableError
from barprep.llms.base import LLMBackend

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 1000


class AnthropicBackend(LLMBackend):
    """Claude models through the official ``anthropic`` SDK.

    The messages API has no JSON mode; callers put the JSON instruction in the
    system prompt and parse the reply text.
    """

    name = "anthropic"

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        timeout: float = 60.0,
    ) -> None:
        if not api_key:
            raise ProviderUnavailableError(self.name, "ANTHROPIC_API_KEY not configured")
        self.model = model
        self.client = anthropic.Anthropic(api_key=api_key, timeout=timeout, max_retries=0)
        logger.info("Initialized Anthropic backend with model: %s", model)

    def complete(
        self,
        prompt: str,
        *,
        system_prompt: Optional[str] = None,
        json_mode: bool = False,
        max_tokens: Optional[int] = None,
    ) -> str:
        kwargs = {}
        if system_prompt:
            kwargs["system"] = system_prompt

        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens or DEFAULT_MAX_TOKENS,
                messages=[{"role": "user", "content": prompt}],
                **kwargs,
            )
        except anthropic.APIError as exc:
            raise ProviderUnavailableError(self.name, str(exc)) from exc

        # Concatenate text blocks; tool-use blocks never appear for plain prompts
        return "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )

    def close(self) -> None:
        self.client.close()
