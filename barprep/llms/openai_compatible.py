"""HTTP backend for OpenAI-compatible chat endpoints (DeepSeek, Perplexity)."""

import logging
from typing import Any, Optional

import httpx

from barprep.core.exceptions import ProviderResponseError, ProviderUnavailableError
from barprep.llms.base import LLMBackend

logger = logging.getLogger(__name__)


class OpenAICompatibleBackend(LLMBackend):
    """Thin wrapper around ``POST {base_url}/chat/completions``.

    ``supports_json_mode`` controls whether ``response_format`` is sent; when
    it is off, the system prompt alone asks for JSON.
    """

    def __init__(
        self,
        name: str,
        base_url: str,
        api_key: str,
        model: str,
        *,
        supports_json_mode: bool = True,
        timeout: float = 60.0,
    ) -> None:
        if not api_key:
            raise ProviderUnavailableError(name, f"{name.upper()}_API_KEY not configured")
        self.name = name
        self.model = model
        self.supports_json_mode = supports_json_mode
        self._base = base_url.rstrip("/")
        self._http = httpx.Client(
            base_url=self._base,
            timeout=timeout,
            headers={"Authorization": f"Bearer {api_key}"},
        )
        logger.info("Initialized %s backend → %s (%s)", name, self._base, model)

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

        payload: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "stream": False,
        }
        if json_mode and self.supports_json_mode:
            payload["response_format"] = {"type": "json_object"}
        if max_tokens:
            payload["max_tokens"] = max_tokens

        try:
            r = self._http.post("/chat/completions", json=payload)
            r.raise_for_status()
            data = r.json()
        except httpx.HTTPError as exc:
            raise ProviderUnavailableError(self.name, str(exc)) from exc
        except ValueError as exc:
            raise ProviderResponseError(self.name, "response body is not JSON") from exc

        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderResponseError(
                self.name, f"unexpected completion shape: {str(data)[:200]}"
            ) from exc

    def close(self) -> None:
        self._http.close()
