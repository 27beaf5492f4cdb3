"""Model provider layer for quickcmd.

This module contains abstractions over the remote language-model
APIs that turn a prompt into a shell command.  Two wire formats are
supported and both are normalised into the same
``generate(user_prompt, system_prompt) -> str`` capability:

* ``GeminiProvider`` – Google's ``generateContent`` endpoint, which
  takes a ``systemInstruction`` document plus ``contents`` and
  authenticates through the ``key`` query parameter.
* ``OpenAICompatibleProvider`` – any ``/chat/completions`` endpoint
  (OpenAI, OpenRouter, a local llama.cpp or vLLM server, ...).  The
  system and user prompts are sent as two messages and the key goes
  in a bearer token header.

Each call makes exactly one HTTP POST.  There is no retry: transport
failures, non-2xx statuses and error documents embedded in a 2xx
response are all raised as :class:`ApiError` and the caller decides
what to do next.  Only the first candidate (or choice) and its first
part are used.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import httpx

from .config import ProviderConfig, ProviderKind
from .errors import ApiError, EmptyResultError

logger = logging.getLogger(__name__)

MAX_TOKENS = 512


def _first(items: Any) -> Any:
    """Return the first element of a JSON array, or None."""
    if isinstance(items, list) and items:
        return items[0]
    return None


class BaseProvider:
    """Abstract base class for all providers."""

    name = "base"

    def __init__(self, config: ProviderConfig, client: Optional[httpx.Client] = None) -> None:
        self.config = config
        self._client = client or httpx.Client(timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def generate(self, user_prompt: str, system_prompt: str) -> str:
        """Return the model's raw text for the given prompts.

        :raises ApiError: On transport failure, non-2xx status, an
          embedded provider error or an unparseable body.
        :raises EmptyResultError: When the response holds no result.
        """
        url, payload, headers, params = self._build_request(user_prompt, system_prompt)
        resp, data = self._post(url, payload, headers, params)
        try:
            self._raise_embedded_error(data)
            return self._extract_text(data)
        except ApiError as exc:
            exc.status_code = resp.status_code
            exc.body = resp.text
            raise

    def _build_request(self, user_prompt: str, system_prompt: str):
        raise NotImplementedError

    def _extract_text(self, data: Dict[str, Any]) -> str:
        raise NotImplementedError

    def _post(
        self,
        url: str,
        payload: Dict[str, Any],
        headers: Dict[str, str],
        params: Optional[Dict[str, str]] = None,
    ):
        logger.debug("POST %s (model=%s)", url, self.config.model)
        try:
            resp = self._client.post(url, json=payload, headers=headers, params=params)
        except httpx.HTTPError as exc:
            raise ApiError(f"Failed to send request to {self.name} API: {exc}") from exc
        except UnicodeError as exc:
            raise ApiError(f"Could not encode request to {self.name} API: {exc}") from exc

        body = resp.text
        if not resp.is_success:
            raise ApiError(f"{self.name} API error", status_code=resp.status_code, body=body)
        try:
            data = json.loads(body)
        except ValueError as exc:
            raise ApiError(
                f"Failed to parse {self.name} response",
                status_code=resp.status_code,
                body=body,
            ) from exc
        if not isinstance(data, dict):
            raise ApiError(
                f"Unexpected {self.name} response",
                status_code=resp.status_code,
                body=body,
            )
        return resp, data

    def _raise_embedded_error(self, data: Dict[str, Any]) -> None:
        error = data.get("error")
        if not error:
            return
        if isinstance(error, dict):
            message = error.get("message") or json.dumps(error)
        else:
            message = str(error)
        raise ApiError(f"{self.name} API error: {message}")


class GeminiProvider(BaseProvider):
    """Provider speaking the Gemini ``generateContent`` protocol."""

    name = "Gemini"

    def _build_request(self, user_prompt: str, system_prompt: str):
        url = f"{self.config.base_url}/models/{self.config.model}:generateContent"
        payload = {
            "systemInstruction": {"parts": [{"text": system_prompt}]},
            "contents": [{"parts": [{"text": user_prompt}]}],
        }
        return url, payload, {}, {"key": self.config.api_key}

    def _extract_text(self, data: Dict[str, Any]) -> str:
        candidate = _first(data.get("candidates"))
        content = candidate.get("content") if isinstance(candidate, dict) else None
        part = _first(content.get("parts")) if isinstance(content, dict) else None
        text = part.get("text") if isinstance(part, dict) else None
        if not isinstance(text, str):
            raise EmptyResultError("No command generated from Gemini")
        return text


class OpenAICompatibleProvider(BaseProvider):
    """Provider speaking the OpenAI ``chat/completions`` protocol."""

    name = "OpenAI-compatible"

    def _build_request(self, user_prompt: str, system_prompt: str):
        url = f"{self.config.base_url}/chat/completions"
        payload = {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "max_tokens": MAX_TOKENS,
        }
        headers = {"Authorization": f"Bearer {self.config.api_key}"}
        return url, payload, headers, None

    def _extract_text(self, data: Dict[str, Any]) -> str:
        choice = _first(data.get("choices"))
        message = choice.get("message") if isinstance(choice, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise EmptyResultError("No command generated from the model")
        return content


def get_provider(config: ProviderConfig, client: Optional[httpx.Client] = None) -> BaseProvider:
    """Factory function to instantiate the provider for ``config``.

    :param config: Resolved provider configuration.
    :param client: Optional pre-built ``httpx.Client`` (used by tests).
    :returns: A provider instance.
    """
    if config.provider_kind is ProviderKind.GEMINI:
        return GeminiProvider(config, client)
    if config.provider_kind is ProviderKind.OPENAI_COMPATIBLE:
        return OpenAICompatibleProvider(config, client)
    raise ValueError(f"Unknown provider kind: {config.provider_kind}")
