"""Narration client — HTTP connection to a chat-style LLM backend.

The game injects a narrator callable matching the protocol:

    async def __call__(self, history: list[Turn]) -> str: ...

`history` is the whole conversation, oldest first, and must end with a user
turn. The implementation decides how to split prior context from the prompt
for this turn.

Two implementations are provided:

    HttpNarrator  — real HTTP client, supports Gemini, OpenAI-compatible chat
                    and the game's own narration proxy. Selected by
                    provider_format.
    EchoNarrator  — returns the last user turn unchanged. Useful for
                    smoke-testing the turn wiring without a running model.

Tests use StubNarrator (defined in conftest.py) instead.
"""

from __future__ import annotations

import logging
from typing import Any, Literal, Protocol

import httpx

from kotodama.models import Turn

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol: every narrator implementation must match this signature
# ---------------------------------------------------------------------------

class Narrator(Protocol):
    async def __call__(self, history: list[Turn]) -> str: ...


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class LLMError(RuntimeError):
    """Base class for every narration failure."""


class ProviderError(LLMError):
    """The backend could not be reached or reported an error."""


class EmptyResponseError(LLMError):
    """The backend answered without any usable text."""


def check_history(history: list[Turn]) -> None:
    if not history:
        raise ProviderError("Conversation history is empty")
    if history[-1].role != "user":
        raise ProviderError("Conversation history must end with a user turn")


# ---------------------------------------------------------------------------
# HttpNarrator: connects to a real backend
# ---------------------------------------------------------------------------

ProviderFormat = Literal["gemini", "openai", "proxy"]


class HttpNarrator:
    """Async HTTP client for chat backends.

    Supported formats:
      "gemini"  — POST /v1beta/models/{model}:generateContent
                  {"contents": [{"role", "parts": [{"text"}]}]}
                  Response: {"candidates": [{"content": {"parts": [{"text"}]}}]}
      "openai"  — POST /v1/chat/completions  {"model", "messages": [...]}
                  Response: {"choices": [{"message": {"content": "..."}}]}
      "proxy"   — POST /api/callai  {"history": [{"role", "parts": [...]}]}
                  Response: same as gemini, or {"error": {"message"}}

    Args:
        provider_url:    Base URL of the backend.
        api_key:         Provider key, or empty string if not required.
        provider_format: Wire format to use. Defaults to "gemini".
        model:           Model identifier (gemini and openai formats).
        timeout:         HTTP timeout in seconds. Defaults to 120.
    """

    def __init__(
        self,
        provider_url: str,
        api_key: str = "",
        provider_format: ProviderFormat = "gemini",
        model: str = "gemini-1.5-flash-latest",
        timeout: float = 120.0,
    ) -> None:
        self._base_url = provider_url.rstrip("/")
        self._api_key = api_key
        self._format = provider_format
        self._model = model
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            if self._format == "gemini":
                headers["x-goog-api-key"] = self._api_key
            else:
                headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _build_request(self, history: list[Turn]) -> tuple[str, dict]:
        """Return (url, body) for the configured format."""
        if self._format == "openai":
            url = f"{self._base_url}/v1/chat/completions"
            messages = [
                {"role": "assistant" if t.role == "model" else "user", "content": t.text}
                for t in history
            ]
            return url, {"model": self._model, "messages": messages}

        if self._format == "proxy":
            url = f"{self._base_url}/api/callai"
            return url, {"history": [t.to_parts() for t in history]}

        # gemini (default)
        url = f"{self._base_url}/v1beta/models/{self._model}:generateContent"
        return url, {"contents": [t.to_parts() for t in history]}

    def _parse_response(self, data: dict[str, Any]) -> str:
        """Extract the narration text from the response body."""
        try:
            if self._format == "openai":
                text = data["choices"][0]["message"]["content"]
            else:
                text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            text = None
        if not isinstance(text, str) or not text.strip():
            raise EmptyResponseError("The narrator returned no usable response")
        return text

    @staticmethod
    def _error_message(resp: httpx.Response) -> str:
        message = f"LLM backend returned HTTP {resp.status_code}"
        try:
            data = resp.json()
        except ValueError:
            return message
        if isinstance(data, dict) and isinstance(data.get("error"), dict):
            return data["error"].get("message") or message
        return message

    async def __call__(self, history: list[Turn]) -> str:
        check_history(history)
        url, body = self._build_request(history)
        logger.debug("narrator call url=%s turns=%d", url, len(history))

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=body, headers=self._headers())
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise ProviderError(f"Cannot connect to LLM backend at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise ProviderError(self._error_message(e.response)) from e
        except httpx.TimeoutException as e:
            raise ProviderError(f"LLM backend timed out after {self._timeout}s") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"LLM backend request failed: {e}") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise ProviderError("LLM backend returned a non-JSON response") from e
        text = self._parse_response(data)
        logger.debug("narrator response len=%d", len(text))
        return text


# ---------------------------------------------------------------------------
# EchoNarrator: echoes the last command; useful for wiring smoke tests
# ---------------------------------------------------------------------------

class EchoNarrator:
    """Returns the last user turn as-is. No network calls."""

    async def __call__(self, history: list[Turn]) -> str:
        check_history(history)
        logger.debug("EchoNarrator turns=%d", len(history))
        return history[-1].text
