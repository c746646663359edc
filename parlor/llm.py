"""Chat client: HTTP connection to the Gemini generateContent endpoint.

The session controller injects a chat callable matching the protocol:

    async def send(self, message: str, context: str) -> str: ...

`context` is the persona's system prompt (tone modifier already appended).
It is sent as the first user turn, followed by the message itself.

Two implementations are provided:

    GeminiClient: real HTTP client for the Gemini REST API.
    EchoChat: returns the message back unchanged. Useful for exercising
        sessions and routes without an API key.

Neither retries. Retrying is the session controller's job.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from .errors import ConfigurationError, MalformedResponse, UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_GEMINI_URL = (
    "https://generativelanguage.googleapis.com/v1beta/models/gemini-pro:generateContent"
)

DEFAULT_GENERATION_CONFIG: dict[str, Any] = {
    "temperature": 0.9,
    "topK": 40,
    "topP": 0.95,
    "maxOutputTokens": 1024,
    "candidateCount": 1,
}

HARM_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)

DEFAULT_SAFETY_SETTINGS: list[dict[str, str]] = [
    {"category": category, "threshold": "BLOCK_MEDIUM_AND_ABOVE"}
    for category in HARM_CATEGORIES
]


# ---------------------------------------------------------------------------
# Protocol: every chat implementation must match this signature
# ---------------------------------------------------------------------------

class ChatBackend(Protocol):
    async def send(self, message: str, context: str) -> str: ...


# ---------------------------------------------------------------------------
# GeminiClient: connects to the real API
# ---------------------------------------------------------------------------

class GeminiClient:
    """Async HTTP client for Gemini generateContent.

    Request:  POST {base_url}?key={api_key}
              {"contents": [context turn, message turn],
               "generationConfig": {...}, "safetySettings": [...]}
    Response: {"candidates": [{"content": {"parts": [{"text": "..."}]}}]}

    Args:
        api_key:           Gemini API key. An empty key fails on send().
        base_url:          Full generateContent URL for the model.
        generation_config: Overrides merged over DEFAULT_GENERATION_CONFIG.
        safety_settings:   Replaces DEFAULT_SAFETY_SETTINGS when given.
        timeout:           HTTP timeout in seconds; None waits indefinitely.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_GEMINI_URL,
        generation_config: dict[str, Any] | None = None,
        safety_settings: list[dict[str, str]] | None = None,
        timeout: float | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._generation_config = {**DEFAULT_GENERATION_CONFIG, **(generation_config or {})}
        self._safety_settings = list(
            DEFAULT_SAFETY_SETTINGS if safety_settings is None else safety_settings
        )
        self._timeout = timeout

    @property
    def generation_config(self) -> dict[str, Any]:
        return dict(self._generation_config)

    @property
    def safety_settings(self) -> list[dict[str, str]]:
        return list(self._safety_settings)

    def update_config(self, **overrides: Any) -> None:
        """Merge generation parameter overrides, e.g. update_config(temperature=0.2)."""
        self._generation_config.update(overrides)

    def update_safety_settings(self, settings: list[dict[str, str]]) -> None:
        self._safety_settings = list(settings)

    def _build_body(self, message: str, context: str) -> dict[str, Any]:
        return {
            "contents": [
                {"role": "user", "parts": [{"text": context}]},
                {"role": "user", "parts": [{"text": message}]},
            ],
            "generationConfig": self._generation_config,
            "safetySettings": self._safety_settings,
        }

    @staticmethod
    def _error_message(resp: httpx.Response) -> str:
        """Pull error.message out of an error body, falling back to the reason phrase."""
        try:
            data = resp.json()
        except ValueError:
            data = None
        if isinstance(data, dict):
            error = data.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
        return resp.reason_phrase or "unknown error"

    @staticmethod
    def _parse_response(data: Any) -> str:
        """Extract candidates[0].content.parts[0].text."""
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise MalformedResponse("Unexpected response format from Gemini API") from e
        if not isinstance(text, str) or not text:
            raise MalformedResponse("Unexpected response format from Gemini API")
        return text

    async def send(self, message: str, context: str) -> str:
        if not self._api_key:
            raise ConfigurationError("Gemini API key is not configured")

        body = self._build_body(message, context)
        # The key travels as a query parameter; keep it out of logs and errors.
        logger.debug(
            "gemini call message_len=%d context_len=%d", len(message), len(context)
        )

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(
                    self._base_url,
                    params={"key": self._api_key},
                    json=body,
                    headers={"Content-Type": "application/json"},
                )
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise UpstreamError("Cannot connect to Gemini API") from e
        except httpx.TimeoutException as e:
            raise UpstreamError(f"Gemini API timed out after {self._timeout}s") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise UpstreamError(
                f"Gemini API error ({status}): {self._error_message(e.response)}",
                status=status,
            ) from e
        except httpx.RequestError as e:
            raise UpstreamError(f"Gemini API connection failed: {type(e).__name__}") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise MalformedResponse("Gemini API returned a non-JSON body") from e

        text = self._parse_response(data)
        logger.debug("gemini response len=%d", len(text))
        return text


# ---------------------------------------------------------------------------
# EchoChat: returns the message unchanged; useful for wiring smoke tests
# ---------------------------------------------------------------------------

class EchoChat:
    """Returns the user message as the reply. No network calls."""

    async def send(self, message: str, context: str) -> str:
        logger.debug("EchoChat message_len=%d context_len=%d", len(message), len(context))
        return message
