"""Client for the external content generation service.

This module provides the ContentGenerationClient class that turns a
ContentRequestPair into a GeneratedContent pair. It includes:

- Lazy HTTP client creation against the Generative Language REST API
- Exponential backoff on rate limiting (HTTP 429) with an injectable sleep
- Tolerant parsing of the structured two-field response
- Terminal errors that carry a user-displayable fallback pair
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, ClassVar, Final

import httpx

from deadline_coach.core.settings import settings
from deadline_coach.services.content_policy import ContentRequestPair

# Configure logger for this module
logger = logging.getLogger(__name__)

# HTTP status codes
HTTP_OK = 200
HTTP_TOO_MANY_REQUESTS = 429

MESSAGE_KEY: Final[str] = "message"
TIP_KEY: Final[str] = "tip"

_FENCE_RE = re.compile(r"^\s*```[a-zA-Z]*\s*|\s*```\s*$")

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class GeneratedContent:
    """Motivational message and study tip shown to the user."""

    message: str
    tip: str


MISSING_CONTENT: Final[GeneratedContent] = GeneratedContent(
    "No motivation found.", "No study tip found."
)


class GenerationError(RuntimeError):
    """Terminal failure of a generation attempt.

    ``fallback`` is the pair the caller should display instead of generated
    content.
    """

    default_fallback: ClassVar[GeneratedContent] = GeneratedContent(
        "Failed to load motivation. Please try again later.",
        "Failed to load tips. Please try again later.",
    )

    def __init__(self, message: str, *, fallback: GeneratedContent | None = None) -> None:
        super().__init__(message)
        self.fallback = fallback or self.default_fallback


class GenerationRateLimited(GenerationError):
    """The service asked us to slow down. Retried by the client."""


class GenerationParseError(GenerationError):
    """The service answered successfully but the payload was not usable."""

    default_fallback: ClassVar[GeneratedContent] = GeneratedContent(
        "Failed to get personalized content. (Parsing error)",
        "Failed to get personalized content. Try again.",
    )


@dataclass(frozen=True)
class GenerationConfig:
    """Immutable configuration for generation requests."""

    api_key: str | None
    model: str
    base_url: str
    timeout_seconds: float
    max_retries: int
    initial_backoff_seconds: float


def load_generation_config() -> GenerationConfig:
    """Build configuration object from global settings."""

    return GenerationConfig(
        api_key=settings.generation_api_key,
        model=settings.generation_model,
        base_url=settings.generation_base_url,
        timeout_seconds=float(settings.generation_http_timeout_seconds),
        max_retries=max(0, int(settings.generation_max_retries)),
        initial_backoff_seconds=float(settings.generation_initial_backoff_seconds),
    )


def build_prompt(pair: ContentRequestPair) -> str:
    """Bundle both requests into one instruction asking for a JSON document."""
    return (
        f"Based on the following two requests, provide a JSON object with '{MESSAGE_KEY}' "
        f"and '{TIP_KEY}' keys. Ensure the output is valid JSON, like: "
        f'{{"{MESSAGE_KEY}": "Your motivational message.", "{TIP_KEY}": "Your study tip."}}\n\n'
        f'Motivation request: "{pair.message_request}"\n'
        f'Study tip request: "{pair.tip_request}"'
    )


def parse_generated_content(text: str) -> GeneratedContent:
    """Parse the model output into a GeneratedContent pair.

    Fenced code block markers and chatter around the JSON object are ignored.
    Missing keys fall back to placeholder text; anything that is not a JSON
    object raises GenerationParseError.
    """
    cleaned = _FENCE_RE.sub("", text or "").strip()
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError:
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            raise GenerationParseError("Generated content is not valid JSON") from None
        try:
            payload = json.loads(cleaned[start : end + 1])
        except json.JSONDecodeError as exc:
            raise GenerationParseError(f"Generated content is not valid JSON: {exc}") from exc

    if not isinstance(payload, dict):
        raise GenerationParseError("Generated content is not a JSON object")

    message = payload.get(MESSAGE_KEY)
    tip = payload.get(TIP_KEY)
    return GeneratedContent(
        message=str(message) if message else MISSING_CONTENT.message,
        tip=str(tip) if tip else MISSING_CONTENT.tip,
    )


def _extract_text(body: Any) -> str:
    try:
        parts = body["candidates"][0]["content"]["parts"]
        return "".join(str(part.get("text", "")) for part in parts)
    except (KeyError, IndexError, TypeError, AttributeError) as exc:
        raise GenerationParseError("Unexpected response shape from generation service") from exc


class ContentGenerationClient:
    """HTTP client wrapper for the content generation service."""

    def __init__(
        self,
        config: GenerationConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.config = config or load_generation_config()
        self._transport = transport
        self._sleep = sleep
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return bool(self.config.api_key)

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    base_url=self.config.base_url,
                    timeout=httpx.Timeout(self.config.timeout_seconds),
                    transport=self._transport,
                )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _submit_once(self, prompt: str) -> str:
        """Single HTTP call without retries/backoff."""
        if not self.enabled:
            raise GenerationError("Content generation is not configured (missing API key)")

        client = await self._ensure_client()
        try:
            response = await client.post(
                f"/models/{self.config.model}:generateContent",
                json={"contents": [{"parts": [{"text": prompt}]}]},
                headers={"x-goog-api-key": self.config.api_key or ""},
            )
        except httpx.HTTPError as exc:
            raise GenerationError(f"Generation request failed: {exc}") from exc

        if response.status_code == HTTP_TOO_MANY_REQUESTS:
            raise GenerationRateLimited("Generation service rate limit hit (429)")
        if response.status_code != HTTP_OK:
            raise GenerationError(
                f"Unexpected generation response ({response.status_code})",
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise GenerationParseError("Generation response body is not JSON") from exc
        return _extract_text(body)

    async def generate(self, pair: ContentRequestPair) -> GeneratedContent:
        """Return generated content for ``pair``.

        Fixed pairs are returned verbatim without contacting the service.
        Rate-limited attempts are retried ``max_retries`` times, waiting
        ``initial_backoff_seconds * 2**attempt`` between attempts.

        Raises:
            GenerationParseError: The service answered with an unusable payload.
            GenerationError: Any other failure, including exhausted retries.
        """
        if pair.is_fixed:
            return GeneratedContent(pair.message_request, pair.tip_request)

        prompt = build_prompt(pair)
        max_retries = self.config.max_retries

        for attempt in range(max_retries + 1):
            try:
                text = await self._submit_once(prompt)
            except GenerationRateLimited as exc:
                if attempt >= max_retries:
                    logger.error("Generation rate limited after %d attempts", attempt + 1)
                    raise GenerationError(
                        f"Rate limit retries exhausted after {attempt + 1} attempts"
                    ) from exc
                delay = self.config.initial_backoff_seconds * (2**attempt)
                logger.warning(
                    "Attempt %d: rate limit hit (429). Retrying in %.0f seconds...",
                    attempt + 1,
                    delay,
                )
                await self._sleep(delay)
                continue

            return parse_generated_content(text)

        raise GenerationError("Generation loop exited without a result")  # pragma: no cover
