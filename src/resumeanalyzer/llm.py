"""Structured-generation requests against the inference service."""

from __future__ import annotations

import asyncio
import json
import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Protocol, runtime_checkable

import structlog
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from .errors import AnalyzerError, ConfigurationError, MalformedResponseError, RetriesExhaustedError

DEFAULT_MODEL = "gemini-2.5-flash"

SleepFn = Callable[[float], Awaitable[None]]

_CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")


@dataclass(slots=True, frozen=True)
class ContentPart:
    """One content part: either inline bytes with a media type or prompt text."""

    text: str | None = None
    data: bytes | None = field(default=None, repr=False)
    media_type: str | None = None

    @classmethod
    def from_text(cls, text: str) -> "ContentPart":
        return cls(text=text)

    @classmethod
    def from_bytes(cls, data: bytes, media_type: str) -> "ContentPart":
        return cls(data=data, media_type=media_type)

    @property
    def is_blob(self) -> bool:
        return self.data is not None


@dataclass(slots=True, frozen=True)
class InferenceRequest:
    """Structured-generation request: content parts plus a response schema."""

    parts: tuple[ContentPart, ...]
    response_schema: dict[str, Any]
    model: str = DEFAULT_MODEL


@runtime_checkable
class InferenceBackend(Protocol):
    """Black-box inference capability.

    Implementations submit the request and return the structured response text,
    raising on any failure. Rate-limit failures must carry a 429 code or a
    resource-exhaustion marker in their message.
    """

    async def generate(self, request: InferenceRequest) -> str:
        """Return JSON text conforming to ``request.response_schema``."""


class GeminiBackend:
    """Inference backend using the Google Gen AI SDK."""

    def __init__(self, api_key: str | None, *, model: str = DEFAULT_MODEL, client: Any | None = None):
        if client is None:
            if not api_key:
                raise ConfigurationError()
            try:
                client = genai.Client(api_key=api_key)
            except Exception as exc:  # noqa: BLE001
                raise ConfigurationError() from exc
        self._client = client
        self._model = model

    @property
    def model(self) -> str:
        return self._model

    async def generate(self, request: InferenceRequest) -> str:
        response = await self._client.aio.models.generate_content(
            model=request.model or self._model,
            contents=[self._to_part(part) for part in request.parts],
            config=genai_types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=request.response_schema,
            ),
        )
        text = response.text
        if not text:
            raise MalformedResponseError("Inference service returned an empty response")
        return text

    @staticmethod
    def _to_part(part: ContentPart) -> genai_types.Part:
        if part.is_blob:
            return genai_types.Part.from_bytes(data=part.data, mime_type=part.media_type)
        return genai_types.Part.from_text(text=part.text or "")


def is_rate_limit_error(exc: BaseException) -> bool:
    """Return True when ``exc`` signals HTTP 429 or resource exhaustion."""
    if isinstance(exc, genai_errors.APIError):
        if exc.code == 429 or (exc.status or "").upper() == "RESOURCE_EXHAUSTED":
            return True
    message = str(exc)
    return "429" in message or "resource_exhausted" in message.lower()


def is_rate_limit_failure(exc: BaseException) -> bool:
    """Return True when a call failed because of rate limiting.

    Local pipeline errors never count, whatever their message says.
    """
    if isinstance(exc, RetriesExhaustedError):
        return True
    return not isinstance(exc, AnalyzerError) and is_rate_limit_error(exc)


@dataclass
class RetryPolicy:
    """Bounded exponential backoff for rate-limited calls (seconds)."""

    attempts: int = 4
    initial_delay: float = 2.0
    max_jitter: float = 1.0

    def wait_strategy(self):
        return wait_exponential(multiplier=self.initial_delay, exp_base=2) + wait_random(0, self.max_jitter)


class InferenceClient:
    """Execute one structured request, retrying only on rate limits.

    Stateless between calls: every call starts with a fresh backoff schedule.
    """

    def __init__(
        self,
        backend: InferenceBackend,
        *,
        policy: RetryPolicy | None = None,
        sleep: SleepFn | None = None,
    ) -> None:
        self._backend = backend
        self._policy = policy or RetryPolicy()
        self._sleep = sleep or asyncio.sleep
        self._logger = structlog.get_logger(__name__)

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def generate(self, request: InferenceRequest) -> str:
        """Return raw structured text, re-raising terminal failures unchanged.

        Raises :class:`RetriesExhaustedError` once every attempt was rate limited.
        """
        retrying = AsyncRetrying(
            retry=retry_if_exception(is_rate_limit_error),
            stop=stop_after_attempt(self._policy.attempts),
            wait=self._policy.wait_strategy(),
            sleep=self._sleep,
            before_sleep=self._log_retry,
            reraise=False,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    return await self._backend.generate(request)
        except RetryError as exc:
            cause = exc.last_attempt.exception()
            self._logger.error(
                "inference.retries_exhausted",
                attempts=self._policy.attempts,
                error=str(cause),
            )
            raise RetriesExhaustedError(self._policy.attempts) from cause
        raise AssertionError("unreachable")  # pragma: no cover

    async def generate_json(self, request: InferenceRequest) -> dict[str, Any]:
        """Like :meth:`generate`, decoding the response into a JSON object."""
        return parse_structured_text(await self.generate(request))

    def _log_retry(self, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        wait = retry_state.next_action.sleep if retry_state.next_action else 0.0
        self._logger.warning(
            "inference.retry",
            attempt=retry_state.attempt_number,
            wait_seconds=round(wait, 3),
            error=str(exc),
        )


def parse_structured_text(text: str) -> dict[str, Any]:
    """Decode a JSON object, tolerating a surrounding Markdown code fence."""
    raw = _CODE_FENCE_RE.sub("", (text or "").strip())
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise MalformedResponseError(f"Response is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedResponseError("Response JSON is not an object")
    return data


__all__ = [
    "ContentPart",
    "DEFAULT_MODEL",
    "GeminiBackend",
    "InferenceBackend",
    "InferenceClient",
    "InferenceRequest",
    "RetryPolicy",
    "is_rate_limit_error",
    "is_rate_limit_failure",
    "parse_structured_text",
]
