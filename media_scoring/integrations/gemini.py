"""Gemini (Generative Language API) integration client for rubric scoring.

Features:
- Async HTTP client using httpx (direct REST calls to generateContent)
- Structured JSON output via responseMimeType/responseSchema
- Retry with exponential backoff on rate limits only (429 / RESOURCE_EXHAUSTED)
- Request/response logging, masked API key
- Injectable sleep so backoff can run against a fake clock

RETRY POLICY:
- Rate-limited calls are retried up to max_retries more times, waiting
  retry_delay, then 2x, then 4x (2s, 4s, 8s with the defaults)
- Every other failure (auth, 4xx, 5xx, timeout, network) raises immediately
- When retries are exhausted the last rate-limit error is raised
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from media_scoring.core.config import get_settings
from media_scoring.core.logging import get_logger, scoring_logger

logger = get_logger(__name__)

RATE_LIMIT_STATUS = "RESOURCE_EXHAUSTED"

SleepFunc = Callable[[float], Awaitable[None]]


class ScoringError(Exception):
    """Base exception for AI scoring errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class ScoringRateLimitedError(ScoringError):
    """Raised when the AI endpoint reports a rate limit (429 / RESOURCE_EXHAUSTED)."""

    def __init__(
        self,
        message: str,
        status_code: int | None = 429,
        response_body: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code, response_body=response_body)


class ScoringAuthError(ScoringError):
    """Raised when authentication fails (401/403)."""

    pass


class ScoringTimeoutError(ScoringError):
    """Raised when a request times out."""

    pass


class EmptyAIResponseError(ScoringError):
    """Raised when the AI response carries no text payload."""

    pass


def _error_details(response: httpx.Response) -> tuple[str, str | None, dict[str, Any] | None]:
    """Extract (message, status, body) from a Google API error response."""
    try:
        body = response.json() if response.content else None
    except ValueError:
        body = None

    if isinstance(body, dict):
        error = body.get("error") or {}
        if isinstance(error, dict):
            return (
                str(error.get("message") or body),
                error.get("status"),
                body,
            )
        return str(body), None, body

    return response.text[:500] or f"HTTP {response.status_code}", None, None


def _response_text(data: dict[str, Any]) -> str | None:
    """Return the first candidate's text part, or None if absent."""
    candidates = data.get("candidates") or []
    if not candidates:
        return None
    content = candidates[0].get("content") or {}
    parts = content.get("parts") or []
    texts = [part.get("text") for part in parts if part.get("text")]
    return "".join(texts) if texts else None


class GeminiClient:
    """Async client for the Gemini generateContent REST endpoint.

    Provides structured JSON generation with:
    - Rate-limit-only retry with exponential backoff
    - Comprehensive logging
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        api_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None,
        sleep: SleepFunc | None = None,
    ) -> None:
        """Initialize Gemini client.

        Args:
            api_key: API key. Defaults to settings.
            model: Model to use. Defaults to settings.
            api_url: API base URL. Defaults to settings.
            timeout: Request timeout in seconds. Defaults to settings.
            max_retries: Additional attempts after a rate limit. Defaults to settings.
            retry_delay: First backoff delay in seconds. Defaults to settings.
            sleep: Awaitable sleep used for backoff. Defaults to asyncio.sleep.
        """
        settings = get_settings()

        self._api_key = api_key or settings.gemini_api_key
        self._model = model or settings.gemini_model
        self._api_url = (api_url or settings.gemini_api_url).rstrip("/")
        self._timeout = timeout or settings.gemini_timeout
        self._max_retries = (
            max_retries if max_retries is not None else settings.scoring_max_retries
        )
        self._retry_delay = (
            retry_delay if retry_delay is not None else settings.scoring_retry_delay
        )
        self._sleep: SleepFunc = sleep or asyncio.sleep

        # HTTP client (created lazily)
        self._client: httpx.AsyncClient | None = None
        self._available = bool(self._api_key)

    @property
    def available(self) -> bool:
        """Check if Gemini is configured and available."""
        return self._available

    @property
    def model(self) -> str:
        """Get the model being used."""
        return self._model

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            headers: dict[str, str] = {
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
            if self._api_key:
                headers["x-goog-api-key"] = self._api_key

            self._client = httpx.AsyncClient(
                base_url=self._api_url,
                headers=headers,
                timeout=httpx.Timeout(self._timeout),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
        logger.info("Gemini client closed")

    async def _generate_once(
        self,
        request_body: dict[str, Any],
        prompt_length: int,
        attempt: int,
    ) -> str:
        """Issue a single generateContent call and return the response text."""
        client = await self._get_client()
        attempt_start = time.monotonic()

        scoring_logger.api_call_start(self._model, prompt_length, retry_attempt=attempt)

        try:
            response = await client.post(
                f"/v1beta/models/{self._model}:generateContent", json=request_body
            )
        except httpx.TimeoutException as e:
            duration_ms = (time.monotonic() - attempt_start) * 1000
            scoring_logger.timeout(self._model, self._timeout)
            scoring_logger.api_call_error(
                self._model,
                duration_ms,
                None,
                "Request timed out",
                "TimeoutError",
                retry_attempt=attempt,
            )
            raise ScoringTimeoutError(
                f"Request timed out after {self._timeout}s"
            ) from e
        except httpx.RequestError as e:
            duration_ms = (time.monotonic() - attempt_start) * 1000
            scoring_logger.api_call_error(
                self._model,
                duration_ms,
                None,
                str(e),
                type(e).__name__,
                retry_attempt=attempt,
            )
            raise ScoringError(f"Request failed: {e}") from e

        duration_ms = (time.monotonic() - attempt_start) * 1000

        if response.status_code >= 400:
            message, status, body = _error_details(response)

            if response.status_code == 429 or status == RATE_LIMIT_STATUS:
                raise ScoringRateLimitedError(
                    f"Rate limit exceeded ({response.status_code}): {message}",
                    status_code=response.status_code,
                    response_body=body,
                )

            if response.status_code in (401, 403):
                scoring_logger.auth_failure(response.status_code)
                scoring_logger.api_call_error(
                    self._model,
                    duration_ms,
                    response.status_code,
                    "Authentication failed",
                    "AuthError",
                    retry_attempt=attempt,
                )
                raise ScoringAuthError(
                    f"Authentication failed ({response.status_code})",
                    status_code=response.status_code,
                    response_body=body,
                )

            error_type = "ServerError" if response.status_code >= 500 else "ClientError"
            scoring_logger.api_call_error(
                self._model,
                duration_ms,
                response.status_code,
                message,
                error_type,
                retry_attempt=attempt,
            )
            raise ScoringError(
                f"AI request failed ({response.status_code}): {message}",
                status_code=response.status_code,
                response_body=body,
            )

        try:
            response_data = response.json()
        except ValueError as e:
            raise ScoringError(
                f"AI response is not valid JSON: {e}",
                status_code=response.status_code,
            ) from e

        # A 200 can still carry a RESOURCE_EXHAUSTED error envelope
        error = response_data.get("error") if isinstance(response_data, dict) else None
        if isinstance(error, dict) and error.get("status") == RATE_LIMIT_STATUS:
            raise ScoringRateLimitedError(
                f"Rate limit exceeded: {error.get('message', RATE_LIMIT_STATUS)}",
                status_code=response.status_code,
                response_body=response_data,
            )

        text = _response_text(response_data) if isinstance(response_data, dict) else None
        if not text:
            scoring_logger.api_call_error(
                self._model,
                duration_ms,
                response.status_code,
                "Empty response text",
                "EmptyAIResponseError",
                retry_attempt=attempt,
            )
            raise EmptyAIResponseError(
                "AI 返回了空响应", status_code=response.status_code
            )

        usage = response_data.get("usageMetadata") or {}
        scoring_logger.api_call_success(
            self._model,
            duration_ms,
            input_tokens=usage.get("promptTokenCount"),
            output_tokens=usage.get("candidatesTokenCount"),
            retry_attempt=attempt,
        )
        scoring_logger.response_body(self._model, text, duration_ms)
        return text

    async def generate_json(self, prompt: str, response_schema: dict[str, Any]) -> str:
        """Generate a JSON document constrained by response_schema.

        Args:
            prompt: The full prompt text
            response_schema: OpenAPI-style schema for the structured output

        Returns:
            The raw JSON text of the first candidate

        Raises:
            ScoringRateLimitedError: If every attempt was rate limited
            EmptyAIResponseError: If the response carries no text
            ScoringError: On any other failure (no retry)
        """
        if not self._available:
            raise ScoringError("Gemini not configured (missing API key)")

        request_body: dict[str, Any] = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": response_schema,
            },
        }
        scoring_logger.request_body(self._model, prompt)

        delay = self._retry_delay
        attempt = 0
        while True:
            try:
                return await self._generate_once(request_body, len(prompt), attempt)
            except ScoringRateLimitedError:
                if attempt >= self._max_retries:
                    scoring_logger.rate_limit(self._model, attempt, None)
                    raise
                scoring_logger.rate_limit(self._model, attempt, delay)
                await self._sleep(delay)
                attempt += 1
                delay *= 2


# Global Gemini client instance
gemini_client: GeminiClient | None = None


async def init_gemini() -> GeminiClient:
    """Initialize the global Gemini client.

    Returns:
        Initialized GeminiClient instance
    """
    global gemini_client
    if gemini_client is None:
        gemini_client = GeminiClient()
        if gemini_client.available:
            logger.info(
                "Gemini client initialized",
                extra={"model": gemini_client.model},
            )
        else:
            logger.info("Gemini not configured (missing API key)")
    return gemini_client


async def close_gemini() -> None:
    """Close the global Gemini client."""
    global gemini_client
    if gemini_client:
        await gemini_client.close()
        gemini_client = None


async def get_gemini() -> GeminiClient:
    """Dependency for getting the Gemini client."""
    global gemini_client
    if gemini_client is None:
        await init_gemini()
    return gemini_client  # type: ignore[return-value]
