"""Integrations layer - External service clients.

Integrations handle communication with external APIs and services.
They abstract the details of external service protocols.
"""

from media_scoring.integrations.content_proxy import (
    ContentFetchError,
    ContentProxyClient,
    close_content_proxy,
    get_content_proxy,
    init_content_proxy,
)
from media_scoring.integrations.gemini import (
    EmptyAIResponseError,
    GeminiClient,
    ScoringAuthError,
    ScoringError,
    ScoringRateLimitedError,
    ScoringTimeoutError,
    close_gemini,
    get_gemini,
    init_gemini,
)

__all__ = [
    # Content proxy
    "ContentFetchError",
    "ContentProxyClient",
    "close_content_proxy",
    "get_content_proxy",
    "init_content_proxy",
    # Gemini
    "EmptyAIResponseError",
    "GeminiClient",
    "ScoringAuthError",
    "ScoringError",
    "ScoringRateLimitedError",
    "ScoringTimeoutError",
    "close_gemini",
    "get_gemini",
    "init_gemini",
]
