"""Application configuration loaded from environment variables.

All configuration is via environment variables (or a local .env file).
Batch-level scoring inputs (tiers, audience mode, project context) are NOT
settings: they travel with each batch as an immutable BatchConfig.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Media Rubric Scoring")
    app_version: str = Field(default="1.0.0")
    debug: bool = Field(default=False)
    environment: str = Field(default="development")

    # Server
    port: int = Field(default=8000, description="Port to bind to")
    host: str = Field(default="0.0.0.0", description="Host to bind to")
    frontend_url: str | None = Field(
        default=None, description="Allowed CORS origin (all origins if unset)"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Log format: json or text")

    # Gemini (AI scoring transport)
    gemini_api_key: str | None = Field(
        default=None,
        description="Google Generative Language API key",
    )
    gemini_model: str = Field(
        default="gemini-3-flash-preview",
        description="Model used for rubric scoring",
    )
    gemini_api_url: str = Field(
        default="https://generativelanguage.googleapis.com",
        description="Generative Language API base URL",
    )
    gemini_timeout: float = Field(
        default=60.0, description="AI scoring request timeout in seconds"
    )

    # Rubric scoring
    scoring_max_retries: int = Field(
        default=3, description="Additional attempts after a rate-limited call"
    )
    scoring_retry_delay: float = Field(
        default=2.0, description="First rate-limit backoff delay in seconds (doubles)"
    )
    scoring_inter_call_delay: float = Field(
        default=0.8, description="Pause between per-row AI calls within a batch"
    )
    scoring_max_content_chars: int = Field(
        default=5000, description="Content is clipped to this many characters"
    )

    # Content proxy (URL -> text)
    content_proxy_url: str = Field(
        default="https://r.jina.ai/",
        description="Prefix prepended to a target URL to fetch its readable text",
    )
    content_fetch_timeout: float = Field(
        default=30.0, description="Content fetch timeout in seconds"
    )

    # Metrics
    volume_offset: float = Field(
        default=10.0, description="Offset added inside log10 for volume quality"
    )

    # Document extraction
    min_document_chars: int = Field(
        default=10, description="Minimum extracted characters for document analysis"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
