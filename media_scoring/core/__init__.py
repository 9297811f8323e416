"""Core utilities and configuration."""

from media_scoring.core.config import Settings, get_settings
from media_scoring.core.logging import (
    batch_logger,
    content_fetch_logger,
    get_logger,
    scoring_logger,
    setup_logging,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Logging
    "batch_logger",
    "content_fetch_logger",
    "get_logger",
    "scoring_logger",
    "setup_logging",
]
