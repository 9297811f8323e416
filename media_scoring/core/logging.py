"""Structured logging configuration.

All logs go to stdout. Uses JSON format by default, plain text when
LOG_FORMAT=text.

ERROR LOGGING REQUIREMENTS:
- Log all outbound API calls with endpoint, timing and retry attempt
- Log rate limits (429 / RESOURCE_EXHAUSTED) and auth failures at WARNING
- Never log API keys
- Log batch state transitions at INFO level
- Every per-row failure is logged with its row index
"""

import logging
import sys
from datetime import UTC, datetime
from typing import Any

from pythonjsonlogger import jsonlogger

from media_scoring.core.config import get_settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):  # type: ignore[name-defined]
    """Custom JSON formatter with additional fields."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(UTC).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)


def setup_logging() -> None:
    """Configure application logging.

    Uses JSON format in production, text format in development.
    """
    settings = get_settings()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level.upper()))
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)

    formatter: logging.Formatter
    if settings.log_format == "json":
        formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # Set log levels for noisy libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name."""
    return logging.getLogger(name)


def _truncate_text(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + f"... (truncated, {len(text)} chars)"


class ContentFetchLogger:
    """Logger for content proxy fetches.

    Fetches are best-effort: failures are logged at WARNING and never raised.
    """

    def __init__(self) -> None:
        self.logger = get_logger("content_fetch")

    def fetch_start(self, url: str) -> None:
        """Log outbound fetch at DEBUG level."""
        self.logger.debug(
            "Content fetch started",
            extra={"target_url": url[:200]},
        )

    def fetch_success(self, url: str, duration_ms: float, content_length: int) -> None:
        """Log successful fetch at DEBUG level."""
        self.logger.debug(
            "Content fetch completed",
            extra={
                "target_url": url[:200],
                "duration_ms": round(duration_ms, 2),
                "content_length": content_length,
                "success": True,
            },
        )

    def fetch_failure(
        self,
        url: str,
        duration_ms: float,
        error: str,
        error_type: str,
        status_code: int | None = None,
    ) -> None:
        """Log a failed fetch at WARNING level."""
        self.logger.warning(
            "Content fetch failed, continuing without remote content",
            extra={
                "target_url": url[:200],
                "duration_ms": round(duration_ms, 2),
                "status_code": status_code,
                "error": error,
                "error_type": error_type,
                "success": False,
            },
        )


# Singleton content fetch logger
content_fetch_logger = ContentFetchLogger()


class ScoringLogger:
    """Logger for AI scoring calls.

    Logs outbound calls with model, timing and retry attempt.
    Logs request/response bodies at DEBUG level (truncated).
    Handles timeouts, rate limits (429), auth failures (401/403).
    """

    def __init__(self) -> None:
        self.logger = get_logger("scoring")

    def api_call_start(
        self,
        model: str,
        prompt_length: int,
        retry_attempt: int = 0,
    ) -> None:
        """Log outbound API call start at DEBUG level."""
        self.logger.debug(
            f"Scoring API call: {model}",
            extra={
                "model": model,
                "prompt_length": prompt_length,
                "retry_attempt": retry_attempt,
            },
        )

    def api_call_success(
        self,
        model: str,
        duration_ms: float,
        input_tokens: int | None = None,
        output_tokens: int | None = None,
        retry_attempt: int = 0,
    ) -> None:
        """Log successful API call at DEBUG level with token usage."""
        self.logger.debug(
            f"Scoring API call completed: {model}",
            extra={
                "model": model,
                "duration_ms": round(duration_ms, 2),
                "input_tokens": input_tokens,
                "output_tokens": output_tokens,
                "retry_attempt": retry_attempt,
                "success": True,
            },
        )

    def api_call_error(
        self,
        model: str,
        duration_ms: float,
        status_code: int | None,
        error: str,
        error_type: str,
        retry_attempt: int = 0,
    ) -> None:
        """Log failed API call at WARNING or ERROR level based on status."""
        # 4xx at WARNING, 5xx and others at ERROR
        level = logging.WARNING if status_code and 400 <= status_code < 500 else logging.ERROR
        self.logger.log(
            level,
            f"Scoring API call failed: {model}",
            extra={
                "model": model,
                "duration_ms": round(duration_ms, 2),
                "status_code": status_code,
                "error": error,
                "error_type": error_type,
                "retry_attempt": retry_attempt,
                "success": False,
            },
        )

    def rate_limit(
        self,
        model: str,
        retry_attempt: int,
        delay_seconds: float | None,
    ) -> None:
        """Log rate limit at WARNING level.

        delay_seconds is None when no retries remain.
        """
        self.logger.warning(
            "Scoring API rate limit hit",
            extra={
                "model": model,
                "retry_attempt": retry_attempt,
                "delay_seconds": delay_seconds,
                "will_retry": delay_seconds is not None,
            },
        )

    def auth_failure(self, status_code: int) -> None:
        """Log authentication failure (401/403) at WARNING level."""
        self.logger.warning(
            f"Scoring API authentication failed ({status_code})",
            extra={"status_code": status_code},
        )

    def timeout(self, model: str, timeout_seconds: float) -> None:
        """Log request timeout at WARNING level."""
        self.logger.warning(
            "Scoring API request timeout",
            extra={"model": model, "timeout_seconds": timeout_seconds},
        )

    def request_body(self, model: str, prompt: str) -> None:
        """Log request prompt at DEBUG level (truncated)."""
        self.logger.debug(
            "Scoring API request body",
            extra={"model": model, "prompt": _truncate_text(prompt, 500)},
        )

    def response_body(self, model: str, response_text: str, duration_ms: float) -> None:
        """Log response text at DEBUG level (truncated)."""
        self.logger.debug(
            "Scoring API response body",
            extra={
                "model": model,
                "response": _truncate_text(response_text, 1000),
                "response_length": len(response_text),
                "duration_ms": round(duration_ms, 2),
            },
        )


# Singleton scoring logger
scoring_logger = ScoringLogger()


class BatchLogger:
    """Logger for batch scoring runs."""

    def __init__(self) -> None:
        self.logger = get_logger("batch")

    def state_change(
        self, batch_id: str, previous_state: str, new_state: str, **fields: Any
    ) -> None:
        """Log batch state transition at INFO level."""
        self.logger.info(
            f"Batch state change: {previous_state} -> {new_state}",
            extra={
                "batch_id": batch_id,
                "previous_state": previous_state,
                "new_state": new_state,
                **fields,
            },
        )

    def row_scored(
        self,
        batch_id: str,
        row_index: int,
        total_rows: int,
        total_score: str,
        skipped_ai: bool,
    ) -> None:
        """Log a completed row at DEBUG level."""
        self.logger.debug(
            "Batch row scored",
            extra={
                "batch_id": batch_id,
                "row_index": row_index,
                "total_rows": total_rows,
                "total_score": total_score,
                "skipped_ai": skipped_ai,
            },
        )

    def row_failed(
        self, batch_id: str, row_index: int, error: str, error_type: str
    ) -> None:
        """Log a per-row scoring failure at WARNING level."""
        self.logger.warning(
            "Batch row scoring failed, recording failure and continuing",
            extra={
                "batch_id": batch_id,
                "row_index": row_index,
                "error": error,
                "error_type": error_type,
            },
        )

    def extraction_failed(self, batch_id: str, error: str, error_type: str) -> None:
        """Log a batch-level extraction failure at ERROR level."""
        self.logger.error(
            "Batch row extraction failed, aborting batch",
            extra={
                "batch_id": batch_id,
                "error": error,
                "error_type": error_type,
            },
        )

    def observer_failed(self, batch_id: str, error: str, error_type: str) -> None:
        """Log a progress observer failure at WARNING level."""
        self.logger.warning(
            "Progress observer failed",
            extra={
                "batch_id": batch_id,
                "error": error,
                "error_type": error_type,
            },
        )

    def cancelled(self, batch_id: str, completed: int, total: int) -> None:
        """Log cooperative cancellation at INFO level."""
        self.logger.info(
            "Batch cancelled between rows",
            extra={"batch_id": batch_id, "completed": completed, "total": total},
        )


# Singleton batch logger
batch_logger = BatchLogger()
