"""Batch scoring orchestrator.

Drives the rows of one upload strictly sequentially through:
resolve content -> volume/tier metrics -> AI rubric (or floor) -> compose.

State machine: idle -> running -> completed | failed | cancelled

- One batch at a time per service; a second start raises BatchInProgressError
- A failing row is recorded with floor scores and an AI分析失败 comment, and
  the batch continues
- A failure to read the rows themselves fails the batch with no results
- Cancellation is cooperative and checked between rows; finished rows are kept
- Progress is floor(completed / total * 100) and reaches 100 only after the
  last row

ERROR LOGGING REQUIREMENTS:
- Log state transitions at INFO level
- Include batch_id and row_index in all row logs
- Log per-row failures with error type, never raise them
"""

import asyncio
import inspect
import time
import uuid
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from media_scoring.core.config import get_settings
from media_scoring.core.logging import batch_logger, get_logger
from media_scoring.integrations.content_proxy import get_content_proxy
from media_scoring.schemas.scoring import (
    AIAnalysisResult,
    BatchConfig,
    BatchResultRecord,
)
from media_scoring.services.content_resolver import ContentResolver
from media_scoring.services.metrics import media_tier_score, volume_quality
from media_scoring.services.rubric_scorer import RubricScorer, get_rubric_scorer
from media_scoring.services.score_composer import compose_record
from media_scoring.utils.row_extraction import RowFields, extract_row_fields, extract_rows

logger = get_logger(__name__)

FLOOR_SCORE = 1.0
FLOOR_COMMENT = "待评估"
FAILURE_COMMENT_PREFIX = "AI分析失败"

SleepFunc = Callable[[float], Awaitable[None]]


class BatchStatus(str, Enum):
    """Lifecycle states of a batch run."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset(
    {BatchStatus.COMPLETED, BatchStatus.FAILED, BatchStatus.CANCELLED}
)


class BatchScoringError(Exception):
    """Base exception for batch scoring errors."""

    pass


class BatchInProgressError(BatchScoringError):
    """Raised when a batch is started while another one is running."""

    def __init__(self, active_batch_id: str):
        self.active_batch_id = active_batch_id
        super().__init__(f"Batch {active_batch_id} is already running")


class BatchNotFoundError(BatchScoringError):
    """Raised when a batch id is unknown."""

    def __init__(self, batch_id: str):
        self.batch_id = batch_id
        super().__init__(f"Batch not found: {batch_id}")


@dataclass(frozen=True)
class BatchProgress:
    """Snapshot of a batch run handed to progress observers."""

    batch_id: str
    status: BatchStatus
    completed: int
    total: int
    progress: int
    error: str | None = None


@dataclass
class BatchRun:
    """Mutable state of one batch run.

    Only the orchestrator writes to it; readers take copies of results.
    """

    batch_id: str
    status: BatchStatus = BatchStatus.IDLE
    completed: int = 0
    total: int = 0
    progress: int = 0
    results: list[BatchResultRecord] = field(default_factory=list)
    error: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    config: BatchConfig | None = None
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event)

    @property
    def is_finished(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def snapshot(self) -> BatchProgress:
        return BatchProgress(
            batch_id=self.batch_id,
            status=self.status,
            completed=self.completed,
            total=self.total,
            progress=self.progress,
            error=self.error,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert run state to a dictionary for the status API."""
        return {
            "batch_id": self.batch_id,
            "status": self.status.value,
            "completed": self.completed,
            "total": self.total,
            "progress": self.progress,
            "error": self.error,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
        }


ProgressObserver = Callable[[BatchProgress], Awaitable[None] | None]


def floor_result(comment: str = FLOOR_COMMENT) -> AIAnalysisResult:
    """Neutral sub-scores used when a row cannot be analyzed."""
    return AIAnalysisResult(
        km_score=FLOOR_SCORE,
        acquisition_score=FLOOR_SCORE,
        audience_precision_score=FLOOR_SCORE,
        comment=comment,
    )


def progress_percent(completed: int, total: int) -> int:
    """Percent complete, rounded down; 100 for an empty batch."""
    if total <= 0:
        return 100
    return completed * 100 // total


class BatchScoringService:
    """Runs batches of rows through the scoring pipeline."""

    def __init__(
        self,
        scorer: RubricScorer,
        resolver: ContentResolver,
        inter_call_delay: float | None = None,
        volume_offset: float | None = None,
        sleep: SleepFunc | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            scorer: AI rubric scorer.
            resolver: Row content resolver.
            inter_call_delay: Pause before every AI call but the first in a
                batch. Defaults to settings.
            volume_offset: Offset used by volume_quality. Defaults to settings.
            sleep: Awaitable sleep used for pacing. Defaults to asyncio.sleep.
        """
        settings = get_settings()

        self._scorer = scorer
        self._resolver = resolver
        self._inter_call_delay = (
            inter_call_delay
            if inter_call_delay is not None
            else settings.scoring_inter_call_delay
        )
        self._volume_offset = (
            volume_offset if volume_offset is not None else settings.volume_offset
        )
        self._sleep: SleepFunc = sleep or asyncio.sleep

        self._runs: dict[str, BatchRun] = {}
        self._active: BatchRun | None = None

    @property
    def active_run(self) -> BatchRun | None:
        """The batch currently running, if any."""
        return self._active

    def get_run(self, batch_id: str) -> BatchRun:
        """Look up a batch run by id.

        Raises:
            BatchNotFoundError: If the id is unknown.
        """
        run = self._runs.get(batch_id)
        if run is None:
            raise BatchNotFoundError(batch_id)
        return run

    def _set_status(self, run: BatchRun, status: BatchStatus, **fields: Any) -> None:
        previous = run.status
        run.status = status
        batch_logger.state_change(run.batch_id, previous.value, status.value, **fields)

    def start(
        self, config: BatchConfig | None = None, batch_id: str | None = None
    ) -> BatchRun:
        """Reserve the orchestrator for a new batch and mark it running.

        Raises:
            BatchInProgressError: If another batch is still running.
        """
        if self._active is not None:
            raise BatchInProgressError(self._active.batch_id)

        run = BatchRun(batch_id=batch_id or str(uuid.uuid4()), config=config)
        run.started_at = datetime.now(UTC)
        self._runs[run.batch_id] = run
        self._active = run
        self._set_status(run, BatchStatus.RUNNING)
        return run

    def cancel(self, batch_id: str) -> BatchRun:
        """Request cooperative cancellation of a batch.

        Has no effect on a batch that already finished.
        """
        run = self.get_run(batch_id)
        if not run.is_finished:
            run.cancel_event.set()
            logger.info("Batch cancellation requested", extra={"batch_id": batch_id})
        return run

    async def _notify(self, run: BatchRun, observer: ProgressObserver | None) -> None:
        if observer is None:
            return
        try:
            result = observer(run.snapshot())
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            batch_logger.observer_failed(run.batch_id, str(e), type(e).__name__)

    async def _finish(
        self,
        run: BatchRun,
        status: BatchStatus,
        observer: ProgressObserver | None,
        **fields: Any,
    ) -> BatchRun:
        run.completed_at = datetime.now(UTC)
        self._set_status(run, status, **fields)
        if self._active is run:
            self._active = None
        await self._notify(run, observer)
        return run

    async def _score_row(
        self,
        fields: RowFields,
        config: BatchConfig,
        ai_calls: int,
    ) -> tuple[AIAnalysisResult, bool]:
        """Score one row's content; returns (analysis, ai_called)."""
        content = await self._resolver.resolve(fields)

        if not content and not fields.media_name:
            return floor_result(), False

        if ai_calls > 0 and self._inter_call_delay > 0:
            await self._sleep(self._inter_call_delay)

        analysis = await self._scorer.score(
            content,
            config.audience_mode,
            config.project.key_message,
            config.project.description,
            media_label=fields.display_media_name,
        )
        return analysis, True

    async def execute(
        self,
        run: BatchRun,
        rows: Iterable[Mapping[str, Any]],
        config: BatchConfig,
        observer: ProgressObserver | None = None,
    ) -> BatchRun:
        """Process rows for a run previously reserved with start()."""
        start_time = time.monotonic()
        run.config = config

        try:
            row_list = list(rows)
        except Exception as e:
            batch_logger.extraction_failed(run.batch_id, str(e), type(e).__name__)
            run.error = str(e)
            run.results = []
            return await self._finish(run, BatchStatus.FAILED, observer)

        run.total = len(row_list)
        try:
            return await self._process_rows(run, row_list, config, observer, start_time)
        except Exception as e:
            logger.error(
                "Batch aborted by unexpected error",
                extra={
                    "batch_id": run.batch_id,
                    "error": str(e),
                    "error_type": type(e).__name__,
                },
                exc_info=True,
            )
            run.error = str(e)
            await self._finish(run, BatchStatus.FAILED, observer)
            raise

    async def _process_rows(
        self,
        run: BatchRun,
        row_list: list[Mapping[str, Any]],
        config: BatchConfig,
        observer: ProgressObserver | None,
        start_time: float,
    ) -> BatchRun:
        ai_calls = 0

        for index, row in enumerate(row_list):
            if run.cancel_event.is_set():
                batch_logger.cancelled(run.batch_id, run.completed, run.total)
                return await self._finish(run, BatchStatus.CANCELLED, observer)

            fields = extract_row_fields(row)
            try:
                analysis, ai_called = await self._score_row(fields, config, ai_calls)
            except Exception as e:
                # Counts as an AI call for pacing even though it failed
                ai_called = True
                batch_logger.row_failed(run.batch_id, index, str(e), type(e).__name__)
                analysis = floor_result(f"{FAILURE_COMMENT_PREFIX}: {e}")
            if ai_called:
                ai_calls += 1

            record = compose_record(
                title=fields.display_title,
                media_name=fields.display_media_name,
                analysis=analysis,
                volume_quality=volume_quality(
                    fields.views, fields.interactions, offset=self._volume_offset
                ),
                tier_score=media_tier_score(fields.media_name, config.tiers),
            )
            run.results.append(record)
            run.completed = index + 1
            run.progress = progress_percent(run.completed, run.total)

            batch_logger.row_scored(
                run.batch_id, index, run.total, record.total_score, not ai_called
            )
            await self._notify(run, observer)

        run.progress = 100
        return await self._finish(
            run,
            BatchStatus.COMPLETED,
            observer,
            total_rows=run.total,
            duration_ms=round((time.monotonic() - start_time) * 1000, 2),
        )

    async def run(
        self,
        rows: Iterable[Mapping[str, Any]],
        config: BatchConfig,
        observer: ProgressObserver | None = None,
    ) -> BatchRun:
        """Start and run a batch to completion.

        Raises:
            BatchInProgressError: If another batch is still running.
        """
        run = self.start(config)
        return await self.execute(run, rows, config, observer)

    async def execute_file(
        self,
        run: BatchRun,
        file_bytes: bytes,
        filename: str,
        config: BatchConfig,
        observer: ProgressObserver | None = None,
    ) -> BatchRun:
        """Extract rows from an uploaded spreadsheet and process them.

        A RowExtractionError fails the batch with no results.
        """

        def rows() -> Iterable[Mapping[str, Any]]:
            yield from extract_rows(file_bytes, filename)

        return await self.execute(run, rows(), config, observer)

    async def run_file(
        self,
        file_bytes: bytes,
        filename: str,
        config: BatchConfig,
        observer: ProgressObserver | None = None,
    ) -> BatchRun:
        """Start and run a batch from an uploaded spreadsheet."""
        run = self.start(config)
        return await self.execute_file(run, file_bytes, filename, config, observer)


_batch_scoring_service: BatchScoringService | None = None


async def get_batch_scoring_service() -> BatchScoringService:
    """Get the default BatchScoringService instance (singleton).

    The singleton owns the in-memory registry of batch runs.
    """
    global _batch_scoring_service
    if _batch_scoring_service is None:
        _batch_scoring_service = BatchScoringService(
            scorer=await get_rubric_scorer(),
            resolver=ContentResolver(await get_content_proxy()),
        )
    return _batch_scoring_service
