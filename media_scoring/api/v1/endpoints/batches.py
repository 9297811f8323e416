"""Batch scoring API endpoints.

Provides endpoints for running and inspecting batch scoring:
- POST /api/v1/batches - Upload a spreadsheet and start a batch
- GET /api/v1/batches/{batch_id} - Batch status and progress
- POST /api/v1/batches/{batch_id}/cancel - Request cooperative cancellation
- GET /api/v1/batches/{batch_id}/results - Results, optionally sorted
- GET /api/v1/batches/{batch_id}/summary - Rubric averages and top 10
- GET /api/v1/batches/{batch_id}/export - Download results as xlsx or csv

BatchNotFoundError (404), BatchInProgressError (409) and UnknownSortKeyError
(400) propagate to the application's error handlers.
"""

from typing import Literal
from urllib.parse import quote

from fastapi import (
    APIRouter,
    BackgroundTasks,
    Depends,
    Form,
    Query,
    Request,
    UploadFile,
    status,
)
from fastapi.responses import Response

from media_scoring.core.logging import get_logger
from media_scoring.schemas.scoring import (
    AudienceMode,
    BatchConfig,
    BatchResultsResponse,
    BatchStartResponse,
    BatchStatusResponse,
    BatchSummaryResponse,
    ProjectContext,
    TierConfig,
)
from media_scoring.services.aggregation import (
    SortConfig,
    next_sort_config,
    rubric_averages,
    sort_results,
    top_results,
)
from media_scoring.services.batch_scoring import (
    BatchScoringService,
    get_batch_scoring_service,
)
from media_scoring.services.export import ExportService
from media_scoring.services.score_composer import SCORING_FORMULA

logger = get_logger(__name__)

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

SortDirectionParam = Literal["asc", "desc"]


def _get_request_id(request: Request) -> str:
    """Get request_id from request state."""
    return getattr(request.state, "request_id", "unknown")


def _content_disposition(filename: str) -> str:
    """Attachment header that survives non-ASCII (Chinese) filenames."""
    return f"attachment; filename*=UTF-8''{quote(filename)}"


@router.post(
    "",
    response_model=BatchStartResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start a batch",
    description="""
Upload a spreadsheet (.xlsx or .csv) and score every row in the background.

Poll `GET /batches/{batch_id}` for progress. Only one batch runs at a time;
a second upload while one is running gets 409 `BATCH_IN_PROGRESS`.
""",
)
async def start_batch(
    request: Request,
    background_tasks: BackgroundTasks,
    file: UploadFile,
    audience_mode: AudienceMode = Form(AudienceMode.GENERAL),
    tier1: str = Form(""),
    tier2: str = Form(""),
    tier3: str = Form(""),
    project_name: str = Form(""),
    key_message: str = Form(""),
    project_description: str = Form(""),
    service: BatchScoringService = Depends(get_batch_scoring_service),
) -> BatchStartResponse:
    """Accept an upload and run it as a background batch."""
    upload_name = file.filename or "unnamed"
    config = BatchConfig(
        tiers=TierConfig(tier1=tier1, tier2=tier2, tier3=tier3),
        audience_mode=audience_mode,
        project=ProjectContext(
            name=project_name,
            key_message=key_message,
            description=project_description,
        ),
    )

    # Read the upload before reserving the service so a failed read
    # leaves no batch marked as running
    file_bytes = await file.read()
    run = service.start(config)
    background_tasks.add_task(
        service.execute_file, run, file_bytes, upload_name, config
    )

    logger.info(
        "Batch accepted",
        extra={
            "request_id": _get_request_id(request),
            "batch_id": run.batch_id,
            "upload_filename": upload_name[:50],
            "file_size_bytes": len(file_bytes),
            "audience_mode": audience_mode.value,
        },
    )
    return BatchStartResponse(batch_id=run.batch_id, status=run.status.value)


@router.get(
    "/{batch_id}",
    response_model=BatchStatusResponse,
    summary="Get batch status",
)
async def get_batch_status(
    batch_id: str,
    service: BatchScoringService = Depends(get_batch_scoring_service),
) -> BatchStatusResponse:
    """Return status and progress of a batch."""
    return BatchStatusResponse(**service.get_run(batch_id).to_dict())


@router.post(
    "/{batch_id}/cancel",
    response_model=BatchStatusResponse,
    summary="Cancel a batch",
    description="Request cancellation; the batch stops before its next row.",
)
async def cancel_batch(
    request: Request,
    batch_id: str,
    service: BatchScoringService = Depends(get_batch_scoring_service),
) -> BatchStatusResponse:
    """Request cooperative cancellation of a batch."""
    run = service.cancel(batch_id)
    logger.info(
        "Batch cancel requested",
        extra={"request_id": _get_request_id(request), "batch_id": batch_id},
    )
    return BatchStatusResponse(**run.to_dict())


@router.get(
    "/{batch_id}/results",
    response_model=BatchResultsResponse,
    summary="Get batch results",
    description="""
Results in processing order, or sorted by `sort_key`.

Score columns sort numerically, text columns in pinyin order. Pass an explicit
`direction`, or pass the current table sort as `previous_key` /
`previous_direction` to get column-header toggling: a new column starts
descending and the same column flips.
""",
)
async def get_batch_results(
    batch_id: str,
    sort_key: str | None = Query(None, description="Result field to sort by"),
    direction: SortDirectionParam | None = Query(None),
    previous_key: str | None = Query(None, description="Currently sorted field"),
    previous_direction: SortDirectionParam = Query("desc"),
    service: BatchScoringService = Depends(get_batch_scoring_service),
) -> BatchResultsResponse:
    """Return the results of a batch."""
    results = list(service.get_run(batch_id).results)
    if sort_key is None:
        return BatchResultsResponse(batch_id=batch_id, results=results)

    if direction is not None:
        sort_config = SortConfig(sort_key, direction)
    else:
        current = (
            SortConfig(previous_key, previous_direction) if previous_key else None
        )
        sort_config = next_sort_config(current, sort_key)

    return BatchResultsResponse(
        batch_id=batch_id,
        sort_key=sort_config.key,
        direction=sort_config.direction,
        results=sort_results(results, sort_config),
    )


@router.get(
    "/{batch_id}/summary",
    response_model=BatchSummaryResponse,
    summary="Get batch summary",
    description="Rubric averages for the radar axes and the top 10 by total score.",
)
async def get_batch_summary(
    batch_id: str,
    service: BatchScoringService = Depends(get_batch_scoring_service),
) -> BatchSummaryResponse:
    """Return averages and ranking of a batch."""
    results = list(service.get_run(batch_id).results)
    return BatchSummaryResponse(
        batch_id=batch_id,
        record_count=len(results),
        averages=rubric_averages(results),
        top_results=top_results(results),
        formula=SCORING_FORMULA,
    )


@router.get(
    "/{batch_id}/export",
    summary="Export batch results",
    description="Download results as an Excel workbook (sheet 分析结果) or CSV.",
    responses={200: {"description": "Export file"}},
)
async def export_batch(
    request: Request,
    batch_id: str,
    format: Literal["xlsx", "csv"] = Query("xlsx"),
    service: BatchScoringService = Depends(get_batch_scoring_service),
) -> Response:
    """Serialize the results of a batch for download."""
    run = service.get_run(batch_id)
    results = list(run.results)
    project_name = run.config.project.name if run.config else None
    filename = ExportService.export_filename(project_name, format)

    if format == "csv":
        content: bytes = ExportService.to_csv(results).encode("utf-8")
        media_type = "text/csv; charset=utf-8"
    else:
        content = ExportService.to_xlsx(results)
        media_type = XLSX_MEDIA_TYPE

    logger.info(
        "Batch results exported",
        extra={
            "request_id": _get_request_id(request),
            "batch_id": batch_id,
            "format": format,
            "record_count": len(results),
        },
    )

    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": _content_disposition(filename)},
    )
