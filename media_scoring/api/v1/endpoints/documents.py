"""Document analysis API endpoints.

Provides endpoints for scoring a single press document:
- POST /api/v1/documents/analyze - Upload a .docx/.pdf/.txt and score it

Extraction errors (400) and ScoringError (502) propagate to the
application's error handlers.
"""

import time

from fastapi import APIRouter, Depends, Form, Request, UploadFile

from media_scoring.core.logging import get_logger
from media_scoring.schemas.scoring import (
    AudienceMode,
    DocumentAnalysisResponse,
    ProjectContext,
)
from media_scoring.services.document_analysis import (
    DocumentAnalysisService,
    get_document_analysis_service,
)

logger = get_logger(__name__)

router = APIRouter()


def _get_request_id(request: Request) -> str:
    """Get request_id from request state."""
    return getattr(request.state, "request_id", "unknown")


@router.post(
    "/analyze",
    response_model=DocumentAnalysisResponse,
    summary="Analyze a document",
    description="""
Extract the text of one document and score it against the rubric.

**Supported formats:**
- DOCX (.docx)
- PDF (.pdf)
- TXT (.txt)

Documents with fewer than 10 characters of text are rejected.
""",
    responses={
        400: {
            "description": "Unsupported, unreadable or near-empty document",
            "content": {
                "application/json": {
                    "example": {
                        "error": "文档内容过少 (3 chars, at least 10 required)",
                        "code": "INSUFFICIENT_CONTENT",
                        "request_id": "<request_id>",
                    }
                }
            },
        },
        502: {
            "description": "AI scoring failed",
            "content": {
                "application/json": {
                    "example": {
                        "error": "AI request failed (500): Internal error",
                        "code": "SCORING_FAILED",
                        "request_id": "<request_id>",
                    }
                }
            },
        },
    },
)
async def analyze_document(
    request: Request,
    file: UploadFile,
    audience_mode: AudienceMode = Form(AudienceMode.GENERAL),
    project_name: str = Form(""),
    key_message: str = Form(""),
    project_description: str = Form(""),
    service: DocumentAnalysisService = Depends(get_document_analysis_service),
) -> DocumentAnalysisResponse:
    """Score a single uploaded document."""
    start_time = time.monotonic()
    request_id = _get_request_id(request)
    upload_name = file.filename or "unnamed"

    project = ProjectContext(
        name=project_name,
        key_message=key_message,
        description=project_description,
    )

    file_bytes = await file.read()
    result = await service.analyze(file_bytes, upload_name, audience_mode, project)

    logger.info(
        "Document analyzed",
        extra={
            "request_id": request_id,
            "upload_filename": upload_name[:50],
            "text_length": result.text_length,
            "duration_ms": round((time.monotonic() - start_time) * 1000, 2),
        },
    )

    return DocumentAnalysisResponse(**result.model_dump(), filename=upload_name)
