"""Pydantic schemas for the scoring pipeline and API."""

from media_scoring.schemas.scoring import (
    RESULT_FIELD_LABELS,
    RESULT_FIELDS,
    AIAnalysisResult,
    AudienceMode,
    BatchConfig,
    BatchResultRecord,
    BatchResultsResponse,
    BatchStartResponse,
    BatchStatusResponse,
    BatchSummaryResponse,
    DocumentAnalysisResponse,
    DocumentAnalysisResult,
    ProjectContext,
    TierConfig,
)

__all__ = [
    # Configuration
    "AudienceMode",
    "BatchConfig",
    "ProjectContext",
    "TierConfig",
    # Results
    "AIAnalysisResult",
    "BatchResultRecord",
    "DocumentAnalysisResult",
    "RESULT_FIELDS",
    "RESULT_FIELD_LABELS",
    # API
    "BatchResultsResponse",
    "BatchStartResponse",
    "BatchStatusResponse",
    "BatchSummaryResponse",
    "DocumentAnalysisResponse",
]
