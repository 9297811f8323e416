"""Pydantic schemas for rubric scoring.

Value types shared by the pipeline and the API:
- TierConfig / ProjectContext / BatchConfig: immutable per-batch configuration
- AIAnalysisResult: the four fields returned by the AI rubric
- BatchResultRecord: one composed row of a batch, exported with Chinese headers
- API response schemas for batch status, results, summary and document analysis
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

# =============================================================================
# CONFIGURATION
# =============================================================================


class AudienceMode(str, Enum):
    """Target-reader persona supplied to the AI rubric."""

    GENERAL = "大众 (General)"
    PATIENT = "患者 (Patient)"
    HCP = "医疗专业人士 (HCP)"


class TierConfig(BaseModel):
    """Media tier rules, in precedence order.

    Each tier is a free-text list of media-name substrings separated by
    ASCII or full-width commas.
    """

    model_config = ConfigDict(frozen=True)

    tier1: str = Field("", description="Top-tier media name patterns")
    tier2: str = Field("", description="Second-tier media name patterns")
    tier3: str = Field("", description="Third-tier media name patterns")


class ProjectContext(BaseModel):
    """Project-level text that steers the AI rubric."""

    model_config = ConfigDict(frozen=True)

    name: str = Field("", description="Project name (used for export filenames)")
    key_message: str = Field("", description="Core key message")
    description: str = Field(
        "", description="Project description / acquisition logic"
    )


class BatchConfig(BaseModel):
    """Everything a batch needs, fixed for the whole run."""

    model_config = ConfigDict(frozen=True)

    tiers: TierConfig = Field(default_factory=TierConfig)
    audience_mode: AudienceMode = AudienceMode.GENERAL
    project: ProjectContext = Field(default_factory=ProjectContext)


# =============================================================================
# SCORING RESULTS
# =============================================================================


class AIAnalysisResult(BaseModel):
    """Sub-scores returned by the AI rubric.

    Scores are nominally 1-10 but are trusted as returned (no clamping).
    """

    model_config = ConfigDict(frozen=True)

    km_score: float = Field(..., description="Key message match score")
    acquisition_score: float = Field(..., description="Acquisition efficiency score")
    audience_precision_score: float = Field(
        ..., description="Audience precision score"
    )
    comment: str = Field(..., description="Short professional comment")


class DocumentAnalysisResult(AIAnalysisResult):
    """AI analysis of a single uploaded document."""

    text_length: int = Field(..., ge=0, description="Extracted text length")


class BatchResultRecord(BaseModel):
    """One composed result row.

    Composite scores are display-rounded strings (2 decimals); sub-scores are
    kept at full precision. Serializing by alias yields the report headers.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str = Field(..., serialization_alias="标题")
    media_name: str = Field(..., serialization_alias="媒体名称")
    total_score: str = Field(..., serialization_alias="项目总分")
    true_demand: str = Field(..., serialization_alias="真需求")
    acquisition_score: float = Field(..., serialization_alias="获客效能")
    volume: str = Field(..., serialization_alias="声量")
    km_score: float = Field(..., serialization_alias="核心信息匹配")
    audience_precision_score: float = Field(..., serialization_alias="受众精准度")
    tier_score: float = Field(..., serialization_alias="媒体分级")
    volume_quality: float = Field(..., serialization_alias="传播质量")
    comment: str = Field(..., serialization_alias="评价")


# Result fields in report column order
RESULT_FIELDS: tuple[str, ...] = tuple(BatchResultRecord.model_fields)

# Report header for each result field
RESULT_FIELD_LABELS: dict[str, str] = {
    name: info.serialization_alias or name
    for name, info in BatchResultRecord.model_fields.items()
}


# =============================================================================
# API SCHEMAS
# =============================================================================


class BatchStartResponse(BaseModel):
    """Response after a batch has been accepted."""

    batch_id: str
    status: str


class BatchStatusResponse(BaseModel):
    """Current state of a batch run."""

    batch_id: str
    status: str
    completed: int = Field(..., ge=0)
    total: int = Field(..., ge=0)
    progress: int = Field(..., ge=0, le=100, description="Percent complete")
    error: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None


class BatchResultsResponse(BaseModel):
    """Batch results in the requested order."""

    batch_id: str
    sort_key: str | None = None
    direction: str | None = None
    results: list[BatchResultRecord]

    @field_validator("direction")
    @classmethod
    def validate_direction(cls, v: str | None) -> str | None:
        if v is not None and v not in ("asc", "desc"):
            raise ValueError("direction must be 'asc' or 'desc'")
        return v


class BatchSummaryResponse(BaseModel):
    """Rubric averages and top-ranked entries of a batch."""

    batch_id: str
    record_count: int = Field(..., ge=0)
    averages: dict[str, float | None] = Field(
        ..., description="Radar axis label -> mean score (None when no data)"
    )
    top_results: list[BatchResultRecord]
    formula: str


class DocumentAnalysisResponse(DocumentAnalysisResult):
    """Response for single-document analysis."""

    filename: str
