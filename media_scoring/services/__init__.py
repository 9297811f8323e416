"""Services layer - Business logic and orchestration.

Services coordinate between integrations and utilities to implement the
scoring pipeline. They contain no direct external API access - that's
delegated to integrations.
"""

from media_scoring.services.aggregation import (
    RADAR_FIELDS,
    SortConfig,
    UnknownSortKeyError,
    next_sort_config,
    rubric_average,
    rubric_averages,
    sort_results,
    top_results,
)
from media_scoring.services.batch_scoring import (
    BatchInProgressError,
    BatchNotFoundError,
    BatchProgress,
    BatchRun,
    BatchScoringError,
    BatchScoringService,
    BatchStatus,
    get_batch_scoring_service,
)
from media_scoring.services.content_resolver import ContentResolver
from media_scoring.services.document_analysis import (
    DocumentAnalysisService,
    get_document_analysis_service,
)
from media_scoring.services.export import ExportService
from media_scoring.services.metrics import (
    media_tier_score,
    parse_tier_list,
    volume_quality,
)
from media_scoring.services.rubric_scorer import (
    RESPONSE_SCHEMA,
    RubricScorer,
    get_rubric_scorer,
)
from media_scoring.services.score_composer import SCORING_FORMULA, compose_record

__all__ = [
    # Aggregation
    "RADAR_FIELDS",
    "SortConfig",
    "UnknownSortKeyError",
    "next_sort_config",
    "rubric_average",
    "rubric_averages",
    "sort_results",
    "top_results",
    # Batch scoring
    "BatchInProgressError",
    "BatchNotFoundError",
    "BatchProgress",
    "BatchRun",
    "BatchScoringError",
    "BatchScoringService",
    "BatchStatus",
    "get_batch_scoring_service",
    # Content resolution
    "ContentResolver",
    # Document analysis
    "DocumentAnalysisService",
    "get_document_analysis_service",
    # Export
    "ExportService",
    # Metrics
    "media_tier_score",
    "parse_tier_list",
    "volume_quality",
    # Rubric scoring
    "RESPONSE_SCHEMA",
    "RubricScorer",
    "get_rubric_scorer",
    # Composition
    "SCORING_FORMULA",
    "compose_record",
]
