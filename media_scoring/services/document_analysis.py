"""Single-document analysis.

Extracts the text of one uploaded press document (.docx / .pdf / .txt) and
scores it against the rubric as an internal draft (媒体名称 内部稿件).
"""

import time

from media_scoring.core.config import get_settings
from media_scoring.core.logging import get_logger
from media_scoring.schemas.scoring import (
    AudienceMode,
    DocumentAnalysisResult,
    ProjectContext,
)
from media_scoring.services.rubric_scorer import (
    DEFAULT_MEDIA_LABEL,
    RubricScorer,
    get_rubric_scorer,
)
from media_scoring.utils.text_extraction import extract_document_text

logger = get_logger(__name__)


class DocumentAnalysisService:
    """Scores a single uploaded document."""

    def __init__(self, scorer: RubricScorer, min_length: int | None = None) -> None:
        self._scorer = scorer
        self._min_length = (
            min_length if min_length is not None else get_settings().min_document_chars
        )

    async def analyze(
        self,
        file_bytes: bytes,
        filename: str,
        audience_mode: AudienceMode | str,
        project: ProjectContext,
    ) -> DocumentAnalysisResult:
        """Extract and score one document.

        Raises:
            UnsupportedFileTypeError: If the document type is not supported.
            InsufficientContentError: If the document holds too little text.
            TextExtractionError: If the document cannot be read.
            ScoringError: If the AI call fails.
        """
        start_time = time.monotonic()
        text = extract_document_text(file_bytes, filename, min_length=self._min_length)

        analysis = await self._scorer.score(
            text,
            audience_mode,
            project.key_message,
            project.description,
            media_label=DEFAULT_MEDIA_LABEL,
        )

        logger.info(
            "Document analysis complete",
            extra={
                "upload_filename": filename[:50],
                "text_length": len(text),
                "duration_ms": round((time.monotonic() - start_time) * 1000, 2),
            },
        )

        return DocumentAnalysisResult(
            **analysis.model_dump(),
            text_length=len(text),
        )


_document_analysis_service: DocumentAnalysisService | None = None


async def get_document_analysis_service() -> DocumentAnalysisService:
    """Get the default DocumentAnalysisService instance (singleton)."""
    global _document_analysis_service
    if _document_analysis_service is None:
        _document_analysis_service = DocumentAnalysisService(await get_rubric_scorer())
    return _document_analysis_service
