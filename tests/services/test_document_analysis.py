"""Unit tests for single-document analysis."""

from unittest.mock import AsyncMock

import pytest

from media_scoring.integrations.gemini import ScoringError
from media_scoring.schemas.scoring import AudienceMode, ProjectContext
from media_scoring.services.document_analysis import DocumentAnalysisService
from media_scoring.utils.text_extraction import (
    InsufficientContentError,
    UnsupportedFileTypeError,
)

PROJECT = ProjectContext(name="肺癌早筛", key_message="早筛早诊", description="预约筛查")


class TestDocumentAnalysis:
    @pytest.mark.asyncio
    async def test_analyzes_text_file(
        self, document_service: DocumentAnalysisService, mock_scorer: AsyncMock
    ) -> None:
        text = "低剂量螺旋CT可显著提高早期肺癌检出率，建议高危人群每年筛查。"

        result = await document_service.analyze(
            text.encode("utf-8"), "新闻稿.txt", AudienceMode.PATIENT, PROJECT
        )

        assert result.km_score == 8
        assert result.comment == "信息传达清晰"
        assert result.text_length == len(text)
        mock_scorer.score.assert_awaited_once_with(
            text,
            AudienceMode.PATIENT,
            "早筛早诊",
            "预约筛查",
            media_label="内部稿件",
        )

    @pytest.mark.asyncio
    async def test_short_document_rejected(
        self, document_service: DocumentAnalysisService, mock_scorer: AsyncMock
    ) -> None:
        with pytest.raises(InsufficientContentError) as exc_info:
            await document_service.analyze(
                "太短".encode("utf-8"), "note.txt", AudienceMode.GENERAL, PROJECT
            )

        assert exc_info.value.text_length == 2
        mock_scorer.score.assert_not_called()

    @pytest.mark.asyncio
    async def test_unsupported_type_rejected(
        self, document_service: DocumentAnalysisService
    ) -> None:
        with pytest.raises(UnsupportedFileTypeError):
            await document_service.analyze(
                b"data", "slides.pptx", AudienceMode.GENERAL, PROJECT
            )

    @pytest.mark.asyncio
    async def test_scoring_failure_propagates(
        self, document_service: DocumentAnalysisService, mock_scorer: AsyncMock
    ) -> None:
        mock_scorer.score.side_effect = ScoringError("AI 返回了空响应")

        with pytest.raises(ScoringError):
            await document_service.analyze(
                "足够长的文档内容用于分析测试".encode("utf-8"),
                "doc.txt",
                AudienceMode.GENERAL,
                PROJECT,
            )
