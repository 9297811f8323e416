"""Unit tests for the weighted score composer."""

import pytest

from media_scoring.schemas.scoring import AIAnalysisResult
from media_scoring.services.score_composer import (
    SCORING_FORMULA,
    compose_record,
    format_score,
)


@pytest.fixture
def analysis() -> AIAnalysisResult:
    return AIAnalysisResult(
        km_score=8, acquisition_score=6, audience_precision_score=7, comment="好"
    )


class TestComposeRecord:
    """Tests for compose_record()."""

    def test_published_weights(self, analysis: AIAnalysisResult) -> None:
        """volume 7.0, true demand 7.6, total 7.10."""
        record = compose_record(
            title="标题",
            media_name="健康报",
            analysis=analysis,
            volume_quality=5,
            tier_score=10,
        )

        assert record.volume == "7.00"
        assert record.true_demand == "7.60"
        assert record.total_score == "7.10"

    def test_sub_scores_kept_raw(self) -> None:
        analysis = AIAnalysisResult(
            km_score=7.35, acquisition_score=6.125, audience_precision_score=4.5, comment=""
        )
        record = compose_record("t", "m", analysis, volume_quality=3.4, tier_score=5)

        assert record.km_score == 7.35
        assert record.acquisition_score == 6.125
        assert record.audience_precision_score == 4.5
        assert record.volume_quality == 3.4
        assert record.tier_score == 5

    def test_copies_identity_fields(self, analysis: AIAnalysisResult) -> None:
        record = compose_record("新药上市", "丁香园", analysis, 1.5, 8)

        assert record.title == "新药上市"
        assert record.media_name == "丁香园"
        assert record.comment == "好"

    def test_floor_row(self) -> None:
        """Floor sub-scores with zero engagement and no tier."""
        floor = AIAnalysisResult(
            km_score=1, acquisition_score=1, audience_precision_score=1, comment="待评估"
        )
        record = compose_record("无标题", "未知", floor, volume_quality=1.5, tier_score=3)

        # volume = 0.9 + 1.2 = 2.1; true demand = 1.0; total = 0.5 + 0.2 + 0.63
        assert record.volume == "2.10"
        assert record.true_demand == "1.00"
        assert record.total_score == "1.33"

    def test_exports_chinese_headers(self, analysis: AIAnalysisResult) -> None:
        record = compose_record("t", "m", analysis, 5, 10)
        data = record.model_dump(by_alias=True)

        assert list(data) == [
            "标题",
            "媒体名称",
            "项目总分",
            "真需求",
            "获客效能",
            "声量",
            "核心信息匹配",
            "受众精准度",
            "媒体分级",
            "传播质量",
            "评价",
        ]
        assert data["项目总分"] == "7.10"


def test_format_score() -> None:
    assert format_score(7.1) == "7.10"
    assert format_score(0) == "0.00"
    assert format_score(9.999) == "10.00"


def test_formula_text_lists_weights() -> None:
    assert "0.5 × 真需求" in SCORING_FORMULA
    assert "0.6 × 信息匹配" in SCORING_FORMULA
    assert "0.4 × 媒体分级" in SCORING_FORMULA
