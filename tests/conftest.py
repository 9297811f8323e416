"""Pytest configuration and fixtures.

Provides fixtures for:
- Settings override for testing
- Mocked AI scorer and content proxy
- Batch scoring service with a fake clock
- FastAPI test client with overridden service dependencies
"""

from collections.abc import Generator
from typing import Any
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from media_scoring.core.config import Settings, get_settings
from media_scoring.integrations.content_proxy import ContentProxyClient
from media_scoring.schemas.scoring import (
    AIAnalysisResult,
    AudienceMode,
    BatchConfig,
    BatchResultRecord,
    ProjectContext,
    TierConfig,
)
from media_scoring.services.batch_scoring import BatchScoringService
from media_scoring.services.content_resolver import ContentResolver
from media_scoring.services.document_analysis import DocumentAnalysisService
from media_scoring.services.rubric_scorer import RubricScorer

# ---------------------------------------------------------------------------
# Settings Fixtures
# ---------------------------------------------------------------------------


def get_test_settings() -> Settings:
    """Get test settings."""
    return Settings(
        app_name="Test App",
        app_version="0.0.1",
        debug=True,
        environment="test",
        gemini_api_key="test-gemini-key",
        log_level="DEBUG",
        log_format="text",
    )


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Session-scoped test settings."""
    return get_test_settings()


# ---------------------------------------------------------------------------
# Domain Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def batch_config() -> BatchConfig:
    """Batch configuration with all three tiers populated."""
    return BatchConfig(
        tiers=TierConfig(
            tier1="人民日报, 新华社",
            tier2="健康报，丁香园",
            tier3="今日头条",
        ),
        audience_mode=AudienceMode.HCP,
        project=ProjectContext(
            name="肺癌早筛项目",
            key_message="早筛早诊提高生存率",
            description="引导读者预约低剂量CT筛查",
        ),
    )


@pytest.fixture
def sample_analysis() -> AIAnalysisResult:
    """A typical AI rubric answer."""
    return AIAnalysisResult(
        km_score=8,
        acquisition_score=6,
        audience_precision_score=5,
        comment="信息传达清晰",
    )


def make_record(
    title: str = "标题",
    media_name: str = "媒体",
    total_score: str = "5.00",
    **overrides: Any,
) -> BatchResultRecord:
    """Build a result record with neutral defaults."""
    values: dict[str, Any] = {
        "title": title,
        "media_name": media_name,
        "total_score": total_score,
        "true_demand": "5.00",
        "acquisition_score": 5,
        "volume": "5.00",
        "km_score": 5,
        "audience_precision_score": 5,
        "tier_score": 3,
        "volume_quality": 5.0,
        "comment": "",
    }
    values.update(overrides)
    return BatchResultRecord(**values)


# ---------------------------------------------------------------------------
# Service Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_scorer(sample_analysis: AIAnalysisResult) -> AsyncMock:
    """RubricScorer mock returning sample_analysis for every call."""
    scorer = AsyncMock(spec=RubricScorer)
    scorer.score.return_value = sample_analysis
    return scorer


@pytest.fixture
def mock_proxy() -> AsyncMock:
    """Content proxy mock that finds nothing."""
    proxy = AsyncMock(spec=ContentProxyClient)
    proxy.fetch_text.return_value = None
    return proxy


@pytest.fixture
def fake_sleep() -> AsyncMock:
    """Awaitable sleep that records delays instead of waiting."""
    return AsyncMock(return_value=None)


@pytest.fixture
def batch_service(
    mock_scorer: AsyncMock, mock_proxy: AsyncMock, fake_sleep: AsyncMock
) -> BatchScoringService:
    """BatchScoringService wired to mocks and a fake clock."""
    return BatchScoringService(
        scorer=mock_scorer,
        resolver=ContentResolver(mock_proxy),
        inter_call_delay=0.8,
        volume_offset=10.0,
        sleep=fake_sleep,
    )


@pytest.fixture
def document_service(mock_scorer: AsyncMock) -> DocumentAnalysisService:
    """DocumentAnalysisService on the mocked scorer."""
    return DocumentAnalysisService(mock_scorer, min_length=10)


# ---------------------------------------------------------------------------
# FastAPI Test Client Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def app():
    """Create FastAPI app for testing."""
    from media_scoring.main import create_app

    return create_app()


@pytest.fixture
def client(
    app,
    batch_service: BatchScoringService,
    document_service: DocumentAnalysisService,
) -> Generator[TestClient, None, None]:
    """Create synchronous test client with mocked services."""
    from media_scoring.services.batch_scoring import get_batch_scoring_service
    from media_scoring.services.document_analysis import (
        get_document_analysis_service,
    )

    app.dependency_overrides[get_settings] = get_test_settings
    app.dependency_overrides[get_batch_scoring_service] = lambda: batch_service
    app.dependency_overrides[get_document_analysis_service] = lambda: document_service

    # Use Starlette TestClient (handles ASGI app internally)
    test_client = TestClient(app)
    yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def record_factory():
    """Factory for result records (see make_record)."""
    return make_record
