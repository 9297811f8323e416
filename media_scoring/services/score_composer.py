"""Score composer: combine sub-scores into the published weighted totals.

    volume_total = 0.6 * volume_quality + 0.4 * tier_score
    true_demand  = 0.6 * km_score       + 0.4 * audience_precision_score
    total_score  = 0.5 * true_demand + 0.2 * acquisition_score + 0.3 * volume_total

Composites are display-rounded to 2 decimals; sub-scores keep full precision.
"""

from media_scoring.schemas.scoring import AIAnalysisResult, BatchResultRecord

VOLUME_QUALITY_WEIGHT = 0.6
TIER_WEIGHT = 0.4
KM_WEIGHT = 0.6
AUDIENCE_PRECISION_WEIGHT = 0.4
TRUE_DEMAND_WEIGHT = 0.5
ACQUISITION_WEIGHT = 0.2
VOLUME_WEIGHT = 0.3

SCORING_FORMULA = (
    "总分 = 0.5 × 真需求 + 0.2 × 获客效能 + 0.3 × 声量\n"
    "真需求 = 0.6 × 信息匹配 + 0.4 × 受众精准度\n"
    "声量 = 0.6 × 传播质量 + 0.4 × 媒体分级"
)


def format_score(value: float) -> str:
    """Format a composite score for display."""
    return f"{value:.2f}"


def compose_record(
    title: str,
    media_name: str,
    analysis: AIAnalysisResult,
    volume_quality: float,
    tier_score: float,
) -> BatchResultRecord:
    """Build the published result record for one row."""
    volume_total = VOLUME_QUALITY_WEIGHT * volume_quality + TIER_WEIGHT * tier_score
    true_demand = (
        KM_WEIGHT * analysis.km_score
        + AUDIENCE_PRECISION_WEIGHT * analysis.audience_precision_score
    )
    total = (
        TRUE_DEMAND_WEIGHT * true_demand
        + ACQUISITION_WEIGHT * analysis.acquisition_score
        + VOLUME_WEIGHT * volume_total
    )

    return BatchResultRecord(
        title=title,
        media_name=media_name,
        total_score=format_score(total),
        true_demand=format_score(true_demand),
        acquisition_score=analysis.acquisition_score,
        volume=format_score(volume_total),
        km_score=analysis.km_score,
        audience_precision_score=analysis.audience_precision_score,
        tier_score=tier_score,
        volume_quality=volume_quality,
        comment=analysis.comment,
    )
