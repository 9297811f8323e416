"""Deterministic engagement and media tier metrics.

- volume_quality(): 0-10 score from view and interaction counters
- media_tier_score(): 10 / 8 / 5 / 3 from tier name-matching rules

Both functions are pure and never raise.
"""

import math
import re
from typing import Any

from media_scoring.core.logging import get_logger
from media_scoring.schemas.scoring import TierConfig
from media_scoring.utils.numbers import clean_number

logger = get_logger(__name__)

# Offset inside log10 so zero engagement stays finite
DEFAULT_VOLUME_OFFSET = 10.0
VOLUME_LOG_SCALE = 1.5
INTERACTION_WEIGHT = 5
MAX_VOLUME_QUALITY = 10.0
VOLUME_QUALITY_FALLBACK = 1.0

TIER1_SCORE = 10
TIER2_SCORE = 8
TIER3_SCORE = 5
UNTIERED_SCORE = 3

_TIER_SEPARATORS = re.compile(r"[,，]")


def _round_half_up(value: float, digits: int = 1) -> float:
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def volume_quality(
    views: Any,
    interactions: Any,
    offset: float = DEFAULT_VOLUME_OFFSET,
) -> float:
    """Score engagement volume on a 0-10 scale.

    quality = min(10, round1(log10(views + interactions * 5 + offset) * 1.5))

    Returns VOLUME_QUALITY_FALLBACK on any internal failure.
    """
    try:
        v = clean_number(views)
        i = clean_number(interactions)
        raw_score = math.log10(v + i * INTERACTION_WEIGHT + offset) * VOLUME_LOG_SCALE
        return min(MAX_VOLUME_QUALITY, _round_half_up(raw_score))
    except (ValueError, TypeError, OverflowError) as e:
        logger.debug(
            "Volume quality fell back to default",
            extra={
                "views": str(views)[:50],
                "interactions": str(interactions)[:50],
                "error": str(e),
            },
        )
        return VOLUME_QUALITY_FALLBACK


def parse_tier_list(patterns: str | None) -> list[str]:
    """Split a tier pattern list on ',' or '，' into lowercase entries."""
    if not patterns:
        return []
    return [
        entry.strip().lower()
        for entry in _TIER_SEPARATORS.split(patterns)
        if entry.strip()
    ]


def media_tier_score(media_name: str | None, tiers: TierConfig) -> int:
    """Score a media outlet by the first tier whose pattern it contains.

    Tiers are checked in order, so a tier1 match always wins over lower tiers.
    """
    if not media_name:
        return UNTIERED_SCORE

    name = str(media_name).strip().lower()
    if not name:
        return UNTIERED_SCORE

    for patterns, score in (
        (tiers.tier1, TIER1_SCORE),
        (tiers.tier2, TIER2_SCORE),
        (tiers.tier3, TIER3_SCORE),
    ):
        if any(pattern in name for pattern in parse_tier_list(patterns)):
            return score

    return UNTIERED_SCORE
