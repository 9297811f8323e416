"""Aggregation and sorting of batch results.

- rubric_average() / rubric_averages(): means of the radar chart axes
- top_results(): ranking by total score, stable for ties
- SortConfig / next_sort_config() / sort_results(): column sorting for the
  result table (numeric for scores, pinyin order for Chinese text)

All functions work on copies; the canonical result list is never mutated.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Literal

from pypinyin import lazy_pinyin

from media_scoring.schemas.scoring import RESULT_FIELD_LABELS, BatchResultRecord

SortDirection = Literal["asc", "desc"]

DEFAULT_TOP_N = 10

# Radar chart axes, in display order
RADAR_FIELDS: tuple[str, ...] = (
    "km_score",
    "acquisition_score",
    "audience_precision_score",
    "tier_score",
    "volume_quality",
)

NUMERIC_FIELDS = frozenset(
    {
        "total_score",
        "true_demand",
        "volume",
        "acquisition_score",
        "km_score",
        "audience_precision_score",
        "tier_score",
        "volume_quality",
    }
)


class UnknownSortKeyError(ValueError):
    """Raised when sorting by a field that results do not have."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Unknown sort key: {key}")


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def rubric_average(records: Sequence[BatchResultRecord], field: str) -> float | None:
    """Mean of one field across records, or None when there are no records."""
    if not records:
        return None
    return sum(_as_float(getattr(record, field)) for record in records) / len(records)


def rubric_averages(records: Sequence[BatchResultRecord]) -> dict[str, float | None]:
    """Radar axis label -> mean score, in radar display order."""
    return {
        RESULT_FIELD_LABELS[field]: rubric_average(records, field)
        for field in RADAR_FIELDS
    }


def top_results(
    records: Sequence[BatchResultRecord], n: int = DEFAULT_TOP_N
) -> list[BatchResultRecord]:
    """The n best records by total score; ties keep their input order."""
    ranked = sorted(records, key=lambda record: -_as_float(record.total_score))
    return ranked[:n]


@dataclass(frozen=True)
class SortConfig:
    """Active column sort of the result table."""

    key: str
    direction: SortDirection = "desc"


def next_sort_config(current: SortConfig | None, key: str) -> SortConfig:
    """Sort state after a click on column key.

    A new column starts descending; clicking the active column flips it.
    The results endpoint applies this when given the previous sort.
    """
    if current is not None and current.key == key:
        return SortConfig(key, "asc" if current.direction == "desc" else "desc")
    return SortConfig(key, "desc")


def collation_key(text: Any) -> tuple[str, ...]:
    """zh-CN collation key: pinyin transliteration, case-insensitive."""
    return tuple(token.lower() for token in lazy_pinyin(str(text)))


def sort_results(
    records: Sequence[BatchResultRecord], config: SortConfig | None
) -> list[BatchResultRecord]:
    """Return a sorted copy of records.

    Score fields (including the formatted composites) compare numerically,
    everything else compares by pinyin. The sort is stable.

    Raises:
        UnknownSortKeyError: If config.key is not a result field.
    """
    if config is None:
        return list(records)
    if config.key not in RESULT_FIELD_LABELS:
        raise UnknownSortKeyError(config.key)

    if config.key in NUMERIC_FIELDS:

        def key_func(record: BatchResultRecord) -> Any:
            return _as_float(getattr(record, config.key))

    else:

        def key_func(record: BatchResultRecord) -> Any:
            return collation_key(getattr(record, config.key))

    return sorted(records, key=key_func, reverse=config.direction == "desc")
