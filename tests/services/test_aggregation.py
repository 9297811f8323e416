"""Unit tests for result aggregation and sorting."""

import pytest

from media_scoring.services.aggregation import (
    SortConfig,
    UnknownSortKeyError,
    next_sort_config,
    rubric_average,
    rubric_averages,
    sort_results,
    top_results,
)
from tests.conftest import make_record


class TestAverages:
    def test_mean_of_field(self) -> None:
        records = [make_record(km_score=4), make_record(km_score=8), make_record(km_score=9)]
        assert rubric_average(records, "km_score") == pytest.approx(7.0)

    def test_empty_is_none(self) -> None:
        assert rubric_average([], "km_score") is None
        assert set(rubric_averages([]).values()) == {None}

    def test_radar_axes_in_order(self) -> None:
        records = [
            make_record(
                km_score=8,
                acquisition_score=6,
                audience_precision_score=7,
                tier_score=10,
                volume_quality=4.5,
            ),
            make_record(
                km_score=6,
                acquisition_score=4,
                audience_precision_score=5,
                tier_score=3,
                volume_quality=1.5,
            ),
        ]

        averages = rubric_averages(records)

        assert list(averages) == ["核心信息匹配", "获客效能", "受众精准度", "媒体分级", "传播质量"]
        assert averages["核心信息匹配"] == pytest.approx(7.0)
        assert averages["媒体分级"] == pytest.approx(6.5)
        assert averages["传播质量"] == pytest.approx(3.0)


class TestTopResults:
    def test_ranked_by_total(self) -> None:
        records = [
            make_record(title="低", total_score="3.20"),
            make_record(title="高", total_score="8.75"),
            make_record(title="中", total_score="5.10"),
        ]

        assert [r.title for r in top_results(records)] == ["高", "中", "低"]

    def test_limited_to_ten(self) -> None:
        records = [make_record(title=str(i), total_score=f"{i}.00") for i in range(15)]

        top = top_results(records)

        assert len(top) == 10
        assert top[0].title == "14"
        assert top[-1].title == "5"

    def test_ties_keep_input_order(self) -> None:
        records = [
            make_record(title="甲", total_score="6.00"),
            make_record(title="乙", total_score="7.00"),
            make_record(title="丙", total_score="6.00"),
        ]

        assert [r.title for r in top_results(records)] == ["乙", "甲", "丙"]

    def test_does_not_mutate_input(self) -> None:
        records = [make_record(total_score="1.00"), make_record(total_score="9.00")]
        before = list(records)

        top_results(records)

        assert records == before


class TestNextSortConfig:
    def test_new_column_starts_descending(self) -> None:
        assert next_sort_config(None, "total_score") == SortConfig("total_score", "desc")

    def test_same_column_toggles(self) -> None:
        first = next_sort_config(None, "title")
        second = next_sort_config(first, "title")
        third = next_sort_config(second, "title")

        assert second.direction == "asc"
        assert third.direction == "desc"

    def test_other_column_resets(self) -> None:
        current = SortConfig("title", "asc")
        assert next_sort_config(current, "km_score") == SortConfig("km_score", "desc")


class TestSortResults:
    def test_numeric_not_lexicographic(self) -> None:
        records = [
            make_record(title="a", total_score="9.50"),
            make_record(title="b", total_score="10.00"),
            make_record(title="c", total_score="2.25"),
        ]

        desc = sort_results(records, SortConfig("total_score", "desc"))
        asc = sort_results(records, SortConfig("total_score", "asc"))

        assert [r.title for r in desc] == ["b", "a", "c"]
        assert [r.title for r in asc] == ["c", "a", "b"]

    def test_chinese_text_by_pinyin(self) -> None:
        records = [
            make_record(media_name="上海日报"),
            make_record(media_name="北京青年报"),
            make_record(media_name="广州日报"),
        ]

        asc = sort_results(records, SortConfig("media_name", "asc"))
        desc = sort_results(records, SortConfig("media_name", "desc"))

        assert [r.media_name for r in asc] == ["北京青年报", "广州日报", "上海日报"]
        assert [r.media_name for r in desc] == ["上海日报", "广州日报", "北京青年报"]

    def test_latin_text_case_insensitive(self) -> None:
        records = [make_record(title="beta"), make_record(title="Alpha")]

        asc = sort_results(records, SortConfig("title", "asc"))

        assert [r.title for r in asc] == ["Alpha", "beta"]

    def test_no_config_returns_copy(self) -> None:
        records = [make_record(title="x"), make_record(title="y")]

        result = sort_results(records, None)

        assert result == records
        assert result is not records

    def test_unknown_key(self) -> None:
        with pytest.raises(UnknownSortKeyError) as exc_info:
            sort_results([make_record()], SortConfig("nonexistent"))
        assert exc_info.value.key == "nonexistent"
