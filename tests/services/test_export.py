"""Tests for export service: filename building, CSV and XLSX generation."""

import csv
import io

from openpyxl import load_workbook

from media_scoring.services.export import ExportService
from tests.conftest import make_record

EXPECTED_HEADERS = [
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


class TestSanitizeFilename:
    """Tests for ExportService.sanitize_filename."""

    def test_keeps_chinese_text(self):
        assert ExportService.sanitize_filename("肺癌早筛项目") == "肺癌早筛项目"

    def test_removes_reserved_characters(self):
        assert ExportService.sanitize_filename('肿瘤/项目: 2024*"?') == "肿瘤项目 2024"

    def test_strips_dots_and_spaces(self):
        assert ExportService.sanitize_filename("  ..项目.. ") == "项目"


class TestExportFilename:
    """Tests for ExportService.export_filename."""

    def test_project_name(self):
        assert ExportService.export_filename("肺癌早筛", "xlsx") == "肺癌早筛_结果.xlsx"

    def test_default_project_name(self):
        assert ExportService.export_filename("", "xlsx") == "肿瘤业务传播分析_结果.xlsx"
        assert ExportService.export_filename(None, ".csv") == "肿瘤业务传播分析_结果.csv"

    def test_name_of_only_unsafe_characters_falls_back(self):
        assert ExportService.export_filename("///", "csv") == "肿瘤业务传播分析_结果.csv"


class TestToCsv:
    """Tests for ExportService.to_csv."""

    def test_starts_with_bom(self):
        assert ExportService.to_csv([]).startswith("\ufeff")

    def test_headers_and_rows(self):
        records = [
            make_record(title="报道一", media_name="健康报", total_score="7.10"),
            make_record(title="报道二, 续", media_name="丁香园", comment='含"引号"'),
        ]

        content = ExportService.to_csv(records).lstrip("\ufeff")
        rows = list(csv.reader(io.StringIO(content)))

        assert rows[0] == EXPECTED_HEADERS
        assert rows[1][:3] == ["报道一", "健康报", "7.10"]
        assert rows[2][0] == "报道二, 续"
        assert rows[2][-1] == '含"引号"'
        assert len(rows) == 3

    def test_empty_records_only_header(self):
        content = ExportService.to_csv([]).lstrip("\ufeff")
        rows = list(csv.reader(io.StringIO(content)))
        assert rows == [EXPECTED_HEADERS]


class TestToXlsx:
    """Tests for ExportService.to_xlsx."""

    def test_sheet_and_headers(self):
        records = [
            make_record(title="报道一", total_score="7.10", km_score=8, volume_quality=4.5),
            make_record(title="报道二", total_score="3.25"),
        ]

        workbook = load_workbook(io.BytesIO(ExportService.to_xlsx(records)))
        sheet = workbook.active

        assert sheet.title == "分析结果"
        rows = list(sheet.iter_rows(values_only=True))
        assert list(rows[0]) == EXPECTED_HEADERS
        assert rows[1][0] == "报道一"
        assert rows[1][2] == "7.10"
        assert rows[1][6] == 8
        assert rows[1][9] == 4.5
        assert rows[2][0] == "报道二"
        assert sheet.freeze_panes == "A2"

    def test_column_widths_clamped(self):
        records = [make_record(comment="评" * 200)]

        workbook = load_workbook(io.BytesIO(ExportService.to_xlsx(records)))
        sheet = workbook.active

        assert sheet.column_dimensions["K"].width == 60
        assert sheet.column_dimensions["A"].width == 10
