"""Export service for batch results.

Provides utilities for:
- Serializing result records to an .xlsx workbook (sheet 分析结果)
- Serializing result records to CSV with a UTF-8 BOM for Excel
- Building export filenames from the project name
"""

import csv
import io
import re
from collections.abc import Sequence
from typing import Any

from openpyxl import Workbook
from openpyxl.utils import get_column_letter

from media_scoring.schemas.scoring import (
    RESULT_FIELD_LABELS,
    RESULT_FIELDS,
    BatchResultRecord,
)

SHEET_NAME = "分析结果"
DEFAULT_PROJECT_NAME = "肿瘤业务传播分析"
RESULTS_SUFFIX = "_结果"

MIN_COLUMN_WIDTH = 10
MAX_COLUMN_WIDTH = 60

_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]+')


class ExportService:
    """Service for export-related operations."""

    @staticmethod
    def header_row() -> list[str]:
        """Report column headers in record order."""
        return [RESULT_FIELD_LABELS[field] for field in RESULT_FIELDS]

    @staticmethod
    def record_row(record: BatchResultRecord) -> list[Any]:
        """One record's values in header order, unmodified."""
        return [getattr(record, field) for field in RESULT_FIELDS]

    @staticmethod
    def to_xlsx(records: Sequence[BatchResultRecord]) -> bytes:
        """Serialize records to an .xlsx workbook.

        Args:
            records: Result records, written in the given order.

        Returns:
            The workbook file contents.
        """
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = SHEET_NAME

        sheet.append(ExportService.header_row())
        for record in records:
            sheet.append(ExportService.record_row(record))

        sheet.freeze_panes = "A2"
        for col_idx in range(1, sheet.max_column + 1):
            max_len = max(
                (
                    len(str(cell.value))
                    for (cell,) in sheet.iter_rows(
                        min_col=col_idx, max_col=col_idx, max_row=300
                    )
                    if cell.value is not None
                ),
                default=0,
            )
            sheet.column_dimensions[get_column_letter(col_idx)].width = max(
                MIN_COLUMN_WIDTH, min(MAX_COLUMN_WIDTH, max_len + 2)
            )

        output = io.BytesIO()
        workbook.save(output)
        return output.getvalue()

    @staticmethod
    def to_csv(records: Sequence[BatchResultRecord]) -> str:
        """Serialize records to CSV text with a UTF-8 BOM.

        Returns:
            CSV string starting with the BOM character.
        """
        output = io.StringIO()
        # UTF-8 BOM for Excel compatibility
        output.write("\ufeff")

        writer = csv.writer(output)
        writer.writerow(ExportService.header_row())
        for record in records:
            writer.writerow(ExportService.record_row(record))

        csv_string = output.getvalue()
        output.close()
        return csv_string

    @staticmethod
    def sanitize_filename(name: str) -> str:
        """Strip characters that are not allowed in filenames.

        Chinese text is preserved; path separators, reserved characters and
        control characters are removed.

        Examples:
            >>> ExportService.sanitize_filename("肿瘤/项目: 2024")
            '肿瘤项目 2024'
        """
        return _UNSAFE_FILENAME_CHARS.sub("", name).strip().strip(".")

    @staticmethod
    def export_filename(project_name: str | None, extension: str) -> str:
        """Build the download filename, e.g. 肿瘤业务传播分析_结果.xlsx."""
        base = ExportService.sanitize_filename(project_name or "")
        return f"{base or DEFAULT_PROJECT_NAME}{RESULTS_SUFFIX}.{extension.lstrip('.')}"
