"""Row extraction for uploaded media-coverage spreadsheets.

Converts an uploaded .xlsx or .csv file into an ordered list of rows
(column name -> raw cell value), and resolves the recognized column aliases
of a row into a RowFields value.

Supported formats:
- XLSX: first worksheet via openpyxl, header row as keys
- CSV: UTF-8 (BOM tolerated), header row as keys
"""

import csv
import io
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from openpyxl import load_workbook

from media_scoring.core.logging import get_logger
from media_scoring.utils.numbers import clean_number

logger = get_logger(__name__)

SUPPORTED_EXTENSIONS = {".xlsx", ".csv"}

# Column aliases, first non-empty match wins (case-sensitive)
MEDIA_NAME_COLUMNS = ("媒体名称", "媒体")
TITLE_COLUMNS = ("标题", "Title")
CONTENT_COLUMNS = ("正文", "Content")
VIEWS_COLUMNS = ("浏览量", "PV")
URL_COLUMNS = ("URL", "链接", "Link")
INTERACTION_COLUMNS = ("点赞量", "转发量", "评论量")

UNKNOWN_MEDIA_LABEL = "未知"
UNTITLED_LABEL = "无标题"
DERIVED_TITLE_LENGTH = 20


class RowExtractionError(Exception):
    """Raised when an uploaded spreadsheet cannot be turned into rows."""

    def __init__(self, message: str, filename: str | None = None) -> None:
        super().__init__(message)
        self.filename = filename


@dataclass(frozen=True)
class RowFields:
    """Recognized fields of one input row.

    media_name, title, content and url hold the raw column text (possibly
    empty); display_* properties apply the report placeholders.
    """

    media_name: str
    title: str
    content: str
    url: str
    views: Any
    interactions: float

    @property
    def display_media_name(self) -> str:
        return self.media_name or UNKNOWN_MEDIA_LABEL

    @property
    def display_title(self) -> str:
        if self.title:
            return self.title
        if self.content:
            return self.content[:DERIVED_TITLE_LENGTH]
        return UNTITLED_LABEL


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def first_present(row: Mapping[str, Any], columns: Sequence[str]) -> str:
    """Return the first non-empty value among the alias columns, as text."""
    for column in columns:
        text = _cell_text(row.get(column))
        if text:
            return text
    return ""


def extract_row_fields(row: Mapping[str, Any]) -> RowFields:
    """Resolve the recognized column aliases of one row."""
    views: Any = 0
    for column in VIEWS_COLUMNS:
        if _cell_text(row.get(column)):
            views = row[column]
            break

    interactions = sum(clean_number(row.get(column)) for column in INTERACTION_COLUMNS)

    return RowFields(
        media_name=first_present(row, MEDIA_NAME_COLUMNS),
        title=first_present(row, TITLE_COLUMNS),
        content=first_present(row, CONTENT_COLUMNS),
        url=first_present(row, URL_COLUMNS),
        views=views,
        interactions=interactions,
    )


def _rows_from_xlsx(file_bytes: bytes) -> list[dict[str, Any]]:
    workbook = load_workbook(io.BytesIO(file_bytes), read_only=True, data_only=True)
    try:
        sheet = workbook.worksheets[0]
        row_iter = sheet.iter_rows(values_only=True)
        header = next(row_iter, None)
        if header is None:
            return []
        columns = [_cell_text(cell) for cell in header]

        rows: list[dict[str, Any]] = []
        for values in row_iter:
            if all(cell is None or _cell_text(cell) == "" for cell in values):
                continue
            rows.append(
                {
                    column: value
                    for column, value in zip(columns, values, strict=False)
                    if column and value is not None
                }
            )
        return rows
    finally:
        workbook.close()


def _rows_from_csv(file_bytes: bytes) -> list[dict[str, Any]]:
    text = file_bytes.decode("utf-8-sig")
    reader = csv.DictReader(io.StringIO(text))
    rows: list[dict[str, Any]] = []
    for record in reader:
        cleaned = {
            key.strip(): value
            for key, value in record.items()
            if key and value not in (None, "")
        }
        if cleaned:
            rows.append(cleaned)
    return rows


def extract_rows(file_bytes: bytes, filename: str) -> list[dict[str, Any]]:
    """Extract ordered rows from an uploaded spreadsheet.

    Raises:
        RowExtractionError: If the file type is unsupported or unreadable.
    """
    extension = Path(filename).suffix.lower()
    if extension not in SUPPORTED_EXTENSIONS:
        raise RowExtractionError(
            f"Unsupported spreadsheet type: {extension or 'none'}. "
            f"Supported types: {', '.join(sorted(SUPPORTED_EXTENSIONS))}",
            filename=filename,
        )

    logger.info(
        "Extracting rows from spreadsheet",
        extra={"upload_filename": filename[:50], "file_size_bytes": len(file_bytes)},
    )

    try:
        if extension == ".xlsx":
            rows = _rows_from_xlsx(file_bytes)
        else:
            rows = _rows_from_csv(file_bytes)
    except Exception as e:
        raise RowExtractionError(
            f"Failed to read spreadsheet {filename}: {e}", filename=filename
        ) from e

    logger.info(
        "Row extraction complete",
        extra={"upload_filename": filename[:50], "row_count": len(rows)},
    )
    return rows
