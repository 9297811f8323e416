"""Utility functions for the scoring pipeline's input collaborators."""

from media_scoring.utils.row_extraction import (
    RowExtractionError,
    RowFields,
    extract_row_fields,
    extract_rows,
)
from media_scoring.utils.text_extraction import (
    InsufficientContentError,
    TextExtractionError,
    UnsupportedFileTypeError,
    extract_document_text,
)

__all__ = [
    # Row extraction
    "RowExtractionError",
    "RowFields",
    "extract_row_fields",
    "extract_rows",
    # Text extraction
    "InsufficientContentError",
    "TextExtractionError",
    "UnsupportedFileTypeError",
    "extract_document_text",
]
