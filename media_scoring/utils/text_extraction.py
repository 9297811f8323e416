"""Text extraction for uploaded press documents.

Extracts plain text from DOCX, PDF and plain text files so a single document
can be scored. Documents yielding too little text are rejected with
InsufficientContentError.
"""

import io
import logging
from pathlib import Path

from docx import Document
from pypdf import PdfReader

logger = logging.getLogger(__name__)

DEFAULT_MIN_TEXT_LENGTH = 10


class TextExtractionError(Exception):
    """Base exception for text extraction errors."""

    pass


class UnsupportedFileTypeError(TextExtractionError):
    """Raised when attempting to extract text from an unsupported file type."""

    def __init__(self, extension: str) -> None:
        super().__init__(
            f"Unsupported document type: {extension or 'none'}. "
            f"Supported types: {', '.join(sorted(EXTRACTORS))}"
        )
        self.extension = extension


class InsufficientContentError(TextExtractionError):
    """Raised when a document yields too little text for analysis."""

    def __init__(self, text_length: int, min_length: int) -> None:
        super().__init__(
            f"文档内容过少 ({text_length} chars, at least {min_length} required)"
        )
        self.text_length = text_length
        self.min_length = min_length


def extract_text_from_docx(file_bytes: bytes) -> str:
    """Extract text from all paragraphs of a DOCX file.

    Raises:
        TextExtractionError: If the DOCX cannot be read or parsed.
    """
    try:
        document = Document(io.BytesIO(file_bytes))
        return "\n".join(paragraph.text for paragraph in document.paragraphs)
    except Exception as e:
        raise TextExtractionError(f"Failed to extract text from DOCX: {e}") from e


def extract_text_from_pdf(file_bytes: bytes) -> str:
    """Extract text from all pages of a PDF file.

    Raises:
        TextExtractionError: If the PDF cannot be read or parsed.
    """
    try:
        reader = PdfReader(io.BytesIO(file_bytes))
        text_parts = [page.extract_text() or "" for page in reader.pages]
        return "\n\n".join(part for part in text_parts if part)
    except Exception as e:
        raise TextExtractionError(f"Failed to extract text from PDF: {e}") from e


def extract_text_from_txt(file_bytes: bytes) -> str:
    """Decode a plain text file (UTF-8, falling back to GB18030)."""
    try:
        return file_bytes.decode("utf-8-sig")
    except UnicodeDecodeError:
        try:
            return file_bytes.decode("gb18030")
        except UnicodeDecodeError as e:
            raise TextExtractionError(f"Failed to decode text file: {e}") from e


EXTRACTORS = {
    ".docx": extract_text_from_docx,
    ".pdf": extract_text_from_pdf,
    ".txt": extract_text_from_txt,
}


def extract_document_text(
    file_bytes: bytes,
    filename: str,
    min_length: int = DEFAULT_MIN_TEXT_LENGTH,
) -> str:
    """Extract plain text from a document, dispatching on its extension.

    Raises:
        UnsupportedFileTypeError: If the extension is not supported.
        InsufficientContentError: If fewer than min_length non-blank
            characters were extracted.
        TextExtractionError: If extraction fails.
    """
    extension = Path(filename).suffix.lower()
    extractor = EXTRACTORS.get(extension)
    if extractor is None:
        raise UnsupportedFileTypeError(extension)

    logger.info(
        "Extracting text from document",
        extra={"extension": extension, "file_size_bytes": len(file_bytes)},
    )

    text = extractor(file_bytes)
    stripped_length = len(text.strip())

    if stripped_length < min_length:
        logger.warning(
            "Document rejected, insufficient content",
            extra={
                "extension": extension,
                "extracted_chars": stripped_length,
                "min_chars": min_length,
            },
        )
        raise InsufficientContentError(stripped_length, min_length)

    logger.info(
        "Text extraction complete",
        extra={"extension": extension, "extracted_chars": len(text)},
    )
    return text
