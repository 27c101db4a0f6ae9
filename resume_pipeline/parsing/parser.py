"""Text extraction from uploaded resume files.

Supports PDF (pypdf), DOCX (python-docx) and plain text. The extracted
text is normalized the same way the content fingerprint is, so what is
stored is what is hashed.
"""

import io
import logging
from pathlib import PurePosixPath

import docx
from pypdf import PdfReader

from resume_pipeline.resumes.fingerprint import normalize_text

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
DOCX_MIME_TYPE = (
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
)
TEXT_MIME_TYPE = "text/plain"
OCTET_STREAM_MIME_TYPE = "application/octet-stream"

# Browsers and object stores often label .docx uploads generically
DOCX_COMPATIBLE_MIME_TYPES = frozenset(
    {DOCX_MIME_TYPE, "application/zip", OCTET_STREAM_MIME_TYPE}
)

EXTENSION_MIME_TYPES = {
    "txt": TEXT_MIME_TYPE,
    "pdf": PDF_MIME_TYPE,
    "docx": DOCX_MIME_TYPE,
}

SUPPORTED_MIME_TYPES = frozenset(
    {PDF_MIME_TYPE, TEXT_MIME_TYPE} | DOCX_COMPATIBLE_MIME_TYPES
)


class ParseError(Exception):
    """Exception raised when a file cannot be turned into resume text."""

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.original_error = original_error


def guess_mime_type(filename: str) -> str:
    """Guess a file's MIME type from its extension.

    Args:
        filename: Name of the uploaded file.

    Returns:
        The MIME type, or ``application/octet-stream`` for unknown extensions.
    """
    suffix = PurePosixPath(filename).suffix.lower().lstrip(".")
    return EXTENSION_MIME_TYPES.get(suffix, OCTET_STREAM_MIME_TYPE)


def _extract_pdf(data: bytes) -> str:
    reader = PdfReader(io.BytesIO(data))
    pages = [page.extract_text() or "" for page in reader.pages]
    return "\n".join(pages)


def _extract_docx(data: bytes) -> str:
    document = docx.Document(io.BytesIO(data))
    return "\n".join(paragraph.text for paragraph in document.paragraphs)


def _extract_text(data: bytes) -> str:
    return data.decode("utf-8-sig")


def parse_file(
    data: bytes,
    mime_type: str,
    filename: str,
    min_length: int = 1,
) -> str:
    """Extract normalized text from an uploaded file.

    Args:
        data: Raw file bytes.
        mime_type: MIME type declared for the file.
        filename: Original file name (used in error messages).
        min_length: Minimum number of characters the text must contain.

    Returns:
        The normalized resume text.

    Raises:
        ParseError: If the type is unsupported, the file is corrupt, or the
            text is shorter than ``min_length``.
    """
    mime_type = (mime_type or "").split(";", 1)[0].strip().lower()

    if mime_type not in SUPPORTED_MIME_TYPES:
        raise ParseError(
            f"Unsupported file type: {mime_type or 'unknown'}. "
            "Please upload PDF, DOCX, or TXT files."
        )

    try:
        if mime_type == PDF_MIME_TYPE:
            raw_text = _extract_pdf(data)
        elif mime_type == TEXT_MIME_TYPE:
            raw_text = _extract_text(data)
        else:
            raw_text = _extract_docx(data)
    except Exception as e:
        logger.debug("Extraction failed for %s (%s): %s", filename, mime_type, e)
        raise ParseError(f"Failed to parse file {filename}: {e}", e) from e

    text = normalize_text(raw_text)
    if len(text) < min_length:
        raise ParseError(
            f"File {filename} contains insufficient text content "
            f"(minimum {min_length} characters required)"
        )
    return text
