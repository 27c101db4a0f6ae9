"""Tests for resume file parsing."""

import io

import docx
import pytest
from pypdf import PdfWriter

from resume_pipeline.parsing.parser import (
    DOCX_MIME_TYPE,
    ParseError,
    guess_mime_type,
    parse_file,
)


def _docx_bytes(*paragraphs: str) -> bytes:
    document = docx.Document()
    for paragraph in paragraphs:
        document.add_paragraph(paragraph)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def _blank_pdf_bytes() -> bytes:
    writer = PdfWriter()
    writer.add_blank_page(width=612, height=792)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


class TestGuessMimeType:
    """Test extension-based MIME detection."""

    @pytest.mark.parametrize(
        ("filename", "expected"),
        [
            ("resume.txt", "text/plain"),
            ("resume.PDF", "application/pdf"),
            ("resume.docx", DOCX_MIME_TYPE),
            ("resume.rtf", "application/octet-stream"),
            ("resume", "application/octet-stream"),
        ],
    )
    def test_guess(self, filename, expected):
        assert guess_mime_type(filename) == expected


class TestParseText:
    """Test plain-text extraction."""

    def test_extracts_and_normalizes(self):
        text = parse_file(b"  Hello   World \r\n", "text/plain", "file.txt")
        assert text == "Hello World"

    def test_strips_utf8_bom(self):
        text = parse_file("\ufeffJane Doe".encode(), "text/plain", "file.txt")
        assert text == "Jane Doe"

    def test_ignores_mime_parameters(self):
        text = parse_file(b"Hello", "text/plain; charset=utf-8", "file.txt")
        assert text == "Hello"

    def test_invalid_utf8_raises(self):
        with pytest.raises(ParseError):
            parse_file(b"\xff\xfe\xfa", "text/plain", "file.txt")


class TestParseDocx:
    """Test DOCX extraction."""

    def test_extracts_paragraphs(self):
        data = _docx_bytes("Jane Doe", "Senior Engineer")

        text = parse_file(data, DOCX_MIME_TYPE, "cv.docx")
        assert "Jane Doe" in text
        assert "Senior Engineer" in text

    @pytest.mark.parametrize("mime_type", ["application/zip", "application/octet-stream"])
    def test_accepts_generic_container_types(self, mime_type):
        text = parse_file(_docx_bytes("Jane Doe"), mime_type, "cv.docx")
        assert text == "Jane Doe"

    def test_corrupt_docx_raises(self):
        with pytest.raises(ParseError) as exc_info:
            parse_file(b"not a zip", DOCX_MIME_TYPE, "cv.docx")
        assert exc_info.value.original_error is not None


class TestParsePdf:
    """Test PDF extraction."""

    def test_blank_pdf_has_insufficient_text(self):
        with pytest.raises(ParseError, match="insufficient text"):
            parse_file(_blank_pdf_bytes(), "application/pdf", "cv.pdf")


class TestParseErrors:
    """Test rejected inputs."""

    def test_unsupported_type(self):
        with pytest.raises(ParseError, match="Unsupported file type"):
            parse_file(b"{}", "application/json", "cv.json")

    def test_min_length_enforced(self):
        with pytest.raises(ParseError):
            parse_file(b"Short", "text/plain", "file.txt", min_length=50)

    def test_whitespace_only_is_empty(self):
        with pytest.raises(ParseError):
            parse_file(b"   \n\t  ", "text/plain", "file.txt")
