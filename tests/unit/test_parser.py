"""Tests for text extraction."""

import io

import pytest

from docrag.core.exceptions import ValidationError
from docrag.documents.parser import DOCX_MIME_TYPE, TextExtractor, resolve_file_type


@pytest.fixture
def extractor() -> TextExtractor:
    return TextExtractor()


class TestResolveFileType:
    """Test cases for MIME type and extension mapping."""

    @pytest.mark.parametrize(
        ("mime_type", "filename", "expected"),
        [
            ("application/pdf", "a.pdf", "pdf"),
            ("text/markdown", "notes.md", "markdown"),
            ("text/plain; charset=utf-8", "a.txt", "text"),
            (DOCX_MIME_TYPE, "a.docx", "docx"),
            ("application/octet-stream", "README.MD", "markdown"),
            (None, "report.docx", "docx"),
            ("image/png", "photo.png", None),
            (None, "no_extension", None),
        ],
    )
    def test_mapping(self, mime_type, filename, expected):
        assert resolve_file_type(mime_type, filename) == expected


class TestTextExtractor:
    """Test cases for TextExtractor.extract."""

    def test_plain_text(self, extractor):
        """UTF-8 text is decoded as-is."""
        extracted = extractor.extract("Héllo world".encode(), "text/plain", "a.txt")

        assert extracted.text == "Héllo world"
        assert extracted.file_type == "text"
        assert extracted.page_count is None

    def test_markdown_with_bom(self, extractor):
        """A UTF-8 byte order mark is stripped."""
        extracted = extractor.extract(b"\xef\xbb\xbf# Title\n\nBody", "text/markdown", "a.md")

        assert extracted.text == "# Title\n\nBody"
        assert extracted.file_type == "markdown"

    @pytest.mark.parametrize("encoding", ["latin-1", "cp1252"])
    def test_legacy_western_text(self, extractor, encoding):
        """Non-UTF-8 Western text keeps its accented letters."""
        extracted = extractor.extract("Größe: 10 cm, café".encode(encoding), "text/plain", "sizes.txt")

        assert extracted.text == "Größe: 10 cm, café"

    def test_undecodable_bytes_are_replaced(self, extractor):
        """Bytes valid in no supported encoding become replacement characters."""
        extracted = extractor.extract(b"caf\xe9 \x81", "text/plain", "odd.txt")

        assert extracted.text == "caf\ufffd \ufffd"

    def test_unsupported_type(self, extractor):
        """Unsupported types are rejected."""
        with pytest.raises(ValidationError, match="Unsupported file type"):
            extractor.extract(b"\x89PNG", "image/png", "photo.png")

    def test_empty_text(self, extractor):
        """Whitespace-only files yield no text."""
        with pytest.raises(ValidationError, match="No text content could be extracted"):
            extractor.extract(b"  \n\n ", "text/plain", "blank.txt")

    def test_invalid_pdf(self, extractor):
        """Bytes that are not a PDF cannot be processed."""
        with pytest.raises(ValidationError, match="Unable to process"):
            extractor.extract(b"not a pdf", "application/pdf", "broken.pdf")

    def test_invalid_docx(self, extractor):
        """Bytes that are not a DOCX cannot be processed."""
        with pytest.raises(ValidationError, match="not a valid DOCX"):
            extractor.extract(b"not a docx", DOCX_MIME_TYPE, "broken.docx")

    def test_docx_paragraphs_and_tables(self, extractor):
        """DOCX paragraphs and table rows are extracted."""
        from docx import Document

        doc = Document()
        doc.add_paragraph("Refund policy")
        doc.add_paragraph("Refunds take 5 days.")
        table = doc.add_table(rows=1, cols=2)
        table.rows[0].cells[0].text = "Region"
        table.rows[0].cells[1].text = "EU"
        buffer = io.BytesIO()
        doc.save(buffer)

        extracted = extractor.extract(buffer.getvalue(), DOCX_MIME_TYPE, "policy.docx")

        assert extracted.file_type == "docx"
        assert extracted.text == "Refund policy\n\nRefunds take 5 days.\n\nRegion | EU"
