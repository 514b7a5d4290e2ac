"""Text extraction for uploaded files."""

from __future__ import annotations

import io
from dataclasses import dataclass

from docrag.core.exceptions import ValidationError
from docrag.core.logging import get_logger

logger = get_logger(__name__)

DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

# Upload MIME type -> document file type tag
MIME_TYPE_MAP: dict[str, str] = {
    "application/pdf": "pdf",
    "text/markdown": "markdown",
    "text/x-markdown": "markdown",
    "text/plain": "text",
    DOCX_MIME_TYPE: "docx",
}

# Fallback when the client sends a generic MIME type
EXTENSION_MAP: dict[str, str] = {
    "pdf": "pdf",
    "md": "markdown",
    "markdown": "markdown",
    "txt": "text",
    "docx": "docx",
}


@dataclass
class ExtractedText:
    """Plain text pulled out of an uploaded file."""

    text: str
    file_type: str
    page_count: int | None = None


def resolve_file_type(mime_type: str | None, filename: str | None = None) -> str | None:
    """Map a MIME type (or, failing that, a file extension) to a file type tag."""
    if mime_type:
        file_type = MIME_TYPE_MAP.get(mime_type.split(";")[0].strip().lower())
        if file_type:
            return file_type
    if filename and "." in filename:
        return EXTENSION_MAP.get(filename.rsplit(".", 1)[1].lower())
    return None


class TextExtractor:
    """Extracts plain text from PDF, Markdown, plain text and DOCX uploads."""

    def extract(
        self,
        content: bytes,
        mime_type: str | None,
        filename: str = "document",
    ) -> ExtractedText:
        """Extract text from raw file bytes.

        Args:
            content: Raw file bytes
            mime_type: MIME type reported by the client
            filename: Original file name (used for messages and extension fallback)

        Returns:
            ExtractedText with the text, file type tag and page count (PDF only)

        Raises:
            ValidationError: If the type is unsupported, the file is unreadable
                or no text could be extracted
        """
        file_type = resolve_file_type(mime_type, filename)
        if file_type is None:
            raise ValidationError(f"Unsupported file type: {mime_type or 'unknown'}")

        page_count: int | None = None
        if file_type == "pdf":
            text, page_count = self._extract_pdf(content, filename)
        elif file_type == "docx":
            text = self._extract_docx(content, filename)
        else:
            text = self._decode_bytes(content)

        if not text.strip():
            raise ValidationError(
                f'No text content could be extracted from "{filename}". '
                "The file may be a scanned image, password-protected, or empty."
            )

        logger.debug(
            "text_extracted",
            filename=filename,
            file_type=file_type,
            characters=len(text),
            page_count=page_count,
        )
        return ExtractedText(text=text, file_type=file_type, page_count=page_count)

    def _decode_bytes(self, content: bytes) -> str:
        """Decode bytes as UTF-8, falling back to Windows-1252 for legacy Western text.

        Bytes that fit neither are decoded as UTF-8 with replacement characters.
        """
        for encoding in ("utf-8-sig", "cp1252"):
            try:
                return content.decode(encoding)
            except UnicodeDecodeError:
                continue

        return content.decode("utf-8", errors="replace")

    def _extract_pdf(self, content: bytes, filename: str) -> tuple[str, int]:
        """Extract page text from a PDF using pdfplumber."""
        import pdfplumber

        try:
            with pdfplumber.open(io.BytesIO(content)) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
        except Exception as e:
            logger.warning("pdf_parse_failed", filename=filename, error=str(e))
            raise ValidationError(
                f'Unable to process "{filename}". Please ensure the file is not '
                "password protected and contains readable text."
            ) from e

        text = "\n\n".join(page.strip() for page in pages if page.strip())
        return text, len(pages)

    def _extract_docx(self, content: bytes, filename: str) -> str:
        """Extract paragraph and table text from a DOCX using python-docx."""
        from docx import Document as DocxDocument

        try:
            doc = DocxDocument(io.BytesIO(content))
        except Exception as e:
            logger.warning("docx_parse_failed", filename=filename, error=str(e))
            raise ValidationError(f'Unable to process "{filename}": not a valid DOCX file') from e

        blocks = [para.text.strip() for para in doc.paragraphs if para.text.strip()]

        for table in doc.tables:
            rows = [" | ".join(cell.text.strip() for cell in row.cells) for row in table.rows]
            if rows:
                blocks.append("\n".join(rows))

        return "\n\n".join(blocks)
