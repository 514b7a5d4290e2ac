"""Paragraph-aware text chunker with character overlap."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

DEFAULT_CHUNK_SIZE = 1000  # characters per chunk
DEFAULT_CHUNK_OVERLAP = 200  # characters repeated from the previous chunk

PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
PARAGRAPH_JOINER = "\n\n"


@dataclass
class TextChunk:
    """A contiguous slice of a document's text."""

    content: str
    index: int
    metadata: dict[str, int] = field(default_factory=dict)

    @property
    def char_start(self) -> int:
        return self.metadata["char_start"]

    @property
    def char_end(self) -> int:
        return self.metadata["char_end"]


def chunk_text(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> list[TextChunk]:
    """Split text into overlapping chunks along paragraph boundaries.

    Paragraphs are accumulated until the next one would push the buffer past
    ``chunk_size``; the buffer is then emitted and the next one starts with
    the last ``overlap`` characters of it. A single paragraph longer than
    ``chunk_size`` is kept whole. Text without any blank-line boundary that is
    longer than ``chunk_size`` is sliced into fixed-width windows instead.

    Args:
        text: Raw document text.
        chunk_size: Target maximum chunk length in characters.
        overlap: Characters carried over from the end of the previous chunk.
            The seed plus its joiner must fit in ``chunk_size``.

    Returns:
        Chunks indexed from 0. ``metadata`` holds ``char_start``/``char_end``
        offsets into ``text``. Empty or whitespace-only text yields ``[]``.

    Raises:
        ValueError: If ``chunk_size``/``overlap`` are out of range.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    max_overlap = max(0, chunk_size - len(PARAGRAPH_JOINER))
    if overlap < 0 or overlap > max_overlap:
        raise ValueError(f"overlap must be in [0, {max_overlap}], got {overlap}")

    if not text or not text.strip():
        return []

    has_paragraph_breaks = PARAGRAPH_BREAK.search(text) is not None
    if not has_paragraph_breaks and len(text.strip()) > chunk_size:
        return _chunk_fixed_width(text, chunk_size, overlap)

    chunks = _chunk_paragraphs(text, chunk_size, overlap)
    if not chunks:
        chunks = _chunk_fixed_width(text, chunk_size, overlap)
    return chunks


def _paragraph_spans(text: str) -> list[tuple[int, int]]:
    """Return (start, end) offsets of the trimmed, non-empty paragraphs."""
    raw_spans: list[tuple[int, int]] = []
    start = 0
    for match in PARAGRAPH_BREAK.finditer(text):
        raw_spans.append((start, match.start()))
        start = match.end()
    raw_spans.append((start, len(text)))

    spans: list[tuple[int, int]] = []
    for span_start, span_end in raw_spans:
        segment = text[span_start:span_end]
        stripped = segment.strip()
        if not stripped:
            continue
        lead = len(segment) - len(segment.lstrip())
        spans.append((span_start + lead, span_start + lead + len(stripped)))
    return spans


def _chunk_paragraphs(text: str, chunk_size: int, overlap: int) -> list[TextChunk]:
    chunks: list[TextChunk] = []
    buffer = ""
    buffer_start = 0
    buffer_end = 0

    for start, end in _paragraph_spans(text):
        paragraph = text[start:end]

        if buffer and len(buffer) + len(PARAGRAPH_JOINER) + len(paragraph) > chunk_size:
            chunks.append(_make_chunk(buffer, buffer_start, buffer_end, len(chunks)))

            if 0 < overlap < len(buffer):
                buffer = buffer[-overlap:] + PARAGRAPH_JOINER + paragraph
                buffer_start = max(0, buffer_end - overlap)
            else:
                buffer = paragraph
                buffer_start = start
        elif buffer:
            buffer = buffer + PARAGRAPH_JOINER + paragraph
        else:
            buffer = paragraph
            buffer_start = start

        buffer_end = end

    if buffer.strip():
        chunks.append(_make_chunk(buffer, buffer_start, buffer_end, len(chunks)))

    return chunks


def _make_chunk(buffer: str, start: int, end: int, index: int) -> TextChunk:
    # Buffers always end with a trimmed paragraph; only the overlap seed can
    # carry leading whitespace.
    lead = len(buffer) - len(buffer.lstrip())
    return TextChunk(
        content=buffer.strip(),
        index=index,
        metadata={"char_start": min(start + lead, end), "char_end": end},
    )


def _chunk_fixed_width(text: str, chunk_size: int, overlap: int) -> list[TextChunk]:
    """Slice text into windows of ``chunk_size`` advancing by ``chunk_size - overlap``."""
    chunks: list[TextChunk] = []
    step = chunk_size - overlap

    for start in range(0, len(text), step):
        end = min(start + chunk_size, len(text))
        window = text[start:end]
        content = window.strip()
        if content:
            lead = len(window) - len(window.lstrip())
            chunks.append(
                TextChunk(
                    content=content,
                    index=len(chunks),
                    metadata={
                        "char_start": start + lead,
                        "char_end": start + lead + len(content),
                    },
                )
            )
        if end >= len(text):
            break

    return chunks


class ParagraphChunker:
    """Configured chunker used by the ingestion pipeline."""

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        overlap: int = DEFAULT_CHUNK_OVERLAP,
    ) -> None:
        if chunk_size <= 0 or overlap < 0 or overlap >= chunk_size:
            raise ValueError(
                f"Invalid chunking parameters: chunk_size={chunk_size}, overlap={overlap}"
            )
        self.chunk_size = chunk_size
        self.overlap = overlap

    def chunk(self, text: str) -> list[TextChunk]:
        """Chunk text with the configured size and overlap."""
        return chunk_text(text, self.chunk_size, self.overlap)
