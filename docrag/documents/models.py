"""Document, conversation and retrieval models."""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal

# File type tags accepted by the ingestion pipeline
SUPPORTED_FILE_TYPES = ("pdf", "markdown", "text", "docx")

MessageRole = Literal["user", "assistant"]


def new_id() -> str:
    """Generate a new record id."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


@dataclass
class Document:
    """An ingested source file.

    ``content`` is empty when the document is loaded for listing.
    """

    id: str
    user_id: str
    filename: str
    file_type: str
    content: str = ""
    file_size: int | None = None
    page_count: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utc_now)


@dataclass
class ChunkRecord:
    """A stored chunk of a document together with its embedding."""

    id: str
    document_id: str
    user_id: str
    chunk_index: int
    content: str
    token_count: int
    embedding: list[float]
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class Conversation:
    """A RAG question-answering thread."""

    id: str
    user_id: str
    title: str
    document_ids: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)


@dataclass
class Source:
    """Citation stored with an assistant message."""

    document_id: str
    chunk_id: str
    filename: str
    snippet: str
    similarity: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Message:
    """One turn of a conversation."""

    id: str
    conversation_id: str
    user_id: str
    role: MessageRole
    content: str
    sources: list[Source] = field(default_factory=list)
    token_count: int = 0
    created_at: datetime = field(default_factory=utc_now)


@dataclass
class SearchResult:
    """A chunk returned by similarity search."""

    chunk_id: str
    document_id: str
    filename: str
    content: str
    chunk_index: int
    similarity: float
    document_metadata: dict[str, Any] = field(default_factory=dict)
    chunk_metadata: dict[str, Any] = field(default_factory=dict)

    def to_source(self, snippet_length: int = 200) -> Source:
        """Build the citation stored with an assistant message."""
        return Source(
            document_id=self.document_id,
            chunk_id=self.chunk_id,
            filename=self.filename,
            snippet=self.content[:snippet_length],
            similarity=self.similarity,
        )


@dataclass
class IngestionResult:
    """Summary of a successful ingestion."""

    document_id: str
    filename: str
    chunk_count: int
    total_tokens: int


@dataclass
class IngestionOutcome:
    """Per-file result of a multi-file ingestion."""

    filename: str
    result: IngestionResult | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.result is not None


@dataclass
class RAGAnswer:
    """Answer produced by the synthesizer."""

    answer: str
    sources: list[SearchResult]
    conversation_id: str
    message_id: str
