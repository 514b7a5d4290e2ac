"""Request and response schemas for the API."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

# --- Request Models ---


class SearchRequest(BaseModel):
    """Vector search request."""

    query: str = Field(..., min_length=1, max_length=10000, description="Search query")
    document_ids: list[str] | None = Field(
        default=None, description="Restrict the search to these documents"
    )
    match_count: int = Field(default=10, ge=1, le=50, description="Maximum number of results")
    similarity_threshold: float = Field(
        default=0.4, ge=0.0, le=1.0, description="Minimum cosine similarity"
    )


class QueryRequest(BaseModel):
    """Question answering request."""

    question: str = Field(..., min_length=1, max_length=10000, description="User question")
    conversation_id: str | None = Field(
        default=None, description="Continue an existing conversation"
    )
    document_ids: list[str] | None = Field(
        default=None, description="Restrict retrieval to these documents"
    )
    match_count: int = Field(default=8, ge=1, le=50, description="Chunks to retrieve")


# --- Response Models ---


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service status")
    store_backend: str = Field(..., description="Active document store backend")
    embedding_provider: str = Field(..., description="Active embedding provider")
    embedding_model: str = Field(..., description="Active embedding model")
    llm_provider: str = Field(..., description="Active LLM provider")
    llm_model: str = Field(..., description="Active LLM model")
    store_backends: list[str] = Field(default_factory=list, description="Registered store backends")
    llm_providers: list[str] = Field(default_factory=list, description="Registered LLM providers")


class IngestedDocument(BaseModel):
    """Per-file ingestion result."""

    document_id: str | None = Field(default=None, description="New document id (None on error)")
    filename: str = Field(..., description="Original filename")
    chunk_count: int = Field(default=0, description="Chunks stored")
    total_tokens: int = Field(default=0, description="Estimated tokens across chunks")
    error: str | None = Field(default=None, description="Why the file was not ingested")


class IngestResponse(BaseModel):
    """Multi-file ingestion response."""

    success: bool = Field(default=True)
    documents: list[IngestedDocument] = Field(..., description="Per-file results, upload order")
    total_ingested: int = Field(..., description="Files ingested successfully")


class DocumentInfo(BaseModel):
    """Document information for listing."""

    id: str = Field(..., description="Document identifier")
    filename: str = Field(..., description="Original filename")
    file_type: str = Field(..., description="pdf, markdown, text or docx")
    file_size: int | None = Field(default=None, description="Size in bytes")
    page_count: int | None = Field(default=None, description="Page count (PDF only)")
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(..., description="When the document was ingested")


class DocumentListResponse(BaseModel):
    """List of ingested documents."""

    documents: list[DocumentInfo] = Field(..., description="Newest first")


class DocumentDeleteResponse(BaseModel):
    """Document deletion response."""

    success: bool = Field(default=True)
    document_id: str = Field(..., description="Deleted document identifier")


class SearchResultItem(BaseModel):
    """A retrieved chunk."""

    chunk_id: str
    document_id: str
    filename: str
    content: str
    chunk_index: int
    similarity: float
    document_metadata: dict[str, Any] = Field(default_factory=dict)
    chunk_metadata: dict[str, Any] = Field(default_factory=dict)


class SearchResponse(BaseModel):
    """Vector search response."""

    results: list[SearchResultItem] = Field(..., description="Most similar first")
    count: int = Field(..., description="Number of results")


class SourceItem(BaseModel):
    """Citation shown with an answer."""

    document_id: str
    chunk_id: str
    filename: str
    snippet: str
    similarity: float
    chunk_index: int | None = None


class QueryResponse(BaseModel):
    """Grounded answer response."""

    answer: str = Field(..., description="Generated answer")
    sources: list[SourceItem] = Field(..., description="Retrieved chunks in rank order")
    conversation_id: str = Field(..., description="Conversation the exchange was saved to")
    message_id: str = Field(..., description="Assistant message id")


class ConversationInfo(BaseModel):
    """Conversation summary for listing."""

    id: str
    title: str
    document_ids: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class ConversationListResponse(BaseModel):
    """List of conversations."""

    conversations: list[ConversationInfo] = Field(..., description="Most recently updated first")


class MessageInfo(BaseModel):
    """A conversation message."""

    id: str
    role: str
    content: str
    sources: list[SourceItem] = Field(default_factory=list)
    token_count: int = 0
    created_at: datetime


class MessageListResponse(BaseModel):
    """Messages of a conversation."""

    conversation_id: str
    messages: list[MessageInfo] = Field(..., description="Oldest first")


class ErrorResponse(BaseModel):
    """Error response schema."""

    error: dict = Field(..., description="Error details")
