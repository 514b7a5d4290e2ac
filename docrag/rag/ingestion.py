"""Document ingestion: chunk, embed and persist with full rollback on failure."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from docrag.core.exceptions import (
    AppError,
    ConfigurationError,
    EmbeddingError,
    IngestionError,
    ValidationError,
)
from docrag.core.logging import get_logger
from docrag.core.protocols import DocumentStore, EmbeddingProvider
from docrag.documents.chunker import ParagraphChunker
from docrag.documents.embeddings import check_dimensions, estimate_token_count
from docrag.documents.models import (
    SUPPORTED_FILE_TYPES,
    ChunkRecord,
    Document,
    IngestionOutcome,
    IngestionResult,
    new_id,
)

logger = get_logger(__name__)

DEFAULT_INSERT_BATCH_SIZE = 50


@dataclass
class IngestionRequest:
    """One file's extracted text, queued for ingestion."""

    filename: str
    content: str
    file_type: str
    file_size: int | None = None
    page_count: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class IngestionPipeline:
    """Turns document text into stored, embedded chunks.

    A document record is only left behind when every chunk of it was
    stored. Any failure after the record is written deletes the chunks
    inserted so far and then the record itself.
    """

    def __init__(
        self,
        store: DocumentStore,
        embedder: EmbeddingProvider,
        chunker: ParagraphChunker,
        dimensions: int | None = None,
        insert_batch_size: int = DEFAULT_INSERT_BATCH_SIZE,
    ):
        if insert_batch_size < 1:
            raise ConfigurationError(
                f"Chunk insert batch size must be positive, got {insert_batch_size}"
            )
        self._store = store
        self._embedder = embedder
        self._chunker = chunker
        self._dimensions = dimensions if dimensions is not None else embedder.dimensions
        self._insert_batch_size = insert_batch_size

    async def ingest(
        self,
        user_id: str,
        filename: str,
        content: str,
        file_type: str,
        file_size: int | None = None,
        page_count: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> IngestionResult:
        """Store a document, chunk it, embed the chunks and store them.

        Args:
            user_id: Owner of the document
            filename: Original file name
            content: Extracted document text
            file_type: One of pdf, markdown, text, docx
            file_size: Upload size in bytes
            page_count: Page count (PDF only)
            metadata: Free-form document metadata

        Returns:
            IngestionResult with the new document id and chunk statistics

        Raises:
            IngestionError: If the document could not be ingested; the
                underlying error is chained as ``__cause__``
            ConfigurationError: If the embedding provider is misconfigured
                (e.g. returns vectors of the wrong dimensionality)
        """
        try:
            self._validate(user_id, content, file_type)
        except ValidationError as e:
            raise IngestionError(filename, e.message) from e

        document = Document(
            id=new_id(),
            user_id=user_id,
            filename=filename,
            file_type=file_type,
            content=content,
            file_size=file_size,
            page_count=page_count,
            metadata=dict(metadata or {}),
        )

        try:
            document_id = await self._store.insert_document(document)
        except AppError as e:
            raise IngestionError(filename, f"Failed to store document: {e.message}") from e

        try:
            chunk_count, total_tokens = await self._store_chunks(
                document_id, user_id, filename, content
            )
        except BaseException as e:
            await self._rollback(document_id, filename, e)
            if isinstance(e, IngestionError | ConfigurationError) or not isinstance(e, Exception):
                raise
            reason = e.message if isinstance(e, AppError) else str(e)
            raise IngestionError(filename, reason) from e

        logger.info(
            "document_ingested",
            document_id=document_id,
            filename=filename,
            file_type=file_type,
            chunk_count=chunk_count,
            total_tokens=total_tokens,
        )
        return IngestionResult(
            document_id=document_id,
            filename=filename,
            chunk_count=chunk_count,
            total_tokens=total_tokens,
        )

    async def ingest_many(
        self, user_id: str, files: Sequence[IngestionRequest]
    ) -> list[IngestionOutcome]:
        """Ingest several files, isolating failures per file.

        Configuration errors are not isolated since they would fail every file.
        """
        outcomes: list[IngestionOutcome] = []
        for request in files:
            try:
                result = await self.ingest(
                    user_id=user_id,
                    filename=request.filename,
                    content=request.content,
                    file_type=request.file_type,
                    file_size=request.file_size,
                    page_count=request.page_count,
                    metadata=request.metadata,
                )
            except IngestionError as e:
                logger.warning("file_ingestion_failed", filename=request.filename, error=e.message)
                outcomes.append(IngestionOutcome(filename=request.filename, error=e.message))
            else:
                outcomes.append(IngestionOutcome(filename=request.filename, result=result))

        logger.info(
            "ingestion_batch_completed",
            user_id=user_id,
            files=len(outcomes),
            ingested=sum(1 for o in outcomes if o.ok),
        )
        return outcomes

    def _validate(self, user_id: str, content: str, file_type: str) -> None:
        if not user_id:
            raise ValidationError("user_id is required")
        if file_type not in SUPPORTED_FILE_TYPES:
            raise ValidationError(
                f"Unsupported file type: {file_type}. "
                f"Supported: {', '.join(SUPPORTED_FILE_TYPES)}"
            )
        if not content or not content.strip():
            raise ValidationError("Document content is empty")

    async def _store_chunks(
        self, document_id: str, user_id: str, filename: str, content: str
    ) -> tuple[int, int]:
        chunks = self._chunker.chunk(content)
        if not chunks:
            raise IngestionError(filename, "no content could be chunked")

        embeddings = await self._embedder.embed_batch([chunk.content for chunk in chunks])
        if len(embeddings) != len(chunks):
            raise EmbeddingError(
                f"Embedding count mismatch: {len(embeddings)} vectors for {len(chunks)} chunks",
                getattr(self._embedder, "provider", "unknown"),
            )
        check_dimensions(embeddings, self._dimensions)

        records = [
            ChunkRecord(
                id=new_id(),
                document_id=document_id,
                user_id=user_id,
                chunk_index=chunk.index,
                content=chunk.content,
                token_count=estimate_token_count(chunk.content),
                embedding=embedding,
                metadata=dict(chunk.metadata),
            )
            for chunk, embedding in zip(chunks, embeddings, strict=True)
        ]

        for start in range(0, len(records), self._insert_batch_size):
            await self._store.insert_chunks(records[start : start + self._insert_batch_size])

        return len(records), sum(record.token_count for record in records)

    async def _rollback(self, document_id: str, filename: str, error: BaseException) -> None:
        """Delete every chunk of the document and then the document itself."""
        try:
            await self._store.delete_chunks_for_document(document_id)
            await self._store.delete_document(document_id)
        except Exception as rollback_error:
            logger.error(
                "ingestion_rollback_failed",
                document_id=document_id,
                filename=filename,
                error=str(rollback_error),
                original_error=str(error),
            )
            return

        logger.warning(
            "ingestion_rolled_back",
            document_id=document_id,
            filename=filename,
            error_type=type(error).__name__,
            error=str(error),
        )
