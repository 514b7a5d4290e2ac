"""Request-level RAG operations used by the API layer."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from docrag.core.exceptions import NotFoundError, ValidationError
from docrag.core.logging import get_logger
from docrag.core.protocols import DocumentStore
from docrag.documents.models import Conversation, Document, IngestionOutcome, Message
from docrag.documents.parser import TextExtractor
from docrag.rag.ingestion import IngestionPipeline, IngestionRequest

logger = get_logger(__name__)


@dataclass
class UploadedFile:
    """Raw upload awaiting text extraction."""

    filename: str
    content: bytes
    mime_type: str | None = None
    size: int | None = None  # declared size of an upload left unread


class RAGService:
    """Document library and conversation operations for a signed-in user."""

    def __init__(
        self,
        store: DocumentStore,
        pipeline: IngestionPipeline,
        extractor: TextExtractor,
        max_file_size: int | None = None,
    ):
        self._store = store
        self._pipeline = pipeline
        self._extractor = extractor
        self._max_file_size = max_file_size

    async def ingest_files(
        self, user_id: str, files: Sequence[UploadedFile]
    ) -> list[IngestionOutcome]:
        """Extract text from each upload and ingest it.

        A file that cannot be read is reported in its outcome and does not
        stop the others. Outcomes keep the upload order.
        """
        outcomes: list[IngestionOutcome | None] = [None] * len(files)
        requests: list[IngestionRequest] = []
        positions: list[int] = []

        for position, upload in enumerate(files):
            try:
                self._check_size(upload)
                extracted = self._extractor.extract(upload.content, upload.mime_type, upload.filename)
            except ValidationError as e:
                logger.warning("upload_rejected", filename=upload.filename, error=e.message)
                outcomes[position] = IngestionOutcome(filename=upload.filename, error=e.message)
                continue

            requests.append(
                IngestionRequest(
                    filename=upload.filename,
                    content=extracted.text,
                    file_type=extracted.file_type,
                    file_size=len(upload.content),
                    page_count=extracted.page_count,
                )
            )
            positions.append(position)

        ingested = await self._pipeline.ingest_many(user_id, requests)
        for position, outcome in zip(positions, ingested, strict=True):
            outcomes[position] = outcome

        return [outcome for outcome in outcomes if outcome is not None]

    def _check_size(self, upload: UploadedFile) -> None:
        size = upload.size if upload.size is not None else len(upload.content)
        if self._max_file_size is not None and size > self._max_file_size:
            limit_mb = self._max_file_size // (1024 * 1024)
            raise ValidationError(f'"{upload.filename}" exceeds the {limit_mb} MB upload limit')
        if not upload.content:
            raise ValidationError(f'"{upload.filename}" is empty')

    async def list_documents(self, user_id: str) -> list[Document]:
        return await self._store.list_documents(user_id)

    async def delete_document(self, document_id: str, user_id: str) -> None:
        """Delete a document with its chunks.

        Raises:
            NotFoundError: If the user owns no such document
        """
        deleted = await self._store.delete_document_cascade(document_id, user_id)
        if not deleted:
            raise NotFoundError(f"Document {document_id} not found", "document")
        logger.info("document_removed", document_id=document_id, user_id=user_id)

    async def list_conversations(self, user_id: str) -> list[Conversation]:
        return await self._store.list_conversations(user_id)

    async def list_messages(self, conversation_id: str, user_id: str) -> list[Message]:
        """Messages of a conversation, oldest first.

        Raises:
            NotFoundError: If the user owns no such conversation
        """
        conversation = await self._store.get_conversation(conversation_id, user_id)
        if conversation is None:
            raise NotFoundError(f"Conversation {conversation_id} not found", "conversation")
        return await self._store.list_messages(conversation_id, user_id)
