"""In-process document store for development and testing."""

from __future__ import annotations

import math
import threading
from collections.abc import Sequence
from dataclasses import replace

from docrag.core.exceptions import StoreError
from docrag.core.logging import get_logger
from docrag.documents.models import (
    ChunkRecord,
    Conversation,
    Document,
    Message,
    SearchResult,
    utc_now,
)
from docrag.store.factory import StoreFactory

logger = get_logger(__name__)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two equal-length vectors (0.0 for zero vectors)."""
    if len(a) != len(b):
        raise ValueError(f"Vector length mismatch: {len(a)} != {len(b)}")
    dot = sum(x * y for x, y in zip(a, b, strict=True))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


@StoreFactory.register("in_memory")
class InMemoryDocumentStore:
    """Dictionary-based document store with brute-force cosine search.

    Not persistent - data is lost on restart.
    """

    def __init__(self) -> None:
        self._documents: dict[str, Document] = {}
        self._chunks: dict[str, ChunkRecord] = {}
        self._conversations: dict[str, Conversation] = {}
        self._messages: dict[str, Message] = {}
        self._lock = threading.Lock()
        logger.debug("in_memory_store_initialized")

    # --- Documents ---

    async def insert_document(self, document: Document) -> str:
        with self._lock:
            if document.id in self._documents:
                raise StoreError(f"Document {document.id} already exists", "insert_document")
            self._documents[document.id] = replace(document, metadata=dict(document.metadata))
        return document.id

    async def delete_document(self, document_id: str) -> None:
        with self._lock:
            self._documents.pop(document_id, None)
            self._drop_chunks(document_id)

    async def insert_chunks(self, chunks: Sequence[ChunkRecord]) -> None:
        with self._lock:
            for chunk in chunks:
                if chunk.document_id not in self._documents:
                    raise StoreError(
                        f"Chunk {chunk.id} references unknown document {chunk.document_id}",
                        "insert_chunks",
                    )
                if chunk.id in self._chunks:
                    raise StoreError(f"Chunk {chunk.id} already exists", "insert_chunks")
            for chunk in chunks:
                self._chunks[chunk.id] = replace(chunk, embedding=list(chunk.embedding))

    async def delete_chunks_for_document(self, document_id: str) -> None:
        with self._lock:
            self._drop_chunks(document_id)

    def _drop_chunks(self, document_id: str) -> int:
        chunk_ids = [cid for cid, c in self._chunks.items() if c.document_id == document_id]
        for chunk_id in chunk_ids:
            del self._chunks[chunk_id]
        return len(chunk_ids)

    async def similarity_search(
        self,
        query_embedding: Sequence[float],
        user_id: str,
        document_ids: Sequence[str] | None,
        match_count: int,
        similarity_threshold: float,
    ) -> list[SearchResult]:
        allowed = set(document_ids) if document_ids else None

        with self._lock:
            candidates = [
                (chunk, self._documents[chunk.document_id])
                for chunk in self._chunks.values()
                if chunk.user_id == user_id
                and chunk.document_id in self._documents
                and (allowed is None or chunk.document_id in allowed)
            ]

        results: list[SearchResult] = []
        for chunk, document in candidates:
            try:
                similarity = cosine_similarity(query_embedding, chunk.embedding)
            except ValueError as e:
                raise StoreError(str(e), "similarity_search") from e
            if similarity < similarity_threshold:
                continue
            results.append(
                SearchResult(
                    chunk_id=chunk.id,
                    document_id=chunk.document_id,
                    filename=document.filename,
                    content=chunk.content,
                    chunk_index=chunk.chunk_index,
                    similarity=similarity,
                    document_metadata=dict(document.metadata),
                    chunk_metadata=dict(chunk.metadata),
                )
            )

        results.sort(key=lambda r: r.similarity, reverse=True)
        return results[:match_count]

    async def list_documents(self, user_id: str) -> list[Document]:
        with self._lock:
            documents = [
                replace(doc, content="", metadata=dict(doc.metadata))
                for doc in self._documents.values()
                if doc.user_id == user_id
            ]
        documents.sort(key=lambda d: d.created_at, reverse=True)
        return documents

    async def delete_document_cascade(self, document_id: str, user_id: str) -> bool:
        with self._lock:
            document = self._documents.get(document_id)
            if document is None or document.user_id != user_id:
                return False

            chunks_deleted = self._drop_chunks(document_id)
            del self._documents[document_id]
            for conversation in self._conversations.values():
                if document_id in conversation.document_ids:
                    conversation.document_ids = [
                        d for d in conversation.document_ids if d != document_id
                    ]

        logger.info(
            "document_deleted",
            document_id=document_id,
            chunks_deleted=chunks_deleted,
        )
        return True

    # --- Conversations ---

    async def insert_conversation(self, conversation: Conversation) -> str:
        with self._lock:
            if conversation.id in self._conversations:
                raise StoreError(
                    f"Conversation {conversation.id} already exists", "insert_conversation"
                )
            self._conversations[conversation.id] = replace(
                conversation, document_ids=list(conversation.document_ids)
            )
        return conversation.id

    async def get_conversation(self, conversation_id: str, user_id: str) -> Conversation | None:
        with self._lock:
            conversation = self._conversations.get(conversation_id)
            if conversation is None or conversation.user_id != user_id:
                return None
            return replace(conversation, document_ids=list(conversation.document_ids))

    async def delete_conversation(self, conversation_id: str) -> None:
        with self._lock:
            self._conversations.pop(conversation_id, None)
            message_ids = [
                mid for mid, m in self._messages.items() if m.conversation_id == conversation_id
            ]
            for message_id in message_ids:
                del self._messages[message_id]

    async def update_conversation_timestamp(self, conversation_id: str) -> None:
        with self._lock:
            conversation = self._conversations.get(conversation_id)
            if conversation is None:
                raise StoreError(
                    f"Conversation {conversation_id} not found",
                    "update_conversation_timestamp",
                )
            conversation.updated_at = utc_now()

    async def list_conversations(self, user_id: str) -> list[Conversation]:
        with self._lock:
            conversations = [
                replace(c, document_ids=list(c.document_ids))
                for c in self._conversations.values()
                if c.user_id == user_id
            ]
        conversations.sort(key=lambda c: c.updated_at, reverse=True)
        return conversations

    # --- Messages ---

    async def insert_message(self, message: Message) -> str:
        with self._lock:
            if message.conversation_id not in self._conversations:
                raise StoreError(
                    f"Message {message.id} references unknown conversation "
                    f"{message.conversation_id}",
                    "insert_message",
                )
            if message.id in self._messages:
                raise StoreError(f"Message {message.id} already exists", "insert_message")
            self._messages[message.id] = replace(message, sources=list(message.sources))
        return message.id

    async def delete_message(self, message_id: str) -> None:
        with self._lock:
            self._messages.pop(message_id, None)

    async def list_messages(
        self,
        conversation_id: str,
        user_id: str,
        limit: int | None = None,
    ) -> list[Message]:
        with self._lock:
            messages = [
                replace(m, sources=list(m.sources))
                for m in self._messages.values()
                if m.conversation_id == conversation_id and m.user_id == user_id
            ]
        # Stable sort keeps insertion order for equal timestamps
        messages.sort(key=lambda m: m.created_at)
        if limit is not None:
            messages = messages[-limit:] if limit > 0 else []
        return messages

    def get_counts(self) -> dict[str, int]:
        """Row counts per table (for monitoring and tests)."""
        with self._lock:
            return {
                "documents": len(self._documents),
                "chunks": len(self._chunks),
                "conversations": len(self._conversations),
                "messages": len(self._messages),
            }
