"""Supabase (Postgres + pgvector) document store.

Embeddings cross the store boundary as JSON array strings; the similarity
search and the cascading delete run as SQL functions (see ``sql/schema.sql``).
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any

from docrag.core.exceptions import ConfigurationError, StoreError
from docrag.core.logging import get_logger
from docrag.documents.models import (
    ChunkRecord,
    Conversation,
    Document,
    Message,
    SearchResult,
    Source,
    utc_now,
)
from docrag.store.factory import StoreFactory

logger = get_logger(__name__)

DOCUMENTS_TABLE = "documents"
CHUNKS_TABLE = "document_chunks"
CONVERSATIONS_TABLE = "conversations"
MESSAGES_TABLE = "messages"

SEARCH_FUNCTION = "get_rag_context"
DELETE_DOCUMENT_FUNCTION = "delete_document_with_chunks"

DOCUMENT_LIST_COLUMNS = "id, user_id, filename, file_type, file_size, page_count, metadata, created_at"


def serialize_embedding(embedding: Sequence[float]) -> str:
    """Encode a vector in the text form accepted by pgvector."""
    return json.dumps([float(v) for v in embedding])


def _parse_timestamp(value: str | None) -> datetime:
    if not value:
        return utc_now()
    return datetime.fromisoformat(value)


@StoreFactory.register("supabase")
class SupabaseDocumentStore:
    """Document store backed by Supabase tables and RPC functions.

    The supabase-py client is synchronous, so every request runs in a worker
    thread.
    """

    def __init__(
        self,
        url: str | None = None,
        service_key: str | None = None,
        client: Any = None,
    ) -> None:
        """Initialize Supabase document store.

        Args:
            url: Supabase project URL
            service_key: Supabase service role key
            client: Pre-built client (used instead of url/service_key)

        Raises:
            ConfigurationError: If neither a client nor credentials are given
        """
        if client is None:
            if not url or not service_key:
                raise ConfigurationError(
                    "Supabase store requires SUPABASE_URL and SUPABASE_SERVICE_KEY"
                )
            from supabase import create_client

            client = create_client(url, service_key)
            logger.info("supabase_store_initialized", url=url)
        self._client = client

    async def _execute(self, operation: str, build: Callable[[], Any]) -> Any:
        """Build and execute a request in a worker thread, wrapping failures."""
        try:
            return await asyncio.to_thread(lambda: build().execute())
        except Exception as e:
            logger.error("supabase_operation_failed", operation=operation, error=str(e))
            raise StoreError(f"Failed to {operation.replace('_', ' ')}: {e}", operation) from e

    def _table(self, name: str) -> Any:
        return self._client.table(name)

    # --- Documents ---

    async def insert_document(self, document: Document) -> str:
        row = {
            "id": document.id,
            "user_id": document.user_id,
            "filename": document.filename,
            "file_type": document.file_type,
            "file_size": document.file_size,
            "page_count": document.page_count,
            "content": document.content,
            "metadata": document.metadata,
            "created_at": document.created_at.isoformat(),
        }
        response = await self._execute(
            "insert_document", lambda: self._table(DOCUMENTS_TABLE).insert(row)
        )
        if response.data:
            return response.data[0].get("id", document.id)
        return document.id

    async def delete_document(self, document_id: str) -> None:
        await self._execute(
            "delete_document",
            lambda: self._table(DOCUMENTS_TABLE).delete().eq("id", document_id),
        )

    async def insert_chunks(self, chunks: Sequence[ChunkRecord]) -> None:
        rows = [
            {
                "id": chunk.id,
                "document_id": chunk.document_id,
                "user_id": chunk.user_id,
                "chunk_index": chunk.chunk_index,
                "content": chunk.content,
                "token_count": chunk.token_count,
                "embedding": serialize_embedding(chunk.embedding),
                "metadata": chunk.metadata,
            }
            for chunk in chunks
        ]
        await self._execute("insert_chunks", lambda: self._table(CHUNKS_TABLE).insert(rows))

    async def delete_chunks_for_document(self, document_id: str) -> None:
        await self._execute(
            "delete_chunks",
            lambda: self._table(CHUNKS_TABLE).delete().eq("document_id", document_id),
        )

    async def similarity_search(
        self,
        query_embedding: Sequence[float],
        user_id: str,
        document_ids: Sequence[str] | None,
        match_count: int,
        similarity_threshold: float,
    ) -> list[SearchResult]:
        params = {
            "query_embedding": serialize_embedding(query_embedding),
            "p_user_id": user_id,
            "p_document_ids": list(document_ids) if document_ids else None,
            "p_match_count": match_count,
            "p_similarity_threshold": similarity_threshold,
        }
        response = await self._execute(
            "similarity_search", lambda: self._client.rpc(SEARCH_FUNCTION, params)
        )

        return [
            SearchResult(
                chunk_id=row["chunk_id"],
                document_id=row["document_id"],
                filename=row["filename"],
                content=row["chunk_content"],
                chunk_index=row["chunk_index"],
                similarity=float(row["similarity"]),
                document_metadata=row.get("document_metadata") or {},
                chunk_metadata=row.get("chunk_metadata") or {},
            )
            for row in response.data or []
        ]

    async def list_documents(self, user_id: str) -> list[Document]:
        response = await self._execute(
            "list_documents",
            lambda: self._table(DOCUMENTS_TABLE)
            .select(DOCUMENT_LIST_COLUMNS)
            .eq("user_id", user_id)
            .order("created_at", desc=True),
        )
        return [
            Document(
                id=row["id"],
                user_id=row["user_id"],
                filename=row["filename"],
                file_type=row["file_type"],
                file_size=row.get("file_size"),
                page_count=row.get("page_count"),
                metadata=row.get("metadata") or {},
                created_at=_parse_timestamp(row.get("created_at")),
            )
            for row in response.data or []
        ]

    async def delete_document_cascade(self, document_id: str, user_id: str) -> bool:
        response = await self._execute(
            "delete_document",
            lambda: self._client.rpc(
                DELETE_DOCUMENT_FUNCTION,
                {"p_document_id": document_id, "p_user_id": user_id},
            ),
        )
        return bool(response.data)

    # --- Conversations ---

    async def insert_conversation(self, conversation: Conversation) -> str:
        row = {
            "id": conversation.id,
            "user_id": conversation.user_id,
            "title": conversation.title,
            "document_ids": list(conversation.document_ids),
            "created_at": conversation.created_at.isoformat(),
            "updated_at": conversation.updated_at.isoformat(),
        }
        response = await self._execute(
            "create_conversation", lambda: self._table(CONVERSATIONS_TABLE).insert(row)
        )
        if response.data:
            return response.data[0].get("id", conversation.id)
        return conversation.id

    async def get_conversation(self, conversation_id: str, user_id: str) -> Conversation | None:
        response = await self._execute(
            "get_conversation",
            lambda: self._table(CONVERSATIONS_TABLE)
            .select("*")
            .eq("id", conversation_id)
            .eq("user_id", user_id)
            .limit(1),
        )
        if not response.data:
            return None
        return self._row_to_conversation(response.data[0])

    async def delete_conversation(self, conversation_id: str) -> None:
        await self._execute(
            "delete_conversation",
            lambda: self._table(CONVERSATIONS_TABLE).delete().eq("id", conversation_id),
        )

    async def update_conversation_timestamp(self, conversation_id: str) -> None:
        await self._execute(
            "update_conversation",
            lambda: self._table(CONVERSATIONS_TABLE)
            .update({"updated_at": utc_now().isoformat()})
            .eq("id", conversation_id),
        )

    async def list_conversations(self, user_id: str) -> list[Conversation]:
        response = await self._execute(
            "list_conversations",
            lambda: self._table(CONVERSATIONS_TABLE)
            .select("id, user_id, title, document_ids, created_at, updated_at")
            .eq("user_id", user_id)
            .order("updated_at", desc=True),
        )
        return [self._row_to_conversation(row) for row in response.data or []]

    @staticmethod
    def _row_to_conversation(row: dict[str, Any]) -> Conversation:
        return Conversation(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            document_ids=list(row.get("document_ids") or []),
            created_at=_parse_timestamp(row.get("created_at")),
            updated_at=_parse_timestamp(row.get("updated_at")),
        )

    # --- Messages ---

    async def insert_message(self, message: Message) -> str:
        row = {
            "id": message.id,
            "conversation_id": message.conversation_id,
            "user_id": message.user_id,
            "role": message.role,
            "content": message.content,
            "sources": [source.to_dict() for source in message.sources],
            "token_count": message.token_count,
            "created_at": message.created_at.isoformat(),
        }
        response = await self._execute(
            "store_message", lambda: self._table(MESSAGES_TABLE).insert(row)
        )
        if response.data:
            return response.data[0].get("id", message.id)
        return message.id

    async def delete_message(self, message_id: str) -> None:
        await self._execute(
            "delete_message",
            lambda: self._table(MESSAGES_TABLE).delete().eq("id", message_id),
        )

    async def list_messages(
        self,
        conversation_id: str,
        user_id: str,
        limit: int | None = None,
    ) -> list[Message]:
        def build() -> Any:
            query = (
                self._table(MESSAGES_TABLE)
                .select("id, conversation_id, user_id, role, content, sources, token_count, created_at")
                .eq("conversation_id", conversation_id)
                .eq("user_id", user_id)
            )
            if limit is not None:
                return query.order("created_at", desc=True).limit(limit)
            return query.order("created_at")

        response = await self._execute("list_messages", build)
        messages = [
            Message(
                id=row["id"],
                conversation_id=row["conversation_id"],
                user_id=row["user_id"],
                role=row["role"],
                content=row["content"],
                sources=[Source(**source) for source in row.get("sources") or []],
                token_count=row.get("token_count") or 0,
                created_at=_parse_timestamp(row.get("created_at")),
            )
            for row in response.data or []
        ]
        if limit is not None:
            messages.reverse()
        return messages
