"""Protocol interfaces for dependency injection."""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from docrag.documents.models import (
    ChunkRecord,
    Conversation,
    Document,
    Message,
    SearchResult,
)


@runtime_checkable
class TextGenerator(Protocol):
    """Single-turn text completion service."""

    async def complete(self, prompt: str) -> str:
        """Return the completion for a prompt."""
        ...


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Embedding model interface.

    ``dimensions`` and ``batch_size`` are declared by the provider.
    """

    model: str
    dimensions: int
    batch_size: int

    async def embed(self, text: str) -> list[float]:
        """Embed a single string."""
        ...

    async def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed many strings, preserving input order."""
        ...


@runtime_checkable
class DocumentStore(Protocol):
    """Persistence contract for documents, chunks, conversations and messages.

    Implementations raise ``StoreError`` on failure.
    """

    async def insert_document(self, document: Document) -> str:
        """Insert a document record and return its id."""
        ...

    async def delete_document(self, document_id: str) -> None:
        """Delete a document; its chunks are deleted with it."""
        ...

    async def insert_chunks(self, chunks: Sequence[ChunkRecord]) -> None:
        """Insert a batch of chunks. All-or-nothing per call."""
        ...

    async def delete_chunks_for_document(self, document_id: str) -> None:
        """Delete every chunk of a document."""
        ...

    async def similarity_search(
        self,
        query_embedding: Sequence[float],
        user_id: str,
        document_ids: Sequence[str] | None,
        match_count: int,
        similarity_threshold: float,
    ) -> list[SearchResult]:
        """Return the user's chunks ranked by cosine similarity.

        Only chunks owned by ``user_id`` (and, when given, belonging to
        ``document_ids``) with similarity >= ``similarity_threshold`` are
        returned, most similar first, at most ``match_count`` of them.
        """
        ...

    async def insert_conversation(self, conversation: Conversation) -> str:
        """Insert a conversation and return its id."""
        ...

    async def get_conversation(self, conversation_id: str, user_id: str) -> Conversation | None:
        """Load a conversation owned by the user."""
        ...

    async def delete_conversation(self, conversation_id: str) -> None:
        """Delete a conversation and its messages."""
        ...

    async def insert_message(self, message: Message) -> str:
        """Insert a message and return its id."""
        ...

    async def delete_message(self, message_id: str) -> None:
        """Delete a single message."""
        ...

    async def update_conversation_timestamp(self, conversation_id: str) -> None:
        """Set the conversation's ``updated_at`` to now."""
        ...

    async def list_documents(self, user_id: str) -> list[Document]:
        """List the user's documents (without content), newest first."""
        ...

    async def list_conversations(self, user_id: str) -> list[Conversation]:
        """List the user's conversations, most recently updated first."""
        ...

    async def list_messages(
        self,
        conversation_id: str,
        user_id: str,
        limit: int | None = None,
    ) -> list[Message]:
        """List messages oldest first; with ``limit``, only the latest ones."""
        ...

    async def delete_document_cascade(self, document_id: str, user_id: str) -> bool:
        """Delete a document, its chunks and its conversation pins.

        Returns:
            False if no document owned by the user matched.
        """
        ...
