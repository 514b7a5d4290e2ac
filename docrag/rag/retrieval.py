"""Vector similarity retrieval over a user's document chunks."""

from __future__ import annotations

from collections.abc import Sequence

from docrag.core.exceptions import AppError, RetrievalError, ValidationError
from docrag.core.logging import get_logger
from docrag.core.protocols import DocumentStore, EmbeddingProvider
from docrag.documents.embeddings import check_dimensions
from docrag.documents.models import SearchResult

logger = get_logger(__name__)

DEFAULT_MATCH_COUNT = 10
DEFAULT_SIMILARITY_THRESHOLD = 0.4


class RetrievalEngine:
    """Embeds a query and ranks the user's chunks by cosine similarity.

    The embedder must be the one used at ingestion time so that query and
    chunk vectors live in the same space.
    """

    def __init__(
        self,
        store: DocumentStore,
        embedder: EmbeddingProvider,
        dimensions: int | None = None,
    ):
        self._store = store
        self._embedder = embedder
        self._dimensions = dimensions if dimensions is not None else embedder.dimensions

    async def search(
        self,
        query: str,
        user_id: str,
        document_ids: Sequence[str] | None = None,
        match_count: int = DEFAULT_MATCH_COUNT,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    ) -> list[SearchResult]:
        """Find the chunks most similar to a query.

        Args:
            query: Natural language query
            user_id: Only this user's chunks are searched
            document_ids: Restrict the search to these documents (None or empty: all)
            match_count: Maximum number of results
            similarity_threshold: Minimum cosine similarity

        Returns:
            Results ordered by descending similarity

        Raises:
            ValidationError: On an empty query or user id, or a non-positive match_count
            EmbeddingError: If the query could not be embedded
            RetrievalError: If the store search fails
        """
        if not user_id:
            raise ValidationError("user_id is required")
        if not query or not query.strip():
            raise ValidationError("Query must not be empty")
        if match_count < 1:
            raise ValidationError(f"match_count must be positive, got {match_count}")

        query_embedding = await self._embedder.embed(query)
        check_dimensions([query_embedding], self._dimensions)

        try:
            rows = await self._store.similarity_search(
                query_embedding=query_embedding,
                user_id=user_id,
                document_ids=list(document_ids) if document_ids else None,
                match_count=match_count,
                similarity_threshold=similarity_threshold,
            )
        except AppError as e:
            logger.error("vector_search_failed", user_id=user_id, error=e.message)
            raise RetrievalError(f"Vector search failed: {e.message}") from e

        results = [row for row in rows if row.similarity >= similarity_threshold][:match_count]

        logger.info(
            "retrieval_completed",
            user_id=user_id,
            document_filter=len(document_ids) if document_ids else 0,
            results=len(results),
            top_similarity=round(results[0].similarity, 4) if results else None,
        )
        return results
