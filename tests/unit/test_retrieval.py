"""Tests for the retrieval engine."""

import pytest

from conftest import FaultyStore, MockEmbedder
from docrag.core.exceptions import EmbeddingDimensionError, RetrievalError, ValidationError
from docrag.documents.models import SearchResult
from docrag.rag.retrieval import RetrievalEngine


class TestRetrievalEngine:
    """Test cases for RetrievalEngine.search."""

    @pytest.mark.asyncio
    async def test_results_above_threshold_sorted(self, pipeline, retrieval_engine):
        """Results never fall below the threshold and are in descending order."""
        await pipeline.ingest("u1", "refunds.txt", "Refund requests take five days.", "text")
        await pipeline.ingest(
            "u1", "mixed.txt", "Refund after shipping. Shipping is free.", "text"
        )
        await pipeline.ingest("u1", "garden.txt", "Water the garden daily.", "text")

        results = await retrieval_engine.search("refund", "u1", similarity_threshold=0.4)

        assert [r.filename for r in results] == ["refunds.txt", "mixed.txt"]
        assert all(r.similarity >= 0.4 for r in results)
        similarities = [r.similarity for r in results]
        assert similarities == sorted(similarities, reverse=True)

    @pytest.mark.asyncio
    async def test_match_count_truncates(self, pipeline, retrieval_engine):
        """At most match_count results are returned."""
        for i in range(4):
            await pipeline.ingest("u1", f"doc{i}.txt", f"Refund note {i}.", "text")

        results = await retrieval_engine.search("refund", "u1", match_count=2)

        assert len(results) == 2

    @pytest.mark.asyncio
    async def test_user_isolation(self, pipeline, retrieval_engine):
        """Another user's more similar content is never returned."""
        await pipeline.ingest("u1", "mine.txt", "Refund and shipping and invoice.", "text")
        await pipeline.ingest("u2", "theirs.txt", "Refund refund refund.", "text")

        results = await retrieval_engine.search("refund", "u1", similarity_threshold=0.0)

        assert [r.filename for r in results] == ["mine.txt"]

    @pytest.mark.asyncio
    async def test_document_filter(self, pipeline, retrieval_engine):
        """Only the requested documents are searched."""
        first = await pipeline.ingest("u1", "a.txt", "Refund and garden tips.", "text")
        await pipeline.ingest("u1", "b.txt", "Refund refund.", "text")

        results = await retrieval_engine.search(
            "refund", "u1", document_ids=[first.document_id], similarity_threshold=0.0
        )

        assert {r.document_id for r in results} == {first.document_id}

    @pytest.mark.asyncio
    async def test_drops_rows_below_threshold_from_store(self, embedder):
        """Rows a backend returns below the threshold are filtered out."""

        class LenientStore:
            async def similarity_search(self, **kwargs):
                return [
                    SearchResult("c1", "d1", "a.txt", "x", 0, 0.9),
                    SearchResult("c2", "d1", "a.txt", "y", 1, 0.2),
                ]

        engine = RetrievalEngine(store=LenientStore(), embedder=embedder)

        results = await engine.search("refund", "u1", similarity_threshold=0.5)

        assert [r.chunk_id for r in results] == ["c1"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("query", "user_id"), [("refund", ""), ("", "u1"), ("  ", "u1")])
    async def test_invalid_arguments(self, retrieval_engine, embedder, query, user_id):
        """Empty user or query is rejected before embedding."""
        with pytest.raises(ValidationError):
            await retrieval_engine.search(query, user_id)
        assert embedder.query_calls == []

    @pytest.mark.asyncio
    async def test_store_failure_wrapped(self, embedder):
        """Store failures surface as RetrievalError."""
        store = FaultyStore(fail_on={"similarity_search": 1})
        engine = RetrievalEngine(store=store, embedder=embedder)

        with pytest.raises(RetrievalError, match="Vector search failed"):
            await engine.search("refund", "u1")

    @pytest.mark.asyncio
    async def test_query_dimension_checked(self, store):
        """A query vector of the wrong size is a configuration error."""
        engine = RetrievalEngine(store=store, embedder=MockEmbedder(dimensions=4), dimensions=8)

        with pytest.raises(EmbeddingDimensionError):
            await engine.search("refund", "u1")
