"""Tests for the ingestion pipeline."""

import asyncio

import pytest

from conftest import FaultyStore, MockEmbedder
from docrag.core.exceptions import (
    EmbeddingDimensionError,
    EmbeddingError,
    IngestionError,
    StoreError,
    ValidationError,
)
from docrag.documents.chunker import ParagraphChunker
from docrag.rag.ingestion import IngestionPipeline, IngestionRequest

LONG_TEXT = "\n\n".join(
    f"Paragraph {i} about the refund policy and shipping times. " * 3 for i in range(8)
)


async def chunk_rows(store, document_id: str) -> list:
    """Read a document's chunks straight from the store."""
    return [c for c in store._chunks.values() if c.document_id == document_id]


class TestIngest:
    """Test cases for single-document ingestion."""

    @pytest.mark.asyncio
    async def test_ingest_stores_document_and_chunks(self, pipeline, store):
        """Successful ingestion writes one document and contiguous chunks."""
        result = await pipeline.ingest("u1", "policy.txt", LONG_TEXT, "text", file_size=1234)

        assert result.filename == "policy.txt"
        assert result.chunk_count > 1
        chunks = sorted(await chunk_rows(store, result.document_id), key=lambda c: c.chunk_index)
        assert [c.chunk_index for c in chunks] == list(range(result.chunk_count))
        assert result.total_tokens == sum(c.token_count for c in chunks)
        assert all(c.user_id == "u1" for c in chunks)
        assert all(len(c.embedding) == 8 for c in chunks)
        assert all({"char_start", "char_end"} <= c.metadata.keys() for c in chunks)

        documents = await store.list_documents("u1")
        assert [d.id for d in documents] == [result.document_id]
        assert documents[0].file_size == 1234

    @pytest.mark.asyncio
    async def test_chunks_inserted_in_batches(self, embedder):
        """Chunks are written in batches of the configured size."""
        store = FaultyStore()
        pipeline = IngestionPipeline(
            store=store,
            embedder=embedder,
            chunker=ParagraphChunker(chunk_size=200, overlap=40),
            insert_batch_size=2,
        )

        result = await pipeline.ingest("u1", "policy.txt", LONG_TEXT, "text")

        assert store.calls["insert_chunks"] == -(-result.chunk_count // 2)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("content", "file_type"),
        [("", "text"), ("   \n ", "text"), ("hello", "spreadsheet")],
    )
    async def test_invalid_input_rejected_before_write(self, pipeline, store, content, file_type):
        """Empty content and unknown file types never touch the store."""
        with pytest.raises(IngestionError) as exc_info:
            await pipeline.ingest("u1", "bad.txt", content, file_type)

        assert isinstance(exc_info.value.__cause__, ValidationError)
        assert store.get_counts()["documents"] == 0

    @pytest.mark.asyncio
    async def test_embedding_failure_rolls_back(self, store, chunker):
        """Embedding failure leaves no document and no chunks."""
        pipeline = IngestionPipeline(
            store=store,
            embedder=MockEmbedder(fail_on="Paragraph 5"),
            chunker=chunker,
        )

        with pytest.raises(IngestionError) as exc_info:
            await pipeline.ingest("u1", "policy.txt", LONG_TEXT, "text")

        assert isinstance(exc_info.value.__cause__, EmbeddingError)
        assert exc_info.value.filename == "policy.txt"
        assert store.get_counts()["documents"] == 0
        assert store.get_counts()["chunks"] == 0

    @pytest.mark.asyncio
    async def test_chunk_batch_failure_rolls_back_inserted_batches(self, embedder, chunker):
        """A failing later batch removes earlier batches and the document."""
        store = FaultyStore(fail_on={"insert_chunks": 2})
        pipeline = IngestionPipeline(
            store=store, embedder=embedder, chunker=chunker, insert_batch_size=1
        )

        with pytest.raises(IngestionError) as exc_info:
            await pipeline.ingest("u1", "policy.txt", LONG_TEXT, "text")

        assert isinstance(exc_info.value.__cause__, StoreError)
        assert store.calls["insert_chunks"] == 2
        assert store.get_counts()["documents"] == 0
        assert store.get_counts()["chunks"] == 0

    @pytest.mark.asyncio
    async def test_document_insert_failure(self, embedder, chunker):
        """A failed document insert surfaces immediately."""
        store = FaultyStore(fail_on={"insert_document": 1})
        pipeline = IngestionPipeline(store=store, embedder=embedder, chunker=chunker)

        with pytest.raises(IngestionError, match="Failed to store document"):
            await pipeline.ingest("u1", "policy.txt", LONG_TEXT, "text")

        assert embedder.batch_calls == []

    @pytest.mark.asyncio
    async def test_dimension_mismatch_is_fatal(self, store, chunker):
        """Wrong-sized vectors roll back and raise unwrapped."""
        pipeline = IngestionPipeline(
            store=store,
            embedder=MockEmbedder(dimensions=3),
            chunker=chunker,
            dimensions=8,
        )

        with pytest.raises(EmbeddingDimensionError):
            await pipeline.ingest("u1", "policy.txt", LONG_TEXT, "text")

        assert store.get_counts()["documents"] == 0

    @pytest.mark.asyncio
    async def test_cancellation_rolls_back(self, store, chunker):
        """Cancelling mid-ingestion still removes the document."""
        started = asyncio.Event()

        class SlowEmbedder(MockEmbedder):
            async def embed_batch(self, texts):
                started.set()
                await asyncio.sleep(10)
                return await super().embed_batch(texts)

        pipeline = IngestionPipeline(store=store, embedder=SlowEmbedder(), chunker=chunker)
        task = asyncio.create_task(pipeline.ingest("u1", "policy.txt", LONG_TEXT, "text"))
        await started.wait()
        assert store.get_counts()["documents"] == 1

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert store.get_counts()["documents"] == 0


class TestIngestMany:
    """Test cases for multi-file ingestion."""

    @pytest.mark.asyncio
    async def test_failures_isolated_per_file(self, store, chunker):
        """One bad file does not stop its siblings."""
        pipeline = IngestionPipeline(
            store=store,
            embedder=MockEmbedder(fail_on="BROKEN"),
            chunker=chunker,
        )
        files = [
            IngestionRequest(filename="a.txt", content="Refund policy text.", file_type="text"),
            IngestionRequest(filename="b.txt", content="BROKEN content", file_type="text"),
            IngestionRequest(filename="c.md", content="", file_type="markdown"),
            IngestionRequest(filename="d.md", content="# Shipping\n\nDetails.", file_type="markdown"),
        ]

        outcomes = await pipeline.ingest_many("u1", files)

        assert [o.filename for o in outcomes] == ["a.txt", "b.txt", "c.md", "d.md"]
        assert [o.ok for o in outcomes] == [True, False, False, True]
        assert "b.txt" in outcomes[1].error
        assert store.get_counts()["documents"] == 2

    @pytest.mark.asyncio
    async def test_configuration_error_propagates(self, store, chunker):
        """Configuration errors abort the whole batch."""
        pipeline = IngestionPipeline(
            store=store,
            embedder=MockEmbedder(dimensions=2),
            chunker=chunker,
            dimensions=8,
        )
        files = [IngestionRequest(filename="a.txt", content="text", file_type="text")]

        with pytest.raises(EmbeddingDimensionError):
            await pipeline.ingest_many("u1", files)
