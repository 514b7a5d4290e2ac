"""Common test fixtures."""

import pytest

from docrag.core.config import AppConfig, EmbeddingConfig, LLMConfig, RAGConfig, StoreConfig
from docrag.core.di_container import container as di_container
from docrag.core.exceptions import EmbeddingError, LLMError, StoreError
from docrag.documents.chunker import ParagraphChunker
from docrag.rag.ingestion import IngestionPipeline
from docrag.rag.retrieval import RetrievalEngine
from docrag.rag.synthesizer import AnswerSynthesizer
from docrag.store.in_memory_store import InMemoryDocumentStore

# Each keyword is one axis of the mock embedding space
KEYWORDS = (
    "refund",
    "shipping",
    "password",
    "invoice",
    "python",
    "garden",
    "warranty",
    "battery",
)


def keyword_vector(text: str) -> list[float]:
    """Count keyword occurrences; texts sharing no keyword are orthogonal."""
    lowered = text.lower()
    return [float(lowered.count(keyword)) for keyword in KEYWORDS]


class MockEmbedder:
    """Deterministic embedding provider for testing."""

    provider = "mock"

    def __init__(self, fail_on: str | None = None, dimensions: int | None = None):
        self.model = "mock-embedding"
        self.dimensions = len(KEYWORDS)
        self.batch_size = 100
        self.fail_on = fail_on
        self._output_dimensions = dimensions
        self.batch_calls: list[list[str]] = []
        self.query_calls: list[str] = []

    def _vector(self, text: str) -> list[float]:
        vector = keyword_vector(text)
        if self._output_dimensions is not None:
            vector = (vector + [0.0] * self._output_dimensions)[: self._output_dimensions]
        return vector

    async def embed(self, text: str) -> list[float]:
        self.query_calls.append(text)
        return self._vector(text)

    async def embed_batch(self, texts) -> list[list[float]]:
        self.batch_calls.append(list(texts))
        if self.fail_on and any(self.fail_on in text for text in texts):
            raise EmbeddingError("Mock embedding failure", self.provider)
        return [self._vector(text) for text in texts]


class MockGenerator:
    """Text generator that records prompts and answers like a grounded model."""

    def __init__(self, error: Exception | None = None):
        self.prompts: list[str] = []
        self.error = error

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        if "## Retrieved Document Context" not in prompt:
            return (
                "I couldn't find relevant information in your uploaded documents. "
                "Please upload relevant documents first, or rephrase your question."
            )
        return "According to the documents, refunds take 5 days [Source 1]."


class FaultyStore(InMemoryDocumentStore):
    """In-memory store that fails the n-th call (1-based) of selected methods."""

    def __init__(self, fail_on: dict[str, int] | None = None):
        super().__init__()
        self.fail_on = dict(fail_on or {})
        self.calls: dict[str, int] = {}

    def _maybe_fail(self, operation: str) -> None:
        self.calls[operation] = self.calls.get(operation, 0) + 1
        if self.fail_on.get(operation) == self.calls[operation]:
            raise StoreError(f"Injected failure in {operation}", operation)

    async def insert_document(self, document):
        self._maybe_fail("insert_document")
        return await super().insert_document(document)

    async def insert_chunks(self, chunks):
        self._maybe_fail("insert_chunks")
        return await super().insert_chunks(chunks)

    async def similarity_search(self, *args, **kwargs):
        self._maybe_fail("similarity_search")
        return await super().similarity_search(*args, **kwargs)

    async def insert_conversation(self, conversation):
        self._maybe_fail("insert_conversation")
        return await super().insert_conversation(conversation)

    async def insert_message(self, message):
        self._maybe_fail("insert_message")
        return await super().insert_message(message)

    async def update_conversation_timestamp(self, conversation_id):
        self._maybe_fail("update_conversation_timestamp")
        return await super().update_conversation_timestamp(conversation_id)


@pytest.fixture
def test_config() -> AppConfig:
    """Create test configuration."""
    return AppConfig(
        debug=True,
        log_level="DEBUG",
        llm=LLMConfig(provider="ollama", model="llama3.1:8b"),
        embedding=EmbeddingConfig(provider="gemini", dimensions=len(KEYWORDS)),
        rag=RAGConfig(chunk_size=200, chunk_overlap=40, chunk_insert_batch_size=2),
        store=StoreConfig(backend="in_memory"),
    )


@pytest.fixture
def store() -> InMemoryDocumentStore:
    """Create an empty in-memory document store."""
    return InMemoryDocumentStore()


@pytest.fixture
def embedder() -> MockEmbedder:
    """Create mock embedding provider."""
    return MockEmbedder()


@pytest.fixture
def generator() -> MockGenerator:
    """Create mock text generator."""
    return MockGenerator()


@pytest.fixture
def chunker() -> ParagraphChunker:
    """Create a small-window chunker."""
    return ParagraphChunker(chunk_size=200, overlap=40)


@pytest.fixture
def pipeline(store, embedder, chunker) -> IngestionPipeline:
    """Create ingestion pipeline over the in-memory store."""
    return IngestionPipeline(store=store, embedder=embedder, chunker=chunker, insert_batch_size=2)


@pytest.fixture
def retrieval_engine(store, embedder) -> RetrievalEngine:
    """Create retrieval engine sharing the pipeline's embedder."""
    return RetrievalEngine(store=store, embedder=embedder)


@pytest.fixture
def synthesizer(retrieval_engine, store, generator) -> AnswerSynthesizer:
    """Create answer synthesizer."""
    return AnswerSynthesizer(
        retrieval_engine=retrieval_engine,
        store=store,
        generator=generator,
    )


@pytest.fixture
def di_container_fixture():
    """Provide the DI container for testing."""
    yield di_container


@pytest.fixture
def override_providers(test_config, store, embedder, generator):
    """Override config, store, embedder and LLM in the DI container."""
    with (
        di_container.config.override(test_config),
        di_container.store.override(store),
        di_container.embedding_generator.override(embedder),
        di_container.llm.override(generator),
    ):
        yield


@pytest.fixture
def failing_generator() -> MockGenerator:
    """Generator whose every call fails."""
    return MockGenerator(error=LLMError("Mock generation failure", "mock"))
