"""Embedding generators for chunk and query vectorization.

Supports multiple providers:
- Gemini (default, requires a Google API key)
- OpenAI (requires an OpenAI API key)
- Pinecone Inference (requires a Pinecone API key)

Every generator splits large inputs into provider-sized sub-batches, runs
them with bounded concurrency and returns vectors in input order. A failed
sub-batch fails the whole call.
"""

from __future__ import annotations

import asyncio
import math
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

from docrag.core.config import EMBEDDING_DEFAULTS
from docrag.core.exceptions import ConfigurationError, EmbeddingDimensionError, EmbeddingError
from docrag.core.logging import get_logger

if TYPE_CHECKING:
    from openai import AsyncOpenAI

    from docrag.core.config import EmbeddingConfig

logger = get_logger(__name__)

# Default batch size for embedding requests
DEFAULT_BATCH_SIZE = 100
# Sub-batches in flight at once
DEFAULT_MAX_CONCURRENCY = 4
# Maximum attempts for rate limiting / timeouts
MAX_RETRIES = 3
# Base delay between retries (seconds)
RETRY_DELAY = 1.0

_RETRYABLE_MARKERS = ("rate limit", "429", "timeout", "timed out", "resource_exhausted")

T = TypeVar("T")


def estimate_token_count(text: str) -> int:
    """Rough token estimate (~4 characters per token), for bookkeeping only."""
    return math.ceil(len(text) / 4)


def check_dimensions(vectors: Sequence[Sequence[float]], expected: int) -> None:
    """Ensure every vector has the configured dimensionality.

    Raises:
        EmbeddingDimensionError: On the first vector of a different length.
    """
    for vector in vectors:
        if len(vector) != expected:
            raise EmbeddingDimensionError(expected=expected, actual=len(vector))


def _is_retryable(error: Exception) -> bool:
    if isinstance(error, asyncio.TimeoutError):
        return True
    error_str = str(error).lower()
    return any(marker in error_str for marker in _RETRYABLE_MARKERS)


class BaseEmbeddingGenerator(ABC):
    """Base class for embedding generators.

    Subclasses implement ``_embed_documents`` (one provider request for at most
    ``batch_size`` texts) and may override ``_embed_query``.
    """

    provider = "base"

    def __init__(
        self,
        model: str,
        dimensions: int,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        max_retries: int = MAX_RETRIES,
        retry_delay: float = RETRY_DELAY,
    ):
        if batch_size < 1:
            raise ConfigurationError(f"Embedding batch size must be positive, got {batch_size}")
        if max_concurrency < 1:
            raise ConfigurationError(
                f"Embedding concurrency must be positive, got {max_concurrency}"
            )
        self.model = model
        self.dimensions = dimensions
        self.batch_size = batch_size
        self.max_concurrency = max_concurrency
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay

    @abstractmethod
    async def _embed_documents(self, texts: list[str]) -> list[list[float]]:
        """Embed one provider-sized batch of texts."""
        ...

    async def _embed_query(self, text: str) -> list[float]:
        vectors = await self._embed_documents([text])
        return vectors[0]

    async def embed(self, text: str) -> list[float]:
        """Embed a single string (used for search queries).

        Raises:
            EmbeddingError: If the text is empty or the provider fails.
        """
        if not text or not text.strip():
            raise EmbeddingError("Cannot embed empty text", self.provider)

        vector = await self._call_with_retry(self._embed_query, text)
        if not vector:
            raise EmbeddingError("Provider returned an empty query embedding", self.provider)
        return list(vector)

    async def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed many strings, preserving input order.

        Args:
            texts: Texts to embed.

        Returns:
            One vector per input text, in the same order.

        Raises:
            EmbeddingError: If any sub-batch fails; no partial result is returned.
        """
        if not texts:
            return []

        valid_texts = [t if t.strip() else " " for t in texts]
        batches = [
            valid_texts[i : i + self.batch_size]
            for i in range(0, len(valid_texts), self.batch_size)
        ]
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run_batch(batch_number: int, batch: list[str]) -> list[list[float]]:
            async with semaphore:
                vectors = await self._call_with_retry(self._embed_documents, batch)
            if len(vectors) != len(batch):
                raise EmbeddingError(
                    f"Provider returned {len(vectors)} embeddings for batch {batch_number} "
                    f"of {len(batch)} texts",
                    self.provider,
                )
            return [list(v) for v in vectors]

        tasks = [
            asyncio.ensure_future(run_batch(number, batch))
            for number, batch in enumerate(batches)
        ]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

        embeddings = [vector for batch_vectors in results for vector in batch_vectors]

        logger.info(
            "embeddings_generated",
            provider=self.provider,
            model=self.model,
            count=len(embeddings),
            batches=len(batches),
        )
        return embeddings

    async def _call_with_retry(self, func: Callable[[Any], Awaitable[T]], payload: Any) -> T:
        """Call the provider, retrying rate-limit and timeout errors with backoff."""
        for attempt in range(1, self.max_retries + 1):
            try:
                return await func(payload)
            except EmbeddingError:
                raise
            except Exception as e:
                if _is_retryable(e) and attempt < self.max_retries:
                    wait_time = self.retry_delay * (2 ** (attempt - 1))
                    logger.warning(
                        "embedding_rate_limit_hit",
                        provider=self.provider,
                        attempt=attempt,
                        max_retries=self.max_retries,
                        wait_time=wait_time,
                        error=str(e),
                    )
                    await asyncio.sleep(wait_time)
                    continue

                logger.error("embedding_failed", provider=self.provider, error=str(e))
                raise EmbeddingError(
                    f"{self.provider} embedding request failed: {e}", self.provider
                ) from e

        raise EmbeddingError("Max retries exceeded for embedding generation", self.provider)


class OpenAIEmbeddingGenerator(BaseEmbeddingGenerator):
    """Generate embeddings using OpenAI's embedding models."""

    provider = "openai"

    def __init__(
        self,
        api_key: str | None,
        model: str = "text-embedding-3-small",
        dimensions: int = 1536,
        timeout: float = 30.0,
        **kwargs: Any,
    ):
        """Initialize the OpenAI embedding generator.

        Args:
            api_key: OpenAI API key
            model: OpenAI embedding model to use
            dimensions: Vector length produced by the model
            timeout: Request timeout in seconds
        """
        if not api_key:
            raise ConfigurationError("Missing OpenAI API key for embeddings")
        super().__init__(model=model, dimensions=dimensions, **kwargs)
        self._api_key = api_key
        self._timeout = timeout
        self._client: AsyncOpenAI | None = None

    def _get_client(self) -> AsyncOpenAI:
        """Get or create async OpenAI client."""
        if self._client is None:
            from openai import AsyncOpenAI

            self._client = AsyncOpenAI(api_key=self._api_key, timeout=self._timeout)
        return self._client

    async def _embed_documents(self, texts: list[str]) -> list[list[float]]:
        response = await self._get_client().embeddings.create(model=self.model, input=texts)
        return [item.embedding for item in sorted(response.data, key=lambda item: item.index)]


class GeminiEmbeddingGenerator(BaseEmbeddingGenerator):
    """Generate embeddings using Google Generative AI models via LangChain."""

    provider = "gemini"

    def __init__(
        self,
        api_key: str | None,
        model: str = "models/text-embedding-004",
        dimensions: int = 768,
        **kwargs: Any,
    ):
        if not api_key:
            raise ConfigurationError("Missing Google API key for Gemini embeddings")
        super().__init__(model=model, dimensions=dimensions, **kwargs)
        self._api_key = api_key
        self._client = None

    def _get_client(self):
        """Get or create the LangChain embeddings client."""
        if self._client is None:
            from langchain_google_genai import GoogleGenerativeAIEmbeddings

            self._client = GoogleGenerativeAIEmbeddings(
                model=self.model,
                google_api_key=self._api_key,
            )
        return self._client

    async def _embed_documents(self, texts: list[str]) -> list[list[float]]:
        return await self._get_client().aembed_documents(texts)

    async def _embed_query(self, text: str) -> list[float]:
        return await self._get_client().aembed_query(text)


class PineconeInferenceEmbedding(BaseEmbeddingGenerator):
    """Generate embeddings using the Pinecone Inference API.

    Supported models: multilingual-e5-large, llama-text-embed-v2
    """

    provider = "pinecone"

    def __init__(
        self,
        api_key: str | None,
        model: str = "multilingual-e5-large",
        dimensions: int = 1024,
        **kwargs: Any,
    ):
        if not api_key:
            raise ConfigurationError("Missing Pinecone API key for embeddings")
        # Pinecone recommends max 96 items per request
        kwargs["batch_size"] = min(kwargs.get("batch_size", 96), 96)
        super().__init__(model=model, dimensions=dimensions, **kwargs)
        self._api_key = api_key
        self._pinecone_client = None

    def _get_client(self):
        """Get or create Pinecone client."""
        if self._pinecone_client is None:
            from pinecone import Pinecone

            self._pinecone_client = Pinecone(api_key=self._api_key)
        return self._pinecone_client

    async def _embed_documents(self, texts: list[str]) -> list[list[float]]:
        return await self._infer(texts, input_type="passage")

    async def _embed_query(self, text: str) -> list[float]:
        vectors = await self._infer([text], input_type="query")
        return vectors[0] if vectors else []

    async def _infer(self, texts: list[str], input_type: str) -> list[list[float]]:
        client = self._get_client()
        # The Pinecone SDK is synchronous
        response = await asyncio.to_thread(
            client.inference.embed,
            model=self.model,
            inputs=texts,
            parameters={"input_type": input_type, "truncate": "END"},
        )
        return [item.values for item in response.data]


def create_embedding_generator(config: EmbeddingConfig) -> BaseEmbeddingGenerator:
    """Create the embedding generator selected by configuration.

    Args:
        config: Embedding configuration

    Returns:
        Embedding generator instance

    Raises:
        ConfigurationError: For an unknown provider, a missing API key, or a
            custom model without ``EMBEDDING_DIMENSIONS``
    """
    if config.provider not in EMBEDDING_DEFAULTS:
        raise ConfigurationError(
            f"Unknown embedding provider: '{config.provider}'. "
            f"Available: {', '.join(EMBEDDING_DEFAULTS)}"
        )
    if config.dimensions is None:
        raise ConfigurationError(
            f"EMBEDDING_DIMENSIONS must be set for embedding model '{config.model}'"
        )

    common = {
        "model": config.model,
        "dimensions": config.dimensions,
        "batch_size": config.batch_size,
        "max_concurrency": config.max_concurrency,
        "max_retries": config.max_retries,
        "retry_delay": config.retry_delay,
    }

    if config.provider == "gemini":
        return GeminiEmbeddingGenerator(api_key=config.google_api_key, **common)
    if config.provider == "openai":
        return OpenAIEmbeddingGenerator(api_key=config.openai_api_key, **common)
    return PineconeInferenceEmbedding(api_key=config.pinecone_api_key, **common)
