"""Dependency Injector based DI Container."""

from dependency_injector import containers, providers

from docrag.core.config import get_config

# --- Factory Functions (defined before class to avoid NameError) ---


def _create_llm(config):
    """Create text-generation provider."""
    from docrag.llm import LLMFactory

    return LLMFactory.create(config)


def _create_store(config):
    """Create document store."""
    from docrag.store import StoreFactory

    return StoreFactory.create(config)


def _create_embedding_generator(config):
    """Create embedding generator."""
    from docrag.documents.embeddings import create_embedding_generator

    return create_embedding_generator(config)


def _create_chunker(config):
    """Create document chunker."""
    from docrag.documents.chunker import ParagraphChunker

    return ParagraphChunker(chunk_size=config.chunk_size, overlap=config.chunk_overlap)


def _create_text_extractor():
    """Create upload text extractor."""
    from docrag.documents.parser import TextExtractor

    return TextExtractor()


def _create_ingestion_pipeline(config, store, embedding_generator, chunker):
    """Create ingestion pipeline."""
    from docrag.rag.ingestion import IngestionPipeline

    return IngestionPipeline(
        store=store,
        embedder=embedding_generator,
        chunker=chunker,
        dimensions=config.embedding.dimensions,
        insert_batch_size=config.rag.chunk_insert_batch_size,
    )


def _create_retrieval_engine(config, store, embedding_generator):
    """Create retrieval engine sharing the ingestion embedding generator."""
    from docrag.rag.retrieval import RetrievalEngine

    return RetrievalEngine(
        store=store,
        embedder=embedding_generator,
        dimensions=config.embedding.dimensions,
    )


def _create_synthesizer(config, retrieval_engine, store, llm):
    """Create answer synthesizer."""
    from docrag.rag.synthesizer import AnswerSynthesizer

    return AnswerSynthesizer(
        retrieval_engine=retrieval_engine,
        store=store,
        generator=llm,
        similarity_threshold=config.similarity_threshold,
        snippet_length=config.snippet_length,
        title_length=config.title_length,
        history_messages=config.history_messages,
    )


def _create_rag_service(config, store, ingestion_pipeline, text_extractor):
    """Create RAG service facade."""
    from docrag.rag.service import RAGService

    return RAGService(
        store=store,
        pipeline=ingestion_pipeline,
        extractor=text_extractor,
        max_file_size=config.max_upload_mb * 1024 * 1024,
    )


class DIContainer(containers.DeclarativeContainer):
    """Main dependency injection container."""

    # Configuration provider
    config = providers.Singleton(get_config)

    # Text-generation Provider
    llm = providers.Singleton(
        _create_llm,
        config=config.provided.llm,
    )

    # Document Store
    store = providers.Singleton(
        _create_store,
        config=config,
    )

    # Embedding Generator (shared by ingestion and retrieval)
    embedding_generator = providers.Singleton(
        _create_embedding_generator,
        config=config.provided.embedding,
    )

    # Document Chunker
    chunker = providers.Factory(
        _create_chunker,
        config=config.provided.rag,
    )

    # Text Extractor
    text_extractor = providers.Factory(_create_text_extractor)

    # Ingestion Pipeline
    ingestion_pipeline = providers.Factory(
        _create_ingestion_pipeline,
        config=config,
        store=store,
        embedding_generator=embedding_generator,
        chunker=chunker,
    )

    # Retrieval Engine
    retrieval_engine = providers.Factory(
        _create_retrieval_engine,
        config=config,
        store=store,
        embedding_generator=embedding_generator,
    )

    # Answer Synthesizer
    synthesizer = providers.Factory(
        _create_synthesizer,
        config=config.provided.rag,
        retrieval_engine=retrieval_engine,
        store=store,
        llm=llm,
    )

    # RAG Service
    rag_service = providers.Factory(
        _create_rag_service,
        config=config,
        store=store,
        ingestion_pipeline=ingestion_pipeline,
        text_extractor=text_extractor,
    )


# Global container instance
container = DIContainer()
