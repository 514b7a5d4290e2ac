"""Retrieval-augmented generation: ingestion, retrieval and answer synthesis."""

from .ingestion import IngestionPipeline, IngestionRequest
from .retrieval import RetrievalEngine
from .service import RAGService, UploadedFile
from .synthesizer import AnswerSynthesizer

__all__ = [
    "AnswerSynthesizer",
    "IngestionPipeline",
    "IngestionRequest",
    "RAGService",
    "RetrievalEngine",
    "UploadedFile",
]
