"""Document processing: text extraction, chunking and embeddings."""

from .chunker import ParagraphChunker, TextChunk, chunk_text
from .embeddings import create_embedding_generator, estimate_token_count
from .parser import ExtractedText, TextExtractor

__all__ = [
    "ExtractedText",
    "ParagraphChunker",
    "TextChunk",
    "TextExtractor",
    "chunk_text",
    "create_embedding_generator",
    "estimate_token_count",
]
