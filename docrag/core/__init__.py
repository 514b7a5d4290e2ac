"""Core infrastructure module - config, exceptions, logging, protocols."""

from docrag.core.config import AppConfig, EmbeddingConfig, LLMConfig, RAGConfig, StoreConfig
from docrag.core.exceptions import (
    AppError,
    ConfigurationError,
    EmbeddingError,
    IngestionError,
    LLMError,
    NotFoundError,
    RetrievalError,
    StoreError,
    ValidationError,
)

__all__ = [
    "AppConfig",
    "EmbeddingConfig",
    "LLMConfig",
    "RAGConfig",
    "StoreConfig",
    "AppError",
    "ConfigurationError",
    "EmbeddingError",
    "IngestionError",
    "LLMError",
    "NotFoundError",
    "RetrievalError",
    "StoreError",
    "ValidationError",
]
