"""Custom exception hierarchy."""

from typing import Any


class AppError(Exception):
    """Base application exception."""

    status_code = 500

    def __init__(self, message: str, code: str = "INTERNAL_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
            }
        }


class ValidationError(AppError):
    """Invalid caller input. Raised before any store mutation."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message, code="VALIDATION_ERROR")


class NotFoundError(AppError):
    """Requested resource does not exist for this user."""

    status_code = 404

    def __init__(self, message: str, resource: str):
        self.resource = resource
        super().__init__(message, code="NOT_FOUND")

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["error"]["details"] = {"resource": self.resource}
        return result


class EmbeddingError(AppError):
    """Embedding provider failure or malformed response."""

    status_code = 502

    def __init__(self, message: str, provider: str):
        self.provider = provider
        super().__init__(message, code="EMBEDDING_ERROR")

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["error"]["details"] = {"provider": self.provider}
        return result


class StoreError(AppError):
    """Document store read or write failure."""

    def __init__(self, message: str, operation: str):
        self.operation = operation
        super().__init__(message, code="STORE_ERROR")

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["error"]["details"] = {"operation": self.operation}
        return result


class RetrievalError(AppError):
    """Similarity search failure."""

    def __init__(self, message: str):
        super().__init__(message, code="RETRIEVAL_ERROR")


class LLMError(AppError):
    """LLM communication error."""

    status_code = 502

    def __init__(self, message: str, provider: str):
        self.provider = provider
        super().__init__(message, code="LLM_ERROR")

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["error"]["details"] = {"provider": self.provider}
        return result


class IngestionError(AppError):
    """A single document could not be ingested.

    The underlying error (validation, embedding or store) is chained as
    ``__cause__``.
    """

    status_code = 422

    def __init__(self, filename: str, reason: str):
        self.filename = filename
        self.reason = reason
        super().__init__(f'Failed to ingest "{filename}": {reason}', code="INGESTION_ERROR")

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["error"]["details"] = {"filename": self.filename}
        return result


class ConfigurationError(AppError):
    """Configuration error."""

    def __init__(self, message: str):
        super().__init__(message, code="CONFIG_ERROR")


class EmbeddingDimensionError(ConfigurationError):
    """Embedding vectors do not match the configured dimensionality."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Embedding dimension mismatch: expected {expected}, provider returned {actual}"
        )


class AuthenticationError(AppError):
    """Missing, malformed or rejected access token."""

    status_code = 401

    def __init__(self, message: str):
        super().__init__(message, code="AUTH_ERROR")


class AuthUnavailableError(AppError):
    """The identity provider is not configured or not reachable."""

    status_code = 503

    def __init__(self, message: str):
        super().__init__(message, code="AUTH_UNAVAILABLE")
