"""
Custom exception classes for the memory ingestion service.

Duplicate ingestions are not errors and have no exception type here; the
ingestion store reports them through its result value.
"""


class MemoryValidationError(ValueError):
    """Raised when ingestion input is missing required content or source."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Memory {field} must be a non-empty string")


class EmbeddingError(Exception):
    """Base class for embedding provider failures."""


class EmbeddingProviderError(EmbeddingError):
    """Raised when the embedding provider answers with a non-success response."""

    def __init__(self, status_code: int, reason: str, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Ollama embedding failed ({status_code} {reason}): {body}")


class EmbeddingConnectionError(EmbeddingError):
    """Raised when the embedding provider cannot be reached."""

    def __init__(self, url: str, cause: Exception):
        self.url = url
        self.cause = cause
        super().__init__(f"Failed to connect to Ollama at {url}: {cause}")


class ConfigurationError(ValueError):
    """Raised when there's an error in configuration parsing or validation."""

    def __init__(self, message: str):
        super().__init__(f"Configuration error: {message}")
