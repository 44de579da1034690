"""
Domain layer for internal business logic data structures.

Structure:
- value_objects/: dataclasses passed between the adapter and the services
- exceptions.py: error types raised by the services and clients
"""

from .exceptions import (
    ConfigurationError,
    EmbeddingConnectionError,
    EmbeddingError,
    EmbeddingProviderError,
    MemoryValidationError,
)
from .value_objects import IncomingMessage, StoreMemoryInput, StoreMemoryResult

__all__ = [
    # Exceptions
    "ConfigurationError",
    "EmbeddingConnectionError",
    "EmbeddingError",
    "EmbeddingProviderError",
    "MemoryValidationError",
    # Value objects
    "IncomingMessage",
    "StoreMemoryInput",
    "StoreMemoryResult",
]
