"""
Services layer for business logic.

This package contains service classes that handle business logic
and coordinate between different layers of the application.
"""

from .embedding_queue import EmbeddingQueue
from .memory_store import MemoryStore, compute_dedup_hash
from .message_handler import MessageHandler

__all__ = [
    "EmbeddingQueue",
    "MemoryStore",
    "MessageHandler",
    "compute_dedup_hash",
]
