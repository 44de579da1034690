"""
Domain value objects - immutable types passed between layers.
"""

from .ingestion import IncomingMessage, StoreMemoryInput, StoreMemoryResult

__all__ = [
    "IncomingMessage",
    "StoreMemoryInput",
    "StoreMemoryResult",
]
