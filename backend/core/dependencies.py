"""Shared dependencies for FastAPI endpoints."""

from fastapi import HTTPException, Request
from services import EmbeddingQueue, MemoryStore


def get_memory_store(request: Request) -> MemoryStore:
    """Get the MemoryStore instance from app state."""
    store = getattr(request.app.state, "memory_store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Memory store is not initialized")
    return store


def get_embedding_queue(request: Request) -> EmbeddingQueue:
    """Get the EmbeddingQueue instance from app state."""
    queue = getattr(request.app.state, "embedding_queue", None)
    if queue is None:
        raise HTTPException(status_code=503, detail="Embedding queue is not initialized")
    return queue
