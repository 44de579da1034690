"""Pydantic schemas for the HTTP API."""

from .memories import Memory, StoreMemoryRequest, StoreMemoryResponse

__all__ = [
    "Memory",
    "StoreMemoryRequest",
    "StoreMemoryResponse",
]
