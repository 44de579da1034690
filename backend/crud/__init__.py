"""
CRUD operations module.

This module provides database operations organized by domain aggregate.
All CRUD functions are exported at the package level.
"""

from .memories import (
    create_embedding_if_absent,
    create_ingestion_entry,
    create_memory,
    get_embeddings,
    get_ingestion_entry,
    get_memory,
    get_memory_by_external_id,
)

__all__ = [
    "create_embedding_if_absent",
    "create_ingestion_entry",
    "create_memory",
    "get_embeddings",
    "get_ingestion_entry",
    "get_memory",
    "get_memory_by_external_id",
]
