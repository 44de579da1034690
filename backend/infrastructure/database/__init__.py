"""
Database infrastructure package.

Re-exports commonly used database components for convenient imports.
"""

from .connection import (
    Base,
    create_engine,
    create_session_maker,
    get_database_type,
    init_db,
    reset_write_lock,
    serialized_write,
)
from .models import IngestionLogEntry, Memory, MemoryEmbedding

__all__ = [
    # Connection
    "Base",
    "create_engine",
    "create_session_maker",
    "get_database_type",
    "init_db",
    "reset_write_lock",
    "serialized_write",
    # Models
    "IngestionLogEntry",
    "Memory",
    "MemoryEmbedding",
]
