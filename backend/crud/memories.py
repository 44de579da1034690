"""
CRUD operations for Memory, IngestionLogEntry and MemoryEmbedding entities.

These functions never commit; transaction boundaries belong to the services.
"""

from typing import Optional

from domain.exceptions import ConfigurationError
from domain.value_objects import StoreMemoryInput
from infrastructure.database import models
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select


async def get_memory(db: AsyncSession, memory_id: str) -> Optional[models.Memory]:
    """Get a memory by ID (soft-deleted memories included)."""
    result = await db.execute(select(models.Memory).where(models.Memory.id == memory_id).limit(1))
    return result.scalars().first()


async def get_ingestion_entry(db: AsyncSession, source: str, dedup_hash: str) -> Optional[models.IngestionLogEntry]:
    """Get the ingestion log entry for a (source, dedup_hash) pair."""
    result = await db.execute(
        select(models.IngestionLogEntry)
        .where(
            models.IngestionLogEntry.source == source,
            models.IngestionLogEntry.dedup_hash == dedup_hash,
        )
        .limit(1)
    )
    return result.scalars().first()


async def get_memory_by_external_id(db: AsyncSession, source: str, external_id: str) -> Optional[models.Memory]:
    """
    Get the memory most recently ingested under a source-assigned ID.

    ``(source, external_id)`` is not unique, so the latest log entry wins.
    """
    result = await db.execute(
        select(models.Memory)
        .join(models.IngestionLogEntry, models.IngestionLogEntry.memory_id == models.Memory.id)
        .where(
            models.IngestionLogEntry.source == source,
            models.IngestionLogEntry.external_id == external_id,
        )
        .order_by(models.IngestionLogEntry.created_at.desc())
        .limit(1)
    )
    return result.scalars().first()


async def create_memory(db: AsyncSession, memory: StoreMemoryInput) -> models.Memory:
    """
    Insert a new memory row and flush it so its ID is assigned.

    Absent optional fields are written as explicit NULLs.
    """
    db_memory = models.Memory(
        content=memory.content,
        source=memory.source,
        category=memory.category,
        tags=list(memory.tags) if memory.tags is not None else None,
        metadata_=memory.metadata,
        source_date=memory.source_date,
        deleted_at=None,
    )
    db.add(db_memory)
    await db.flush()
    return db_memory


async def create_ingestion_entry(
    db: AsyncSession,
    memory_id: str,
    source: str,
    dedup_hash: str,
    external_id: Optional[str] = None,
) -> models.IngestionLogEntry:
    """Insert the provenance/dedup record for a freshly stored memory."""
    entry = models.IngestionLogEntry(
        source=source,
        external_id=external_id,
        dedup_hash=dedup_hash,
        memory_id=memory_id,
    )
    db.add(entry)
    await db.flush()
    return entry


async def create_embedding_if_absent(db: AsyncSession, memory_id: str, model: str, embedding: list[float]) -> bool:
    """
    Insert an embedding, doing nothing if ``(memory_id, model)`` already exists.

    Returns:
        True if a row was inserted, False on conflict
    """
    dialect_name = db.get_bind().dialect.name
    if dialect_name == "postgresql":
        insert = postgresql.insert
    elif dialect_name == "sqlite":
        insert = sqlite.insert
    else:
        raise ConfigurationError(f"Conflict-ignoring insert is not supported for database dialect '{dialect_name}'")

    stmt = (
        insert(models.MemoryEmbedding)
        .values(memory_id=memory_id, model=model, embedding=embedding)
        .on_conflict_do_nothing(index_elements=["memory_id", "model"])
    )
    result = await db.execute(stmt)
    return result.rowcount > 0


async def get_embeddings(db: AsyncSession, memory_id: str) -> list[models.MemoryEmbedding]:
    """Get all embeddings stored for a memory."""
    result = await db.execute(select(models.MemoryEmbedding).where(models.MemoryEmbedding.memory_id == memory_id))
    return list(result.scalars().all())
