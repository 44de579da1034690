"""
Ingestion store: deduplicated, transactional storage of incoming memories.

Each ingestion is keyed by a SHA-256 hash of ``source:source_date:content``.
The memory row and its ingestion log entry are written in one transaction,
and the unique ``(source, dedup_hash)`` index on the log backs up the
in-transaction duplicate check when two writers race.
"""

import hashlib
import logging
from datetime import datetime, timezone
from typing import Optional

import crud
from domain.exceptions import MemoryValidationError
from domain.value_objects import StoreMemoryInput, StoreMemoryResult
from infrastructure.database import models, serialized_write
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger("MemoryStore")


def format_source_date(source_date: Optional[datetime]) -> str:
    """
    Render a source timestamp the way it enters the dedup key.

    UTC, millisecond precision, ``Z`` suffix (``2024-01-15T10:30:00.000Z``).
    Naive datetimes are taken to be UTC. ``None`` renders as an empty string.
    """
    if source_date is None:
        return ""
    if source_date.tzinfo is None:
        source_date = source_date.replace(tzinfo=timezone.utc)
    utc = source_date.astimezone(timezone.utc)
    return f"{utc.strftime('%Y-%m-%dT%H:%M:%S')}.{utc.microsecond // 1000:03d}Z"


def compute_dedup_hash(source: str, source_date: Optional[datetime], content: str) -> str:
    """SHA-256 hex digest over ``{source}:{source_date}:{content}``."""
    key = f"{source}:{format_source_date(source_date)}:{content}"
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


class MemoryStore:
    """Stores memories with at-most-once semantics per (source, date, content)."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    async def store(self, memory: StoreMemoryInput) -> StoreMemoryResult:
        """
        Store a memory unless the same content was already ingested from the source.

        Args:
            memory: Content, source and optional dedup/provenance fields

        Returns:
            ``StoreMemoryResult`` holding the new memory, or ``deduplicated=True``

        Raises:
            MemoryValidationError: content or source is empty
            SQLAlchemyError: the database failed; nothing was written
        """
        _validate(memory)
        dedup_hash = compute_dedup_hash(memory.source, memory.source_date, memory.content)

        try:
            async with serialized_write(self.session_maker):
                async with self.session_maker() as db:
                    async with db.begin():
                        existing = await crud.get_ingestion_entry(db, memory.source, dedup_hash)
                        if existing is not None:
                            logger.debug(
                                f"Duplicate memory detected, skipping (source={memory.source}, hash={dedup_hash})"
                            )
                            return StoreMemoryResult.skipped()

                        db_memory = await crud.create_memory(db, memory)
                        await self._record_ingestion(db, db_memory, memory, dedup_hash)
        except IntegrityError:
            # A concurrent writer committed the same (source, hash) first
            if await self._ingestion_exists(memory.source, dedup_hash):
                logger.debug(f"Duplicate memory lost insert race, skipping (source={memory.source}, hash={dedup_hash})")
                return StoreMemoryResult.skipped()
            raise

        logger.info(f"Stored memory {db_memory.id} from {memory.source}")
        return StoreMemoryResult.stored(db_memory)

    async def find_by_external_id(self, source: str, external_id: str) -> Optional[models.Memory]:
        """
        Look up a memory by the ID its source assigned.

        Only reliable for sources with stable external IDs. Deduplication
        never consults this lookup.
        """
        async with self.session_maker() as db:
            return await crud.get_memory_by_external_id(db, source, external_id)

    async def _record_ingestion(
        self,
        db: AsyncSession,
        db_memory: models.Memory,
        memory: StoreMemoryInput,
        dedup_hash: str,
    ) -> None:
        await crud.create_ingestion_entry(
            db,
            memory_id=db_memory.id,
            source=memory.source,
            dedup_hash=dedup_hash,
            external_id=memory.external_id,
        )

    async def _ingestion_exists(self, source: str, dedup_hash: str) -> bool:
        async with self.session_maker() as db:
            return await crud.get_ingestion_entry(db, source, dedup_hash) is not None


def _validate(memory: StoreMemoryInput) -> None:
    if not isinstance(memory.content, str) or not memory.content.strip():
        raise MemoryValidationError("content")
    if not isinstance(memory.source, str) or not memory.source.strip():
        raise MemoryValidationError("source")
