import uuid
from datetime import datetime, timezone

from core.settings import EMBEDDING_DIMENSIONS
from pgvector.sqlalchemy import Vector
from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import relationship

from .connection import Base

# Portable column types: native PostgreSQL types in production, JSON on SQLite
TAGS_TYPE = JSON(none_as_null=True).with_variant(ARRAY(Text), "postgresql")
METADATA_TYPE = JSON(none_as_null=True).with_variant(JSONB(none_as_null=True), "postgresql")
EMBEDDING_TYPE = JSON().with_variant(Vector(EMBEDDING_DIMENSIONS), "postgresql")


def _uuid_default() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Memory(Base):
    """Core memory storage table for all ingested content.

    The full-text search representation is generated by the database engine
    (see migrations) and is not mapped here.
    """

    __tablename__ = "memories"
    __table_args__ = (Index("idx_memories_tags", "tags", postgresql_using="gin").ddl_if(dialect="postgresql"),)

    id = Column(String(36), primary_key=True, default=_uuid_default)
    content = Column(Text, nullable=False)
    category = Column(Text, nullable=True)
    source = Column(Text, nullable=False)
    tags = Column(TAGS_TYPE, nullable=True)
    # "metadata" is reserved on declarative classes
    metadata_ = Column("metadata", METADATA_TYPE, nullable=True)
    source_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)  # Soft delete (NULL = active)

    embeddings = relationship("MemoryEmbedding", back_populates="memory")
    ingestion_entries = relationship("IngestionLogEntry", back_populates="memory")

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class MemoryEmbedding(Base):
    """Embeddings stored separately from memories so models can be swapped."""

    __tablename__ = "memory_embeddings"
    __table_args__ = (UniqueConstraint("memory_id", "model", name="uq_memory_embeddings_memory_id_model"),)

    id = Column(String(36), primary_key=True, default=_uuid_default)
    memory_id = Column(String(36), ForeignKey("memories.id"), nullable=False, index=True)
    model = Column(Text, nullable=False)
    embedding = Column(EMBEDDING_TYPE, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    memory = relationship("Memory", back_populates="embeddings")


class IngestionLogEntry(Base):
    """
    Ingestion log for deduplication of imported content.

    - ``(source, dedup_hash)`` unique index is the dedup authority for every source
    - ``(source, external_id)`` index serves lookups for sources with stable IDs
    """

    __tablename__ = "ingestion_log"
    __table_args__ = (
        Index("idx_ingestion_log_source_dedup_hash", "source", "dedup_hash", unique=True),
        Index("idx_ingestion_log_source_external_id", "source", "external_id"),
    )

    id = Column(String(36), primary_key=True, default=_uuid_default)
    source = Column(Text, nullable=False)
    external_id = Column(Text, nullable=True)
    dedup_hash = Column(String(64), nullable=False)
    memory_id = Column(String(36), ForeignKey("memories.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    memory = relationship("Memory", back_populates="ingestion_entries")
