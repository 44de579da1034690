"""
Database migration utilities (SQLite and PostgreSQL).

``Base.metadata.create_all`` creates the portable part of the schema. This
module adds the engine-specific pieces on top of it:

- PostgreSQL: the pgvector extension, a generated ``tsvector`` search column
  on ``memories`` and its GIN index.
- SQLite: an FTS5 external-content table mirroring ``memories.content`` and
  the trigger that keeps it populated.

Every step is idempotent so migrations can run on each startup.
"""

import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

logger = logging.getLogger(__name__)


def get_database_type(conn: AsyncConnection) -> str:
    """
    Detect database type from connection.

    Returns:
        "postgresql" if PostgreSQL, "sqlite" if SQLite, the dialect name otherwise
    """
    return conn.dialect.name


async def ensure_pgvector_extension(engine: AsyncEngine) -> None:
    """Create the pgvector extension before tables that use the vector type."""
    async with engine.begin() as conn:
        if get_database_type(conn) == "postgresql":
            await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))


async def run_migrations(engine: AsyncEngine):
    """
    Run all database migrations to ensure schema is up-to-date.
    """
    logger.info("🔄 Running database migrations...")

    async with engine.begin() as conn:
        db_type = get_database_type(conn)
        if db_type == "postgresql":
            await _migrate_postgres_search(conn)
        elif db_type == "sqlite":
            await _migrate_sqlite_search(conn)
        else:
            logger.warning(f"No search migrations for database type: {db_type}")

    logger.info("✅ Database migrations completed")


# =============================================================================
# Helper Functions
# =============================================================================


async def _column_exists(conn, table: str, column: str) -> bool:
    """Check if a column exists in a table (PostgreSQL)."""
    result = await conn.execute(
        text("""
            SELECT COUNT(*) as count
            FROM information_schema.columns
            WHERE table_name = :table AND column_name = :column
        """),
        {"table": table, "column": column},
    )
    return result.first().count > 0


async def _index_exists(conn, index_name: str) -> bool:
    """Check if an index exists (PostgreSQL)."""
    result = await conn.execute(
        text("""
            SELECT COUNT(*) as count
            FROM pg_indexes
            WHERE indexname = :index_name
        """),
        {"index_name": index_name},
    )
    return result.first().count > 0


async def _sqlite_object_exists(conn, object_type: str, name: str) -> bool:
    """Check if a table/trigger/index exists in sqlite_master."""
    result = await conn.execute(
        text("""
            SELECT COUNT(*) as count
            FROM sqlite_master
            WHERE type = :type AND name = :name
        """),
        {"type": object_type, "name": name},
    )
    return result.first().count > 0


# =============================================================================
# Full-text search
# =============================================================================


async def _migrate_postgres_search(conn):
    """Add the generated tsvector column and its GIN index to memories."""
    if not await _column_exists(conn, "memories", "search"):
        logger.info("  Adding memories.search column...")
        await conn.execute(
            text(
                "ALTER TABLE memories ADD COLUMN search tsvector "
                "GENERATED ALWAYS AS (to_tsvector('english', content)) STORED"
            )
        )
        logger.info("  ✓ Added memories.search column")

    if not await _index_exists(conn, "idx_memories_search"):
        logger.info("  Adding idx_memories_search index...")
        await conn.execute(text("CREATE INDEX idx_memories_search ON memories USING gin (search)"))
        logger.info("  ✓ Added idx_memories_search index")


async def _migrate_sqlite_search(conn):
    """Create the FTS5 mirror of memories.content and its insert trigger."""
    if not await _sqlite_object_exists(conn, "table", "memories_fts"):
        logger.info("  Adding memories_fts table...")
        await conn.execute(
            text("CREATE VIRTUAL TABLE memories_fts USING fts5(content, content='memories', content_rowid='rowid')")
        )
        # Backfill rows created before the search table existed
        await conn.execute(text("INSERT INTO memories_fts(memories_fts) VALUES ('rebuild')"))
        logger.info("  ✓ Added memories_fts table")

    if not await _sqlite_object_exists(conn, "trigger", "memories_fts_ai"):
        logger.info("  Adding memories_fts_ai trigger...")
        await conn.execute(
            text("""
                CREATE TRIGGER memories_fts_ai AFTER INSERT ON memories BEGIN
                    INSERT INTO memories_fts(rowid, content) VALUES (new.rowid, new.content);
                END
            """)
        )
        logger.info("  ✓ Added memories_fts_ai trigger")
