"""
Pytest configuration and shared fixtures for backend tests.

This module provides test fixtures for database engines and sessions,
settings, and the ingestion pipeline services.
"""

import sys
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

# Add backend directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from tests.fixtures.embedding_fixtures import fake_provider  # noqa: E402, F401

# Type hints only - not imported at runtime
if TYPE_CHECKING:
    from typing import AsyncGenerator

    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession


def pytest_collection_modifyitems(items):
    """Auto-apply markers based on test directory."""
    for item in items:
        filepath = str(item.fspath)
        if "/tests/unit/" in filepath:
            item.add_marker(pytest.mark.unit)
        elif "/tests/integration/" in filepath:
            item.add_marker(pytest.mark.integration)


# ============================================================================
# Settings fixtures
# ============================================================================


@pytest.fixture
def test_settings(tmp_path):
    """Settings pointing at a throwaway SQLite database."""
    from core.settings import Settings

    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'memories.db'}",
        ollama_base_url="http://ollama.test:11434",
        embedding_model="nomic-embed-text",
        embedding_concurrency=3,
        telegram_allowed_user_ids="42",
    )


@pytest.fixture
def clean_settings():
    """Reset the settings singleton around a test."""
    from core import reset_settings

    reset_settings()
    yield
    reset_settings()


# ============================================================================
# Database fixtures
# ============================================================================


@pytest.fixture
async def test_engine(test_settings) -> "AsyncGenerator[AsyncEngine, None]":
    """
    Create a file-backed SQLite engine with the full schema for one test.

    A file (not :memory:) keeps every session on the same database while
    still letting each session use its own connection.
    """
    from infrastructure.database import create_engine, init_db, reset_write_lock

    reset_write_lock()
    engine = create_engine(test_settings.database_url)
    await init_db(engine)

    yield engine

    await engine.dispose()
    reset_write_lock()


@pytest.fixture
def session_maker(test_engine):
    """Session factory bound to the test engine."""
    from infrastructure.database import create_session_maker

    return create_session_maker(test_engine)


@pytest.fixture
async def test_db(session_maker) -> "AsyncGenerator[AsyncSession, None]":
    """Provide a database session for direct setup and assertions."""
    async with session_maker() as session:
        yield session


# ============================================================================
# Service fixtures
# ============================================================================


@pytest.fixture
def memory_store(session_maker):
    from services import MemoryStore

    return MemoryStore(session_maker)


@pytest.fixture
def embedding_queue(session_maker, fake_provider):
    from services import EmbeddingQueue

    return EmbeddingQueue(session_maker, fake_provider, model="nomic-embed-text", concurrency=3)


@pytest.fixture
async def sample_memory(test_db):
    """A committed memory with the ID "mem-1"."""
    from infrastructure.database import models

    memory = models.Memory(id="mem-1", content="test content", source="telegram")
    test_db.add(memory)
    await test_db.commit()
    return memory
