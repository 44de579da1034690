"""
Unit tests for EmbeddingQueue.

Tests background embedding with bounded concurrency, failure isolation,
idempotent inserts and the drain barrier.
"""

import asyncio
import logging

import crud
import pytest
from domain.exceptions import EmbeddingConnectionError
from infrastructure.database import models
from services import EmbeddingQueue
from sqlalchemy import func, select
from tests.fixtures.embedding_fixtures import FakeEmbeddingProvider


async def embedding_rows(session_maker) -> list[models.MemoryEmbedding]:
    async with session_maker() as db:
        result = await db.execute(select(models.MemoryEmbedding))
        return list(result.scalars().all())


async def add_memories(test_db, count: int) -> list[str]:
    ids = [f"mem-{i}" for i in range(count)]
    for memory_id in ids:
        test_db.add(models.Memory(id=memory_id, content=f"content of {memory_id}", source="telegram"))
    await test_db.commit()
    return ids


class TestEnqueue:
    """Tests for enqueue + drain happy path."""

    async def test_enqueue_returns_none(self, embedding_queue, sample_memory):
        assert embedding_queue.enqueue("mem-1") is None
        await embedding_queue.drain()

    async def test_embeds_and_stores_vector(self, embedding_queue, fake_provider, sample_memory, session_maker):
        """enqueue("mem-1") + drain writes one row with the provider's vector."""
        embedding_queue.enqueue("mem-1")
        await embedding_queue.drain()

        assert fake_provider.calls == [("nomic-embed-text", "test content")]

        rows = await embedding_rows(session_maker)
        assert len(rows) == 1
        assert rows[0].memory_id == "mem-1"
        assert rows[0].model == "nomic-embed-text"
        assert list(rows[0].embedding) == pytest.approx([0.1, 0.2, 0.3])

    async def test_processes_multiple_items(self, embedding_queue, fake_provider, test_db, session_maker):
        ids = await add_memories(test_db, 3)

        for memory_id in ids:
            embedding_queue.enqueue(memory_id)
        await embedding_queue.drain()

        assert len(fake_provider.calls) == 3
        assert {row.memory_id for row in await embedding_rows(session_maker)} == set(ids)

    async def test_reembedding_same_memory_is_noop(self, embedding_queue, fake_provider, sample_memory, session_maker):
        """Enqueuing the same ID twice under one model yields exactly one row."""
        embedding_queue.enqueue("mem-1")
        embedding_queue.enqueue("mem-1")
        await embedding_queue.drain()

        embedding_queue.enqueue("mem-1")
        await embedding_queue.drain()

        assert len(fake_provider.calls) == 3
        assert len(await embedding_rows(session_maker)) == 1

    async def test_different_models_store_separately(self, session_maker, fake_provider, sample_memory):
        first = EmbeddingQueue(session_maker, fake_provider, model="nomic-embed-text")
        second = EmbeddingQueue(session_maker, fake_provider, model="mxbai-embed-large")

        first.enqueue("mem-1")
        second.enqueue("mem-1")
        await first.drain()
        await second.drain()

        assert {row.model for row in await embedding_rows(session_maker)} == {"nomic-embed-text", "mxbai-embed-large"}


class TestFailureIsolation:
    """Per-item failures are logged and never raised."""

    async def test_missing_memory_skipped(self, embedding_queue, fake_provider, session_maker, caplog):
        with caplog.at_level(logging.WARNING, logger="EmbeddingQueue"):
            embedding_queue.enqueue("nonexistent")
            await embedding_queue.drain()

        assert fake_provider.calls == []
        assert await embedding_rows(session_maker) == []
        assert "nonexistent" in caplog.text

    async def test_provider_network_error(self, session_maker, sample_memory, caplog):
        provider = FakeEmbeddingProvider(
            error=EmbeddingConnectionError("http://localhost:11434", ConnectionRefusedError("ECONNREFUSED"))
        )
        queue = EmbeddingQueue(session_maker, provider, model="nomic-embed-text")

        with caplog.at_level(logging.ERROR, logger="EmbeddingQueue"):
            queue.enqueue("mem-1")
            await queue.drain()

        assert await embedding_rows(session_maker) == []
        assert "mem-1" in caplog.text
        assert "ECONNREFUSED" in caplog.text

    async def test_insert_failure(self, embedding_queue, sample_memory, session_maker, monkeypatch, caplog):
        async def failing_insert(*args, **kwargs):
            raise RuntimeError("DB error")

        monkeypatch.setattr(crud, "create_embedding_if_absent", failing_insert)

        with caplog.at_level(logging.ERROR, logger="EmbeddingQueue"):
            embedding_queue.enqueue("mem-1")
            await embedding_queue.drain()

        assert "DB error" in caplog.text
        assert await embedding_rows(session_maker) == []

    async def test_failure_does_not_affect_other_items(self, session_maker, test_db):
        ids = await add_memories(test_db, 3)

        class FlakyProvider(FakeEmbeddingProvider):
            async def embed(self, model, text):
                if text == "content of mem-1":
                    raise RuntimeError("boom")
                return await super().embed(model, text)

        queue = EmbeddingQueue(session_maker, FlakyProvider(), model="nomic-embed-text")
        for memory_id in ids:
            queue.enqueue(memory_id)
        await queue.drain()

        assert {row.memory_id for row in await embedding_rows(session_maker)} == {"mem-0", "mem-2"}


class TestConcurrency:
    """Tests for the in-flight cap and scheduling order."""

    async def test_never_exceeds_cap(self, session_maker, test_db):
        ids = await add_memories(test_db, 10)
        provider = FakeEmbeddingProvider(delay=0.02)
        queue = EmbeddingQueue(session_maker, provider, model="nomic-embed-text", concurrency=3)

        for memory_id in ids:
            queue.enqueue(memory_id)
        await queue.drain()

        assert provider.max_in_flight <= 3
        assert len(provider.calls) == 10
        assert len(await embedding_rows(session_maker)) == 10

    async def test_fifo_start_order_with_single_slot(self, session_maker, test_db):
        ids = await add_memories(test_db, 5)
        provider = FakeEmbeddingProvider()
        queue = EmbeddingQueue(session_maker, provider, model="nomic-embed-text", concurrency=1)

        for memory_id in ids:
            queue.enqueue(memory_id)
        await queue.drain()

        assert [text for _, text in provider.calls] == [f"content of {memory_id}" for memory_id in ids]

    async def test_in_flight_and_pending_counts(self, session_maker, test_db):
        ids = await add_memories(test_db, 5)
        provider = FakeEmbeddingProvider()
        provider.release = asyncio.Event()
        queue = EmbeddingQueue(session_maker, provider, model="nomic-embed-text", concurrency=2)

        for memory_id in ids:
            queue.enqueue(memory_id)
        while provider.in_flight < 2:
            await asyncio.sleep(0.01)

        assert queue.in_flight == 2
        assert queue.pending_count == 5

        provider.release.set()
        await queue.drain()

        assert queue.in_flight == 0
        assert queue.pending_count == 0

    def test_rejects_zero_concurrency(self, session_maker, fake_provider):
        with pytest.raises(ValueError):
            EmbeddingQueue(session_maker, fake_provider, model="m", concurrency=0)


class TestDrain:
    """Tests for the drain barrier."""

    async def test_drain_empty_queue(self, embedding_queue):
        await asyncio.wait_for(embedding_queue.drain(), timeout=1)

    async def test_drain_repeatedly(self, embedding_queue, sample_memory):
        embedding_queue.enqueue("mem-1")
        await embedding_queue.drain()
        await embedding_queue.drain()

        assert embedding_queue.pending_count == 0

    async def test_drain_clears_job_list(self, embedding_queue, sample_memory):
        embedding_queue.enqueue("mem-1")
        await embedding_queue.drain()

        assert embedding_queue._jobs == set()

    async def test_finished_jobs_released_without_drain(self, embedding_queue, sample_memory):
        for _ in range(5):
            embedding_queue.enqueue("mem-1")
        while embedding_queue.pending_count:
            await asyncio.sleep(0.01)
        await asyncio.sleep(0)

        assert embedding_queue._jobs == set()

    async def test_late_arrivals_kept_for_next_drain(self, session_maker, test_db):
        """Jobs enqueued while a drain is waiting stay tracked after it returns."""
        ids = await add_memories(test_db, 2)
        provider = FakeEmbeddingProvider()
        first_gate = asyncio.Event()
        provider.release = first_gate
        queue = EmbeddingQueue(session_maker, provider, model="nomic-embed-text", concurrency=1)

        queue.enqueue(ids[0])
        while provider.in_flight < 1:
            await asyncio.sleep(0.01)
        drain_task = asyncio.create_task(queue.drain())
        await asyncio.sleep(0.01)

        # The late job waits on a second gate that stays closed until after the drain
        queue.enqueue(ids[1])
        provider.release = asyncio.Event()
        first_gate.set()
        await asyncio.wait_for(drain_task, timeout=5)

        assert queue.pending_count == 1
        assert [job.get_name() for job in queue._jobs] == [f"embed-{ids[1]}"]

        provider.release.set()
        await queue.drain()
        assert queue._jobs == set()
        assert len(await embedding_rows(session_maker)) == 2
