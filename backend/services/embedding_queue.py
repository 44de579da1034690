"""
Bounded-concurrency background queue that embeds stored memories.

``enqueue`` schedules one asyncio task per memory ID and returns at once.
A semaphore caps the number of jobs holding a slot (and therefore the number
of concurrent provider calls); waiting jobs acquire slots in submission order.
Per-job failures are logged and swallowed. Finished jobs drop out of the
tracked set on their own; ``drain`` is the shutdown barrier.
"""

import asyncio
import logging
from typing import Protocol

import crud
from infrastructure.database import serialized_write
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger("EmbeddingQueue")

DEFAULT_CONCURRENCY = 3


class EmbeddingProvider(Protocol):
    async def embed(self, model: str, text: str) -> list[float]: ...


class EmbeddingQueue:
    """Turns memory IDs into persisted embeddings, at most ``concurrency`` at a time."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        provider: EmbeddingProvider,
        model: str,
        concurrency: int = DEFAULT_CONCURRENCY,
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.session_maker = session_maker
        self.provider = provider
        self.model = model
        self.concurrency = concurrency
        # Create semaphore once to enforce the in-flight limit across all jobs
        self._slots = asyncio.Semaphore(concurrency)
        self._jobs: set[asyncio.Task] = set()
        self._in_flight = 0

    @property
    def pending_count(self) -> int:
        """Jobs scheduled but not yet completed or failed."""
        return sum(1 for job in self._jobs if not job.done())

    @property
    def in_flight(self) -> int:
        """Jobs currently holding a concurrency slot."""
        return self._in_flight

    def enqueue(self, memory_id: str) -> None:
        """
        Schedule embedding of a memory and return immediately.

        Must be called from within a running event loop.
        """
        job = asyncio.get_running_loop().create_task(self._run(memory_id), name=f"embed-{memory_id}")
        self._jobs.add(job)
        job.add_done_callback(self._jobs.discard)

    async def drain(self) -> None:
        """
        Wait for every job scheduled before this call to finish.

        Jobs enqueued while draining are not awaited; they stay tracked for
        the next drain.
        """
        jobs = list(self._jobs)
        if not jobs:
            return

        logger.info(f"Draining {len(jobs)} embedding job(s)...")
        await asyncio.gather(*jobs, return_exceptions=True)
        logger.info("Embedding queue drained")

    async def _run(self, memory_id: str) -> None:
        async with self._slots:
            self._in_flight += 1
            try:
                await self._process_memory(memory_id)
            except Exception as e:
                logger.error(f"Failed to process embedding for memory {memory_id}: {e}")
            finally:
                self._in_flight -= 1

    async def _process_memory(self, memory_id: str) -> None:
        async with self.session_maker() as db:
            memory = await crud.get_memory(db, memory_id)
        if memory is None:
            logger.warning(f"Memory not found for embedding: {memory_id}")
            return

        embedding = await self.provider.embed(self.model, memory.content)

        async with serialized_write(self.session_maker):
            async with self.session_maker() as db:
                async with db.begin():
                    inserted = await crud.create_embedding_if_absent(db, memory_id, self.model, embedding)

        if inserted:
            logger.debug(f"Embedding stored for memory {memory_id} (model={self.model})")
        else:
            logger.debug(f"Embedding already present for memory {memory_id} (model={self.model})")
