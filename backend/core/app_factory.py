"""
Application factory for creating FastAPI app instances.

The lifespan wires the ingestion pipeline: database bootstrap, memory store,
embedding provider client, embedding queue and chat message handler. On
shutdown the embedding queue is drained before any resource is released.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from infrastructure.database import create_engine, create_session_maker, init_db, reset_write_lock
from infrastructure.embedding_client import OllamaEmbeddingClient
from services import EmbeddingQueue, MemoryStore, MessageHandler

from core import Settings, get_logger, get_settings

logger = get_logger("AppFactory")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use (defaults to the process-wide singleton)

    Returns:
        Configured FastAPI application instance
    """
    from routers import health, memories

    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for application startup and shutdown."""
        logger.info("🚀 Application startup...")

        engine = create_engine(settings.database_url)
        await init_db(engine)
        session_maker = create_session_maker(engine)

        embedding_client = OllamaEmbeddingClient(settings.ollama_base_url, timeout=settings.embedding_timeout)
        memory_store = MemoryStore(session_maker)
        embedding_queue = EmbeddingQueue(
            session_maker,
            embedding_client,
            model=settings.embedding_model,
            concurrency=settings.embedding_concurrency,
        )

        # Store in app state for dependency injection
        app.state.memory_store = memory_store
        app.state.embedding_queue = embedding_queue
        app.state.message_handler = MessageHandler(
            memory_store,
            embedding_queue,
            allowed_user_ids=settings.get_allowed_user_ids(),
        )

        logger.info(
            f"✅ Application startup complete (model={settings.embedding_model}, "
            f"concurrency={settings.embedding_concurrency})"
        )

        yield

        logger.info("🛑 Application shutdown...")
        # Stop accepting new ingestions before waiting on queued embeddings
        app.state.message_handler = None
        app.state.memory_store = None
        await embedding_queue.drain()
        await embedding_client.aclose()
        await engine.dispose()
        reset_write_lock()
        logger.info("✅ Application shutdown complete")

    app = FastAPI(title="Memory Ingestion API", lifespan=lifespan)

    app.include_router(health.router, tags=["Health"])
    app.include_router(memories.router, prefix="/memories", tags=["Memories"])

    return app
