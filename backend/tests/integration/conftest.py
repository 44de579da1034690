"""
Conftest for integration tests.

Automatically applies the 'integration' marker to all tests in this directory.
"""

import pytest

# Apply 'integration' marker to all tests in this directory
pytestmark = pytest.mark.integration


@pytest.fixture
async def client(test_settings, memory_store, embedding_queue):
    """
    Create a test client wired to the test database and fake embedding provider.

    ASGITransport does not run the lifespan, so app state is populated here.
    """
    from core.app_factory import create_app
    from httpx import ASGITransport, AsyncClient

    app = create_app(test_settings)
    app.state.memory_store = memory_store
    app.state.embedding_queue = embedding_queue

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await embedding_queue.drain()
