"""Test fixtures package."""

from tests.fixtures.embedding_fixtures import FakeEmbeddingProvider, fake_provider

__all__ = [
    "FakeEmbeddingProvider",
    "fake_provider",
]
