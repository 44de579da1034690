"""
HTTP client for an Ollama-compatible embedding provider.

The provider is treated as an opaque function from text to a fixed-length
vector: one ``POST {base_url}/api/embed`` per text, first vector of the
response is used.
"""

import logging
from typing import Optional

import httpx
from domain.exceptions import EmbeddingConnectionError, EmbeddingProviderError

logger = logging.getLogger("EmbeddingClient")

EMBED_PATH = "/api/embed"


class OllamaEmbeddingClient:
    """Async embedding client backed by ``httpx.AsyncClient``."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            base_url: Provider base URL (e.g. ``http://localhost:11434``)
            timeout: Per-request timeout in seconds
            http_client: Pre-built client (tests inject a MockTransport-backed one).
                A client passed in is not closed by ``aclose``.
        """
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    async def embed(self, model: str, text: str) -> list[float]:
        """
        Generate an embedding vector for ``text`` with ``model``.

        Raises:
            EmbeddingConnectionError: The provider could not be reached
            EmbeddingProviderError: Non-success status or malformed response body
        """
        url = f"{self.base_url}{EMBED_PATH}"
        logger.debug(f"Requesting embedding from {url} (model={model}, chars={len(text)})")

        try:
            response = await self._client.post(url, json={"model": model, "input": text})
        except httpx.RequestError as e:
            raise EmbeddingConnectionError(self.base_url, e) from e

        if not response.is_success:
            raise EmbeddingProviderError(response.status_code, response.reason_phrase, response.text)

        try:
            data = response.json()
        except ValueError as e:
            raise EmbeddingProviderError(response.status_code, response.reason_phrase, response.text) from e
        embeddings = data.get("embeddings") if isinstance(data, dict) else None
        if not embeddings:
            raise EmbeddingProviderError(response.status_code, response.reason_phrase, "response has no embeddings")
        return embeddings[0]

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "OllamaEmbeddingClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
        return False
