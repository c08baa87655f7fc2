"""Jina AI implementation of the embedding provider interface."""

import asyncio
import hashlib
import logging
import os
from typing import List, Optional

import httpx
from cachetools import TTLCache
from pydantic import BaseModel, Field

from ...domain.exceptions import (
    ConfigurationAbsentError,
    ProviderMalformedResponseError,
    ProviderTransientError,
)
from ...domain.ports.embedding_provider import EmbeddingProvider

logger = logging.getLogger(__name__)


class JinaEmbeddingConfig(BaseModel):
    """Configuration for the Jina embedding adapter."""

    api_key: str = Field(default="", description="Jina API key")
    base_url: str = Field(default="https://api.jina.ai/v1", description="API base URL")
    model: str = Field(default="jina-embeddings-v2-base-en", description="Embedding model")
    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    max_attempts: int = Field(default=3, description="Attempts before giving up")
    retry_delay: float = Field(default=2.0, description="Backoff unit; attempt N waits N * delay")
    cache_ttl: int = Field(default=3600, description="Cache TTL in seconds")
    cache_maxsize: int = Field(default=1000, description="Maximum cache size")

    @classmethod
    def from_env(cls) -> "JinaEmbeddingConfig":
        """Create configuration from environment variables."""
        defaults = cls()
        return cls(
            api_key=os.getenv("EMBEDDING_API_KEY") or os.getenv("JINA_API_KEY", ""),
            base_url=os.getenv("EMBEDDING_BASE_URL", defaults.base_url),
            model=os.getenv("EMBEDDING_MODEL", defaults.model),
        )


class JinaEmbeddingAdapter(EmbeddingProvider):
    """Embeds text through the Jina ``/embeddings`` endpoint.

    Features:
    - Retries HTTP and network failures with linear backoff
    - Caches vectors per text with a TTL
    """

    def __init__(
        self,
        config: Optional[JinaEmbeddingConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
        provider_name: str = "Jina",
    ):
        """Initialize the adapter.

        Args:
            config: Adapter configuration
            client: Pre-built HTTP client (tests inject a mock transport)
            provider_name: Name of the provider
        """
        self._config = config or JinaEmbeddingConfig()
        self._client = client
        self._name = provider_name
        self._cache = TTLCache(
            maxsize=self._config.cache_maxsize,
            ttl=self._config.cache_ttl,
        )

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                timeout=self._config.timeout,
            )
        return self._client

    async def embed(self, text: str) -> List[float]:
        """Embed one consolidated item description."""
        if not self._config.api_key:
            raise ConfigurationAbsentError(f"{self._name} API key not configured")

        cache_key = hashlib.sha256(f"{self._config.model}:{text}".encode()).hexdigest()
        if cache_key in self._cache:
            return self._cache[cache_key]

        client = self._get_client()
        last_error = ""

        for attempt in range(1, self._config.max_attempts + 1):
            logger.info(f"📡 Embedding with {self._config.model} (attempt {attempt}): {text[:50]}...")
            try:
                response = await client.post(
                    "/embeddings",
                    json={"model": self._config.model, "input": [text]},
                    headers={
                        "Authorization": f"Bearer {self._config.api_key}",
                        "Content-Type": "application/json",
                    },
                )
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                last_error = f"HTTP {e.response.status_code}: {e.response.text[:200]}"
                logger.warning(f"⚠️ Attempt {attempt} failed with {last_error}")
            except httpx.RequestError as e:
                last_error = f"network error: {e}"
                logger.warning(f"⚠️ Attempt {attempt} failed with {last_error}")
            else:
                embedding = self._extract_embedding(response)
                self._cache[cache_key] = embedding
                return embedding

            if attempt < self._config.max_attempts:
                delay = attempt * self._config.retry_delay
                logger.info(f"🔄 Retrying in {delay:.1f}s...")
                await asyncio.sleep(delay)

        raise ProviderTransientError(
            f"{self._name} API error after {self._config.max_attempts} attempts: {last_error}"
        )

    def _extract_embedding(self, response: httpx.Response) -> List[float]:
        try:
            data = response.json()
            embedding = data["data"][0]["embedding"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ProviderMalformedResponseError(
                f"Invalid response format from {self._name}: {e}"
            ) from e
        if not isinstance(embedding, list) or not embedding:
            raise ProviderMalformedResponseError(f"Empty embedding from {self._name}")
        return [float(value) for value in embedding]

    async def shutdown(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def provider_name(self) -> str:
        """Get the provider name."""
        return self._name

    @property
    def is_available(self) -> bool:
        """True when an API key is configured."""
        return bool(self._config.api_key)
