"""Protocol for text-embedding providers."""

from typing import List, Protocol


class EmbeddingProvider(Protocol):
    """Turns a consolidated item description into a vector."""

    async def embed(self, text: str) -> List[float]:
        """Embed a single text.

        Raises:
            ConfigurationAbsentError: No API key is configured
            ProviderTransientError: All retry attempts failed
            ProviderMalformedResponseError: Response had no embedding
        """
        ...

    async def shutdown(self) -> None:
        """Clean up resources."""
        ...

    @property
    def provider_name(self) -> str:
        """Get the provider name."""
        ...

    @property
    def is_available(self) -> bool:
        """True when an API key is configured."""
        ...
