"""Protocol for chat-completion (language model) providers."""

from typing import Dict, Optional, Protocol


class AIProvider(Protocol):
    """Protocol defining the interface for language model providers."""

    async def initialize(self) -> None:
        """Initialize the AI provider."""
        ...

    async def shutdown(self) -> None:
        """Clean up resources."""
        ...

    async def complete_json(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.2,
        image_url: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Request a single completion that should contain one JSON object.

        Returns the raw completion text; parsing and validation belong to the
        caller. Raises ProviderTransientError when the primary and fallback
        models both fail.
        """
        ...

    async def complete_text(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.2,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Request a plain-text completion."""
        ...

    @property
    def provider_name(self) -> str:
        """Get the name of the AI provider."""
        ...

    @property
    def is_available(self) -> bool:
        """Check if the provider is available and ready."""
        ...

    @property
    def capabilities(self) -> Dict[str, bool]:
        """Get the provider's capabilities."""
        ...
