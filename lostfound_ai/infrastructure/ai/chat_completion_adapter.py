"""OpenAI-compatible chat completion implementation of the AI provider interface."""

import logging
import os
from typing import Any, Dict, List, Optional

from openai import APIError, AsyncOpenAI
from pydantic import BaseModel, Field

from ...domain.exceptions import ConfigurationAbsentError, ProviderTransientError
from ...domain.ports.ai_provider import AIProvider

logger = logging.getLogger(__name__)


class ChatCompletionConfig(BaseModel):
    """Configuration for the chat completion adapter."""

    api_key: str = Field(default="", description="Provider API key")
    base_url: str = Field(
        default="https://api.groq.com/openai/v1",
        description="OpenAI-compatible API base URL",
    )
    model: str = Field(default="llama-3.3-70b-versatile", description="Primary model")
    fallback_model: Optional[str] = Field(
        default="llama-3.1-8b-instant",
        description="Model tried once when the primary model fails",
    )
    vision_model: str = Field(
        default="meta-llama/llama-4-scout-17b-16e-instruct",
        description="Vision-capable model used for image requests",
    )
    timeout: float = Field(default=60.0, description="API timeout in seconds")
    max_tokens: int = Field(default=2048, description="Maximum tokens per response")

    @classmethod
    def from_env(cls) -> "ChatCompletionConfig":
        """Create configuration from environment variables."""
        defaults = cls()
        fallback = os.getenv("LLM_FALLBACK_MODEL", defaults.fallback_model or "")
        return cls(
            api_key=os.getenv("LLM_API_KEY") or os.getenv("GROQ_API_KEY", ""),
            base_url=os.getenv("LLM_BASE_URL", defaults.base_url),
            model=os.getenv("LLM_MODEL", defaults.model),
            fallback_model=fallback or None,
            vision_model=os.getenv("LLM_VISION_MODEL", defaults.vision_model),
            timeout=float(os.getenv("LLM_TIMEOUT", defaults.timeout)),
        )


class ChatCompletionAdapter(AIProvider):
    """Chat completion provider with one fallback model."""

    def __init__(
        self,
        config: Optional[ChatCompletionConfig] = None,
        provider_name: str = "Groq",
    ):
        """Initialize the adapter."""
        self._config = config or ChatCompletionConfig()
        self._name = provider_name
        self._client: Optional[AsyncOpenAI] = None
        self._initialized = False

    async def initialize(self) -> None:
        """Create the API client."""
        if not self._config.api_key:
            raise ConfigurationAbsentError(f"{self._name} API key not configured")
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self._config.api_key,
                base_url=self._config.base_url,
                timeout=self._config.timeout,
            )
        self._initialized = True

    async def shutdown(self) -> None:
        """Close the API client."""
        if self._client is not None:
            await self._client.close()
            self._client = None
        self._initialized = False

    async def complete_json(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.2,
        image_url: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Request one JSON-object completion."""
        if image_url:
            user_content: Any = [
                {"type": "text", "text": user_prompt},
                {"type": "image_url", "image_url": {"url": image_url}},
            ]
            models = [self._config.vision_model]
        else:
            user_content = user_prompt
            models = self._models()

        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_content},
        ]
        content = await self._create(
            models,
            messages,
            temperature=temperature,
            max_tokens=max_tokens,
            response_format={"type": "json_object"},
        )
        return content or "{}"

    async def complete_text(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.2,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Request a plain-text completion."""
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
        content = await self._create(
            self._models(),
            messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return (content or "").strip()

    def _models(self) -> List[str]:
        models = [self._config.model]
        if self._config.fallback_model and self._config.fallback_model != self._config.model:
            models.append(self._config.fallback_model)
        return models

    async def _create(
        self,
        models: List[str],
        messages: List[Dict[str, Any]],
        **options: Any,
    ) -> str:
        if self._client is None:
            await self.initialize()

        options = {key: value for key, value in options.items() if value is not None}
        options.setdefault("max_tokens", self._config.max_tokens)

        last_error: Optional[Exception] = None
        for model in models:
            try:
                response = await self._client.chat.completions.create(
                    model=model,
                    messages=messages,
                    **options,
                )
            except APIError as e:
                last_error = e
                logger.warning(f"⚠️ {self._name} model {model} failed: {e}")
                continue

            if not response.choices:
                return ""
            return response.choices[0].message.content or ""

        raise ProviderTransientError(
            f"{self._name} completion failed for models {models}: {last_error}"
        )

    @property
    def provider_name(self) -> str:
        """Get the name of the AI provider."""
        return self._name

    @property
    def is_available(self) -> bool:
        """Check if the provider is available and ready."""
        return self._initialized and self._client is not None

    @property
    def capabilities(self) -> Dict[str, bool]:
        """Get the provider's capabilities."""
        return {
            "json_mode": True,
            "vision": bool(self._config.vision_model),
            "fallback_model": bool(self._config.fallback_model),
        }
