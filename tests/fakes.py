"""Fake providers and builders shared by the tests."""

import json
from typing import Any, Callable, Dict, List, Optional, Union

from lostfound_ai.domain.models.item import Item, ItemStatus

Response = Union[str, Dict[str, Any], Exception]


class FakeAIProvider:
    """Chat provider returning canned responses.

    ``responder`` receives (system_prompt, user_prompt, image_url) and
    returns a JSON string, a dict (serialized for you) or an exception to raise.
    """

    def __init__(self, responder: Union[Response, Callable[..., Response]] = "{}", name: str = "Fake"):
        self._responder = responder
        self._name = name
        self.calls: List[Dict[str, Any]] = []

    def _respond(self, system_prompt: str, user_prompt: str, image_url: Optional[str]) -> str:
        response = self._responder
        if callable(response):
            response = response(system_prompt, user_prompt, image_url)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, (dict, list)):
            return json.dumps(response)
        return response

    async def initialize(self) -> None:
        pass

    async def shutdown(self) -> None:
        pass

    async def complete_json(self, system_prompt, user_prompt, temperature=0.2, image_url=None, max_tokens=None) -> str:
        self.calls.append({"system": system_prompt, "user": user_prompt, "image_url": image_url})
        return self._respond(system_prompt, user_prompt, image_url)

    async def complete_text(self, system_prompt, user_prompt, temperature=0.2, max_tokens=None) -> str:
        self.calls.append({"system": system_prompt, "user": user_prompt, "image_url": None})
        return self._respond(system_prompt, user_prompt, None)

    @property
    def provider_name(self) -> str:
        return self._name

    @property
    def is_available(self) -> bool:
        return True

    @property
    def capabilities(self) -> Dict[str, bool]:
        return {"json_mode": True, "vision": True}


class FakeEmbedder:
    """Embedding provider returning a fixed vector (or raising)."""

    def __init__(self, vector: Optional[List[float]] = None, error: Optional[Exception] = None):
        self.vector = vector or [1.0, 0.0]
        self.error = error
        self.texts: List[str] = []

    async def embed(self, text: str) -> List[float]:
        self.texts.append(text)
        if self.error is not None:
            raise self.error
        return list(self.vector)

    async def shutdown(self) -> None:
        pass

    @property
    def provider_name(self) -> str:
        return "FakeEmbedder"

    @property
    def is_available(self) -> bool:
        return True


def make_item(**overrides) -> Item:
    """Build an item with sensible defaults."""
    values = {
        "user_id": "user-lost",
        "status": ItemStatus.LOST,
        "title": "Black wallet",
        "description": "Black leather wallet with a red stitched edge",
        "category": "Electronics",
        "location": "Central Station",
    }
    values.update(overrides)
    return Item(**values)


