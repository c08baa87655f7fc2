"""Category suggestion for new posts."""

import logging
from typing import Optional

from pydantic import BaseModel

from ..exceptions import ProviderError
from ..ports.ai_provider import AIProvider
from ..prompts import CATEGORIES, CategoryPrompts

logger = logging.getLogger(__name__)

FALLBACK_CATEGORY = "Other"


class CategorySuggestion(BaseModel):
    category: str
    confidence: float = 0.85


def normalize_category(text: str) -> str:
    """Map a model answer onto the fixed vocabulary."""
    cleaned = text.strip().strip("'\"").replace(".", "").strip()
    for category in CATEGORIES:
        if category.lower() == cleaned.lower():
            return category
    return FALLBACK_CATEGORY


class CategorizationService:
    def __init__(self, ai_provider: Optional[AIProvider] = None, temperature: float = 0.3):
        self.ai = ai_provider
        self.temperature = temperature

    async def suggest_category(self, title: str, description: str = "") -> Optional[CategorySuggestion]:
        """Suggest one category; None when no provider is configured or it fails."""
        if self.ai is None:
            logger.warning("⚠️ No chat provider configured - category suggestion unavailable")
            return None

        try:
            text = await self.ai.complete_text(
                CategoryPrompts.SYSTEM,
                CategoryPrompts.build(title, description),
                temperature=self.temperature,
                max_tokens=20,
            )
        except ProviderError as e:
            logger.error(f"❌ Categorization failed: {e}")
            return None

        category = normalize_category(text or FALLBACK_CATEGORY)
        logger.info(f"🏷️ Suggested category for '{title[:50]}': {category}")
        return CategorySuggestion(category=category)
