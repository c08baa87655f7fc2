"""Suggests verification questions for a posted item."""

import json
import logging
from typing import List, Optional

from ..exceptions import NotFoundError, ProviderError
from ..models.item import Item, Question
from ..ports.ai_provider import AIProvider
from ..ports.store import ItemStore
from ..prompts import QuestionPrompts

logger = logging.getLogger(__name__)

DEFAULT_QUESTIONS = [
    "What is the color of the item?",
    "Are there any unique marks or damage on the item?",
    "What brand or model is it?",
]

MALFORMED_FALLBACK_QUESTIONS = [
    "Can you describe any unique features or damage on the item?",
    "What was inside or attached to it?",
    "Any distinguishing marks, engravings, or modifications?",
]

EMPTY_FALLBACK_QUESTIONS = [
    "Can you describe any unique features?",
    "Where exactly was it lost/found?",
    "Are there any identifying marks?",
]

MAX_QUESTIONS = 5


class QuestionGenerationService:
    """Asks the chat model for questions only the true owner could answer."""

    def __init__(self, store: ItemStore, ai_provider: Optional[AIProvider] = None, temperature: float = 0.6):
        self.store = store
        self.ai = ai_provider
        self.temperature = temperature

    async def generate_questions(self, item: Item) -> List[str]:
        """Return 3-5 question texts, or a fixed default set on failure."""
        if self.ai is None:
            logger.warning("⚠️ No chat provider configured - using default questions")
            return list(DEFAULT_QUESTIONS)

        try:
            raw = await self.ai.complete_json(
                QuestionPrompts.SYSTEM,
                QuestionPrompts.build(item),
                temperature=self.temperature,
            )
        except ProviderError as e:
            logger.error(f"❌ Question generation failed: {e}")
            return list(DEFAULT_QUESTIONS)

        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning(f"⚠️ Failed to parse question response: {str(raw)[:200]}")
            return list(MALFORMED_FALLBACK_QUESTIONS)

        questions = data.get("questions") if isinstance(data, dict) else None
        if not isinstance(questions, list):
            questions = []
        questions = [str(q).strip() for q in questions if isinstance(q, str) and q.strip()]
        if not questions:
            return list(EMPTY_FALLBACK_QUESTIONS)
        return questions[:MAX_QUESTIONS]

    async def generate_for_item(self, item_id: str, persist: bool = False) -> List[str]:
        """Generate questions for a stored item, optionally saving them as Question rows."""
        item = await self.store.get_item(item_id)
        if item is None:
            raise NotFoundError("Item", item_id)

        texts = await self.generate_questions(item)
        if persist:
            await self.store.insert_questions([
                Question(item_id=item_id, question_text=text) for text in texts
            ])
            logger.info(f"💾 Saved {len(texts)} questions for item {item_id}")
        return texts
