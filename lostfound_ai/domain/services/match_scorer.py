"""Language-model re-ranking of match candidates."""

import json
import logging
from typing import Any, List, Optional

from pydantic import ValidationError

from ..models.item import Item
from ..models.match import Candidate, ScoredMatch
from ..ports.ai_provider import AIProvider
from ..prompts import MatchingPrompts

logger = logging.getLogger(__name__)


class MatchScorer:
    """Asks a chat model to score candidates and enforces the acceptance rules.

    The model decides the order; this class only filters it:
    unknown, self and duplicate ids are dropped, confidences below
    ``min_confidence`` are dropped, and at most ``max_matches`` survive.
    """

    def __init__(
        self,
        ai_provider: Optional[AIProvider] = None,
        min_confidence: int = 40,
        max_matches: int = 10,
        temperature: float = 0.3,
    ):
        self.ai = ai_provider
        self.min_confidence = min_confidence
        self.max_matches = max_matches
        self.temperature = temperature

    @property
    def is_available(self) -> bool:
        return self.ai is not None

    async def score(self, item: Item, candidates: List[Candidate]) -> List[ScoredMatch]:
        """Score candidates for an item.

        Returns:
            Accepted matches in model order. Empty when no provider is
            configured, when there are no candidates, or when the model
            output cannot be parsed.

        Raises:
            ProviderTransientError: If the model and its fallback both failed
        """
        if not self.is_available:
            logger.warning("⚠️ No chat provider configured - skipping match scoring")
            return []
        if not candidates:
            return []

        prompt = MatchingPrompts.build(item, candidates, self.min_confidence)
        raw = await self.ai.complete_json(
            MatchingPrompts.SYSTEM,
            prompt,
            temperature=self.temperature,
        )
        return self.parse_matches(raw, item, candidates)

    def parse_matches(self, raw: str, item: Item, candidates: List[Candidate]) -> List[ScoredMatch]:
        """Validate the raw model response into accepted matches."""
        try:
            data: Any = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning(f"⚠️ Malformed scorer response, treating as no matches: {str(raw)[:200]}")
            return []

        entries = data.get("matches") if isinstance(data, dict) else data
        if not isinstance(entries, list):
            logger.warning(f"⚠️ Scorer response has no matches array: {str(raw)[:200]}")
            return []

        known_ids = {candidate.item.id for candidate in candidates}
        accepted: List[ScoredMatch] = []
        seen = set()

        for entry in entries:
            try:
                match = ScoredMatch.model_validate(entry)
            except ValidationError as e:
                logger.warning(f"⚠️ Skipping invalid match entry {entry!r}: {e.error_count()} errors")
                continue

            if match.candidate_id == item.id or match.candidate_id not in known_ids:
                logger.warning(f"⚠️ Scorer returned unknown candidate id {match.candidate_id}")
                continue
            if match.candidate_id in seen:
                continue
            if match.confidence < self.min_confidence:
                continue

            seen.add(match.candidate_id)
            accepted.append(match)
            if len(accepted) >= self.max_matches:
                break

        return accepted
