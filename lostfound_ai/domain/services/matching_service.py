"""Service coordinating candidate retrieval, scoring and match persistence."""

import logging
import os
from typing import List, Optional, Set

from pydantic import BaseModel, Field

from ..exceptions import NotFoundError, ProviderError
from ..models.item import Item, build_item_text
from ..models.match import MatchingReport, PotentialMatch
from ..ports.embedding_provider import EmbeddingProvider
from ..ports.store import DataStore
from .candidate_retriever import CandidateRetriever
from .match_persistence import MatchPersistence
from .match_scorer import MatchScorer

logger = logging.getLogger(__name__)


class MatchingConfig(BaseModel):
    """Tunables of the matching pipeline."""

    min_confidence: int = Field(default=40, description="Lowest confidence that is persisted")
    max_results: int = Field(default=10, description="Most matches kept per run")
    vector_match_threshold: float = Field(default=0.5, description="Cosine similarity floor")
    vector_match_count: int = Field(default=50, description="Vector search cap")
    fallback_candidate_limit: int = Field(default=20, description="Recency scan cap")

    @classmethod
    def from_env(cls) -> "MatchingConfig":
        """Create configuration from environment variables."""
        defaults = cls()
        return cls(
            min_confidence=int(os.getenv("MATCH_MIN_CONFIDENCE", defaults.min_confidence)),
            max_results=int(os.getenv("MATCH_MAX_RESULTS", defaults.max_results)),
            vector_match_threshold=float(
                os.getenv("VECTOR_MATCH_THRESHOLD", defaults.vector_match_threshold)
            ),
            vector_match_count=int(os.getenv("VECTOR_MATCH_COUNT", defaults.vector_match_count)),
            fallback_candidate_limit=int(
                os.getenv("FALLBACK_CANDIDATE_LIMIT", defaults.fallback_candidate_limit)
            ),
        )


class BackfillReport(BaseModel):
    """Outcome of an embedding backfill."""

    processed: int = 0
    succeeded: int = 0
    failed: int = 0


class MatchingService:
    """Service for finding and managing potential matches."""

    def __init__(
        self,
        store: DataStore,
        retriever: CandidateRetriever,
        scorer: MatchScorer,
        persistence: MatchPersistence,
        embedder: Optional[EmbeddingProvider] = None,
    ):
        self.store = store
        self.retriever = retriever
        self.scorer = scorer
        self.persistence = persistence
        self.embedder = embedder
        logger.info("🔧 MatchingService initialized")

    async def get_item(self, item_id: str) -> Item:
        """Load an item, raising NotFoundError if it does not exist."""
        item = await self.store.get_item(item_id)
        if item is None:
            raise NotFoundError("Item", item_id)
        return item

    async def run_matching(self, item_id: str) -> MatchingReport:
        """Run one matching pass for an item.

        Raises:
            NotFoundError: If the item does not exist
            ProviderTransientError: If the chat model is unreachable
            PersistenceError: If a store write fails
        """
        item = await self.get_item(item_id)

        if not self.scorer.is_available:
            logger.warning(f"⚠️ Matching skipped for {item_id}: no chat provider configured")
            return MatchingReport(item_id=item_id, message="AI matching unavailable (no API key)")

        logger.info(f"🔍 Matching {item.status.value} item {item_id}: {item.title[:50]}")
        candidate_set = await self.retriever.find_candidates(item)
        if not candidate_set.candidates:
            logger.info(f"📭 No candidates for item {item_id}")
            return MatchingReport(
                item_id=item_id,
                search_method=candidate_set.search_method,
                message="No candidates found",
            )

        scored = await self.scorer.score(item, candidate_set.candidates)
        by_id = {candidate.item.id: candidate.item for candidate in candidate_set.candidates}
        sent = await self.persistence.persist(item, scored, by_id)

        logger.info(
            f"✅ Matching completed for {item_id}: {len(scored)} matches "
            f"from {len(candidate_set)} {candidate_set.search_method} candidates"
        )
        return MatchingReport(
            item_id=item_id,
            search_method=candidate_set.search_method,
            candidates_considered=len(candidate_set),
            matches=scored,
            notifications_sent=sent,
        )

    async def get_potential_matches(self, item_id: str) -> List[PotentialMatch]:
        """Non-dismissed matches for an item, highest confidence first."""
        return await self.store.list_matches(item_id)

    async def dismiss_match(self, match_id: str) -> PotentialMatch:
        """Dismiss one directional match row; the mirrored row is untouched."""
        match = await self.store.dismiss_match(match_id)
        if match is None:
            raise NotFoundError("Match", match_id)
        logger.info(f"🙈 Dismissed match {match_id}")
        return match

    async def backfill_embeddings(self, batch_size: int = 10) -> BackfillReport:
        """Embed every item that has no embedding yet.

        Per-item provider failures are counted and skipped. A
        PersistenceError while listing or writing aborts the run.
        """
        report = BackfillReport()
        if self.embedder is None or not self.embedder.is_available:
            logger.warning("⚠️ Embedding backfill skipped: no embedding provider configured")
            return report

        failed_ids: Set[str] = set()
        while True:
            batch = await self.store.items_without_embedding(batch_size + len(failed_ids))
            batch = [item for item in batch if item.id not in failed_ids][:batch_size]
            if not batch:
                break

            logger.info(f"📦 Backfilling batch of {len(batch)} items")
            for item in batch:
                report.processed += 1
                try:
                    embedding = await self.embedder.embed(build_item_text(item))
                except ProviderError as e:
                    logger.error(f"❌ Failed to embed item {item.id}: {e}")
                    failed_ids.add(item.id)
                    report.failed += 1
                    continue
                await self.store.update_item_embedding(item.id, embedding)
                report.succeeded += 1

        logger.info(
            f"✅ Backfill complete: {report.succeeded} embedded, {report.failed} failed"
        )
        return report
