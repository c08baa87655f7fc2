"""Finds opposite-status candidates for a newly posted item."""

import logging
from typing import List, Optional

from ..exceptions import ProviderError
from ..models.item import Item, build_item_text
from ..models.match import Candidate, CandidateSet
from ..ports.embedding_provider import EmbeddingProvider
from ..ports.store import ItemStore

logger = logging.getLogger(__name__)


class CandidateRetriever:
    """Vector similarity search with a recency-ordered fallback scan."""

    def __init__(
        self,
        store: ItemStore,
        embedder: Optional[EmbeddingProvider] = None,
        match_threshold: float = 0.5,
        match_count: int = 50,
        fallback_limit: int = 20,
    ):
        """Initialize the retriever.

        Args:
            store: Item store used for both search strategies
            embedder: Embedding provider; None disables the vector path
            match_threshold: Minimum cosine similarity (0-1) for vector hits
            match_count: Cap on vector hits
            fallback_limit: Cap on the recency scan
        """
        self.store = store
        self.embedder = embedder
        self.match_threshold = match_threshold
        self.match_count = match_count
        self.fallback_limit = fallback_limit

    @property
    def vector_enabled(self) -> bool:
        return self.embedder is not None and self.embedder.is_available

    async def find_candidates(self, item: Item) -> CandidateSet:
        """Return candidates of the opposite status, never owned by the item's owner."""
        if self.vector_enabled:
            logger.info(f"🔍 Vector search for {item.status.value} item {item.id}")
            try:
                candidates = await self._vector_search(item)
            except ProviderError as e:
                logger.warning(f"⚠️ Embedding failed for item {item.id}, falling back: {e}")
            else:
                if candidates:
                    logger.info(f"✅ Vector search found {len(candidates)} candidates")
                    return CandidateSet(candidates=candidates, search_method="vector")
                logger.info("🔄 No vector hits above threshold, falling back to recent items")

        recent = await self.store.recent_items(
            status=item.status.opposite,
            exclude_user_id=item.user_id,
            limit=self.fallback_limit,
        )
        candidates = [Candidate(item=other) for other in recent if other.id != item.id]
        logger.info(f"📋 Legacy scan found {len(candidates)} candidates")
        return CandidateSet(candidates=candidates, search_method="legacy")

    async def _vector_search(self, item: Item) -> List[Candidate]:
        embedding = item.embedding
        if not embedding:
            embedding = await self.embedder.embed(build_item_text(item))
            await self.store.update_item_embedding(item.id, embedding)

        hits = await self.store.match_items(
            query_embedding=embedding,
            match_threshold=self.match_threshold,
            match_count=self.match_count,
            opposite_status=item.status.opposite,
            exclude_user_id=item.user_id,
        )
        return [hit for hit in hits if hit.item.id != item.id]
