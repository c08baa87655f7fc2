"""In-process implementation of the data store ports."""

import asyncio
import logging
import math
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from ...domain.exceptions import NotFoundError, PersistenceError
from ...domain.models.claim import Claim
from ...domain.models.item import Item, ItemStatus, Question
from ...domain.models.job import EnrichmentJob, JobStatus
from ...domain.models.match import Candidate, PotentialMatch
from ...domain.models.notification import Notification
from ...domain.ports.store import ClaimMutator, DataStore

logger = logging.getLogger(__name__)


def cosine_similarity(a: List[float], b: List[float]) -> float:
    """Cosine similarity of two vectors; 0.0 for mismatched or zero vectors."""
    if len(a) != len(b) or not a:
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


class MemoryStore(DataStore):
    """Dictionary-backed store.

    A single asyncio lock serializes writes, which gives upserts and claim
    updates the same atomicity a database row lock would.
    """

    def __init__(self):
        self._items: Dict[str, Item] = {}
        self._questions: Dict[str, Question] = {}
        self._matches: Dict[Tuple[str, str], PotentialMatch] = {}
        self._claims: Dict[str, Claim] = {}
        self._notifications: List[Notification] = []
        self._jobs: Dict[str, EnrichmentJob] = {}
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        logger.info("🗄️ Using in-memory store")

    async def shutdown(self) -> None:
        pass

    @property
    def backend_name(self) -> str:
        return "memory"

    # Items

    async def get_item(self, item_id: str) -> Optional[Item]:
        item = self._items.get(item_id)
        return item.model_copy(deep=True) if item else None

    async def insert_item(self, item: Item) -> Item:
        async with self._lock:
            if item.id in self._items:
                raise PersistenceError(f"Item already exists: {item.id}")
            self._items[item.id] = item.model_copy(deep=True)
        return item

    async def update_item_embedding(self, item_id: str, embedding: List[float]) -> None:
        async with self._lock:
            item = self._items.get(item_id)
            if item is None:
                raise PersistenceError(f"Cannot store embedding, item not found: {item_id}")
            self._items[item_id] = item.model_copy(update={"embedding": list(embedding)})

    async def match_items(
        self,
        query_embedding: List[float],
        match_threshold: float,
        match_count: int,
        opposite_status: ItemStatus,
        exclude_user_id: str,
    ) -> List[Candidate]:
        scored = []
        for item in self._items.values():
            if (
                item.status != opposite_status
                or not item.is_active
                or item.user_id == exclude_user_id
                or not item.embedding
            ):
                continue
            similarity = cosine_similarity(query_embedding, item.embedding)
            if similarity >= match_threshold:
                scored.append(Candidate(item=item.model_copy(deep=True), similarity=similarity))

        scored.sort(key=lambda c: c.similarity, reverse=True)
        return scored[:match_count]

    async def recent_items(
        self,
        status: ItemStatus,
        exclude_user_id: str,
        limit: int,
    ) -> List[Item]:
        items = [
            item for item in self._items.values()
            if item.status == status and item.is_active and item.user_id != exclude_user_id
        ]
        items.sort(key=lambda i: i.created_at, reverse=True)
        return [item.model_copy(deep=True) for item in items[:limit]]

    async def items_without_embedding(self, limit: int) -> List[Item]:
        items = [item for item in self._items.values() if item.embedding is None]
        return [item.model_copy(deep=True) for item in items[:limit]]

    async def get_questions(self, item_id: str) -> List[Question]:
        return [q.model_copy() for q in self._questions.values() if q.item_id == item_id]

    async def insert_questions(self, questions: List[Question]) -> List[Question]:
        async with self._lock:
            for question in questions:
                self._questions[question.id] = question.model_copy()
        return questions

    # Matches

    async def upsert_match(
        self,
        item_id: str,
        matched_item_id: str,
        confidence_score: int,
        reasoning: Optional[str],
    ) -> PotentialMatch:
        key = (item_id, matched_item_id)
        now = datetime.now(timezone.utc)
        async with self._lock:
            existing = self._matches.get(key)
            if existing is None:
                row = PotentialMatch(
                    item_id=item_id,
                    matched_item_id=matched_item_id,
                    confidence_score=confidence_score,
                    reasoning=reasoning,
                )
            else:
                row = existing.model_copy(update={
                    "confidence_score": confidence_score,
                    "reasoning": reasoning,
                    "updated_at": now,
                })
            self._matches[key] = row
        return row.model_copy()

    async def list_matches(self, item_id: str, include_dismissed: bool = False) -> List[PotentialMatch]:
        rows = [
            row for (source_id, _), row in self._matches.items()
            if source_id == item_id and (include_dismissed or not row.is_dismissed)
        ]
        rows.sort(key=lambda r: r.confidence_score, reverse=True)
        return [row.model_copy() for row in rows]

    async def dismiss_match(self, match_id: str) -> Optional[PotentialMatch]:
        async with self._lock:
            for key, row in self._matches.items():
                if row.id == match_id:
                    updated = row.model_copy(update={
                        "is_dismissed": True,
                        "updated_at": datetime.now(timezone.utc),
                    })
                    self._matches[key] = updated
                    return updated.model_copy()
        return None

    # Claims

    async def insert_claim(self, claim: Claim) -> Claim:
        async with self._lock:
            if claim.id in self._claims:
                raise PersistenceError(f"Claim already exists: {claim.id}")
            self._claims[claim.id] = claim.model_copy(deep=True)
        return claim

    async def get_claim(self, claim_id: str) -> Optional[Claim]:
        claim = self._claims.get(claim_id)
        return claim.model_copy(deep=True) if claim else None

    async def update_claim(self, claim_id: str, mutate: ClaimMutator) -> Claim:
        async with self._lock:
            current = self._claims.get(claim_id)
            if current is None:
                raise NotFoundError("Claim", claim_id)
            patch = mutate(current.model_copy(deep=True))
            patch["updated_at"] = datetime.now(timezone.utc)
            updated = Claim.model_validate({**current.model_dump(), **patch})
            self._claims[claim_id] = updated
        return updated.model_copy(deep=True)

    # Notifications

    async def insert_notification(self, notification: Notification) -> Notification:
        async with self._lock:
            self._notifications.append(notification.model_copy(deep=True))
        return notification

    async def list_notifications(self, user_id: Optional[str] = None) -> List[Notification]:
        return [
            n.model_copy(deep=True) for n in self._notifications
            if user_id is None or n.user_id == user_id
        ]

    # Jobs

    async def insert_job(self, job: EnrichmentJob) -> EnrichmentJob:
        async with self._lock:
            self._jobs[job.id] = job.model_copy(deep=True)
        return job

    async def update_job(self, job: EnrichmentJob) -> EnrichmentJob:
        async with self._lock:
            if job.id not in self._jobs:
                raise PersistenceError(f"Job not found: {job.id}")
            stored = job.model_copy(deep=True, update={"updated_at": datetime.now(timezone.utc)})
            self._jobs[job.id] = stored
        return stored.model_copy(deep=True)

    async def list_jobs(self, statuses: List[JobStatus]) -> List[EnrichmentJob]:
        jobs = [job for job in self._jobs.values() if job.status in statuses]
        jobs.sort(key=lambda j: j.created_at)
        return [job.model_copy(deep=True) for job in jobs]
