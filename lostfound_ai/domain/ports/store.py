"""Ports for the relational store the pipeline reads and writes.

All write methods raise PersistenceError on failure.
"""

from typing import Any, Callable, Dict, List, Optional, Protocol

from ..models.claim import Claim
from ..models.item import Item, ItemStatus, Question
from ..models.job import EnrichmentJob, JobStatus
from ..models.match import Candidate, PotentialMatch
from ..models.notification import Notification

# Receives the freshly read claim, returns the columns to write
ClaimMutator = Callable[[Claim], Dict[str, Any]]


class ItemStore(Protocol):
    """Items and their questions."""

    async def get_item(self, item_id: str) -> Optional[Item]:
        ...

    async def insert_item(self, item: Item) -> Item:
        ...

    async def update_item_embedding(self, item_id: str, embedding: List[float]) -> None:
        ...

    async def match_items(
        self,
        query_embedding: List[float],
        match_threshold: float,
        match_count: int,
        opposite_status: ItemStatus,
        exclude_user_id: str,
    ) -> List[Candidate]:
        """Vector similarity search over active items of one status."""
        ...

    async def recent_items(
        self,
        status: ItemStatus,
        exclude_user_id: str,
        limit: int,
    ) -> List[Item]:
        """Most recently created active items of a status."""
        ...

    async def items_without_embedding(self, limit: int) -> List[Item]:
        ...

    async def get_questions(self, item_id: str) -> List[Question]:
        ...

    async def insert_questions(self, questions: List[Question]) -> List[Question]:
        ...


class MatchStore(Protocol):
    """Directional match edges."""

    async def upsert_match(
        self,
        item_id: str,
        matched_item_id: str,
        confidence_score: int,
        reasoning: Optional[str],
    ) -> PotentialMatch:
        """Insert or overwrite the row keyed on (item_id, matched_item_id)."""
        ...

    async def list_matches(self, item_id: str, include_dismissed: bool = False) -> List[PotentialMatch]:
        ...

    async def dismiss_match(self, match_id: str) -> Optional[PotentialMatch]:
        ...


class ClaimStore(Protocol):
    """Claims and their AI analysis columns."""

    async def insert_claim(self, claim: Claim) -> Claim:
        ...

    async def get_claim(self, claim_id: str) -> Optional[Claim]:
        ...

    async def update_claim(self, claim_id: str, mutate: ClaimMutator) -> Claim:
        """Atomically read the claim, apply ``mutate`` and write the result.

        Concurrent writers touching disjoint keys must not lose each other's
        updates; implementations either serialize or retry on conflict.
        """
        ...


class NotificationSink(Protocol):
    """Accepts notifications for users."""

    async def insert_notification(self, notification: Notification) -> Notification:
        ...


class JobStore(Protocol):
    """Outbox of enrichment jobs."""

    async def insert_job(self, job: EnrichmentJob) -> EnrichmentJob:
        ...

    async def update_job(self, job: EnrichmentJob) -> EnrichmentJob:
        ...

    async def list_jobs(self, statuses: List[JobStatus]) -> List[EnrichmentJob]:
        ...


class DataStore(ItemStore, MatchStore, ClaimStore, NotificationSink, JobStore, Protocol):
    """Everything the pipeline needs from persistence."""

    async def initialize(self) -> None:
        ...

    async def shutdown(self) -> None:
        ...

    @property
    def backend_name(self) -> str:
        ...
