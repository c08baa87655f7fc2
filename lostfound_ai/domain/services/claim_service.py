"""Service for submitting and reading ownership claims."""

import logging

from ..exceptions import NotFoundError
from ..models.claim import Claim, ClaimSubmission
from ..models.job import JobKind
from ..models.notification import Notification
from ..ports.store import DataStore
from .enrichment_runner import EnrichmentRunner

logger = logging.getLogger(__name__)


class ClaimService:
    """Writes claims and schedules their background verification."""

    def __init__(self, store: DataStore, runner: EnrichmentRunner):
        self.store = store
        self.runner = runner

    async def submit_claim(self, submission: ClaimSubmission) -> str:
        """Store a claim with placeholder AI fields and start enrichment.

        The claim id is returned as soon as the claim row, the owner
        notification and the job rows exist; verification runs afterwards.

        Raises:
            NotFoundError: If the claimed item does not exist
            PersistenceError: If a store write fails
        """
        item = await self.store.get_item(submission.item_id)
        if item is None:
            raise NotFoundError("Item", submission.item_id)

        claim = await self.store.insert_claim(Claim(**submission.model_dump()))
        logger.info(f"📝 Claim {claim.id} submitted for item {item.id}")

        await self.store.insert_notification(Notification(
            user_id=item.user_id,
            type="claim",
            title="New Claim Submitted",
            message=f'Someone has claimed your item "{item.title}"',
            link=f"/items/{item.id}",
            metadata={"item_id": item.id, "claim_id": claim.id},
        ))

        await self.runner.submit(JobKind.VERIFY_CLAIM, {"claim_id": claim.id})
        if claim.photo_urls:
            await self.runner.submit(JobKind.VERIFY_PHOTOS, {"claim_id": claim.id})

        return claim.id

    async def get_claim(self, claim_id: str) -> Claim:
        claim = await self.store.get_claim(claim_id)
        if claim is None:
            raise NotFoundError("Claim", claim_id)
        return claim
