"""Tests for claim submission and its background enrichment."""

import pytest
import pytest_asyncio

from lostfound_ai.domain.exceptions import NotFoundError
from lostfound_ai.domain.models.claim import (
    PENDING_ANALYSIS,
    ClaimAIStatus,
    ClaimSubmission,
)
from lostfound_ai.domain.models.item import ItemStatus, Question
from lostfound_ai.domain.models.job import JobKind, JobStatus
from lostfound_ai.domain.services.claim_service import ClaimService
from lostfound_ai.domain.services.claim_verification_service import ClaimVerificationService
from lostfound_ai.domain.services.enrichment_runner import EnrichmentRunner
from lostfound_ai.domain.services.photo_verification_service import PhotoVerificationService

from tests.fakes import FakeAIProvider, make_item

PHOTO = "https://cdn.example/p1.jpg"


def responder(system, user, image_url):
    if image_url:
        return {"is_likely_original": True, "confidence": 80, "analysis": "Phone photo", "red_flags": []}
    return {
        "confidence_percentage": 70,
        "analysis": "[VERDICT] Plausible owner [ELABORATION] Colour matches",
        "question_analysis": {"q1": {"status": "Correct", "score": 90, "explanation": "Red"}},
    }


def build(store, ai=None):
    runner = EnrichmentRunner(store)
    verifier = ClaimVerificationService(store, ai)
    photos = PhotoVerificationService(store, ai)
    runner.register_handler(JobKind.VERIFY_CLAIM, lambda payload: verifier.verify_claim(payload["claim_id"]))
    runner.register_handler(JobKind.VERIFY_PHOTOS, lambda payload: photos.verify_photos(payload["claim_id"]))
    return ClaimService(store, runner), runner


@pytest_asyncio.fixture
async def found_item(store):
    item = make_item(id="item-1", user_id="finder", status=ItemStatus.FOUND, title="Black wallet")
    await store.insert_item(item)
    await store.insert_questions([Question(id="q1", item_id=item.id, question_text="Stitching colour?")])
    return item


@pytest.mark.asyncio
async def test_claim_is_stored_with_placeholders(store, found_item):
    service, runner = build(store, FakeAIProvider(responder))

    claim_id = await service.submit_claim(ClaimSubmission(
        item_id=found_item.id,
        claimant_id="claimant",
        answers={"q1": "red"},
    ))

    claim = await service.get_claim(claim_id)
    assert claim.ai_verdict == "0"
    assert claim.ai_analysis == PENDING_ANALYSIS
    assert claim.ai_status == ClaimAIStatus.PENDING
    await runner.drain()


@pytest.mark.asyncio
async def test_owner_is_notified(store, found_item):
    service, runner = build(store, FakeAIProvider(responder))

    claim_id = await service.submit_claim(ClaimSubmission(item_id=found_item.id, claimant_id="claimant"))
    await runner.drain()

    notifications = await store.list_notifications("finder")
    assert len(notifications) == 1
    assert notifications[0].type == "claim"
    assert notifications[0].title == "New Claim Submitted"
    assert notifications[0].metadata == {"item_id": "item-1", "claim_id": claim_id}


@pytest.mark.asyncio
async def test_no_photos_schedules_only_verification(store, found_item):
    ai = FakeAIProvider(responder)
    service, runner = build(store, ai)

    await service.submit_claim(ClaimSubmission(item_id=found_item.id, claimant_id="claimant", answers={"q1": "red"}))
    await runner.drain()

    jobs = await store.list_jobs([JobStatus.PENDING, JobStatus.RUNNING, JobStatus.DONE, JobStatus.FAILED])
    assert [job.kind for job in jobs] == [JobKind.VERIFY_CLAIM]
    assert all(call["image_url"] is None for call in ai.calls)


@pytest.mark.asyncio
async def test_both_writers_are_kept(store, found_item):
    """Verdict and photo summary land on the claim whichever finishes first."""
    service, runner = build(store, FakeAIProvider(responder))

    claim_id = await service.submit_claim(ClaimSubmission(
        item_id=found_item.id,
        claimant_id="claimant",
        answers={"q1": "red"},
        photo_urls=[PHOTO],
    ))
    await runner.drain()

    claim = await service.get_claim(claim_id)
    assert claim.ai_verdict == "70"
    assert claim.ai_status == ClaimAIStatus.COMPLETE
    assert {"q1", "photo_verification"} <= set(claim.ai_question_analysis)
    assert "Photo Verification: Photos appear authentic" in claim.ai_analysis
    assert claim.ai_analysis.startswith("[VERDICT] Plausible owner")


@pytest.mark.asyncio
async def test_without_provider_claim_is_unavailable(store, found_item):
    service, runner = build(store, None)

    claim_id = await service.submit_claim(ClaimSubmission(
        item_id=found_item.id,
        claimant_id="claimant",
        photo_urls=[PHOTO],
    ))
    await runner.drain()

    claim = await service.get_claim(claim_id)
    assert claim.ai_status == ClaimAIStatus.UNAVAILABLE
    assert "photo_verification" not in claim.ai_question_analysis


@pytest.mark.asyncio
async def test_missing_item(store):
    service, _ = build(store)

    with pytest.raises(NotFoundError):
        await service.submit_claim(ClaimSubmission(item_id="missing", claimant_id="claimant"))


@pytest.mark.asyncio
async def test_missing_claim(store):
    service, _ = build(store)

    with pytest.raises(NotFoundError):
        await service.get_claim("missing")
