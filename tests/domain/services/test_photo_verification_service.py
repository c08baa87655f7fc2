"""Tests for photo authenticity checks."""

import pytest

from lostfound_ai.domain.exceptions import ProviderTransientError
from lostfound_ai.domain.models.claim import Claim, PhotoAnalysis
from lostfound_ai.domain.services.photo_verification_service import (
    AUTHENTIC,
    NOT_ORIGINAL,
    PhotoVerificationService,
    aggregate_photo_analyses,
)

from tests.fakes import FakeAIProvider

PHOTOS = [
    "https://cdn.example/p1.jpg",
    "https://cdn.example/p2.jpg",
    "https://cdn.example/p3.jpg",
]


def original(confidence=80):
    return {"is_likely_original": True, "confidence": confidence, "analysis": "Casual phone shot", "red_flags": []}


def stock_photo():
    return {
        "is_likely_original": False,
        "confidence": 90,
        "analysis": "Looks like a product listing",
        "red_flags": ["stock photo watermark"],
    }


@pytest.mark.asyncio
async def test_one_flagged_photo_of_three(store):
    claim = await store.insert_claim(Claim(item_id="item", claimant_id="c", photo_urls=PHOTOS))

    def responder(system, user, image_url):
        return stock_photo() if image_url.endswith("p2.jpg") else original()

    ai = FakeAIProvider(responder)
    result = await PhotoVerificationService(store, ai).verify_photos(claim.id)

    assert [call["image_url"] for call in ai.calls] == PHOTOS
    assert result.overall_assessment == AUTHENTIC
    assert result.likely_original_count == 2
    assert result.average_confidence == 83
    assert result.red_flags_summary == ["stock photo watermark"]

    stored = await store.get_claim(claim.id)
    assert stored.ai_question_analysis["photo_verification"]["total_photos"] == 3
    assert stored.ai_analysis.endswith(
        "Photo Verification: Photos appear authentic (2/3 photos appear original)"
    )


def test_majority_flagged_is_not_original():
    analyses = [
        PhotoAnalysis(url="a", is_likely_original=False, confidence=90, red_flags=["watermark"]),
        PhotoAnalysis(url="b", is_likely_original=False, confidence=70, red_flags=["watermark", "screenshot"]),
        PhotoAnalysis(url="c", is_likely_original=True, confidence=50),
    ]

    result = aggregate_photo_analyses(analyses)

    assert result.overall_assessment == NOT_ORIGINAL
    assert result.red_flags_summary == ["watermark", "screenshot"]


def test_even_split_counts_as_authentic():
    analyses = [
        PhotoAnalysis(url="a", is_likely_original=False),
        PhotoAnalysis(url="b", is_likely_original=True),
    ]
    assert aggregate_photo_analyses(analyses).overall_assessment == AUTHENTIC


@pytest.mark.asyncio
async def test_unparseable_photo_counts_as_original(store):
    claim = await store.insert_claim(Claim(item_id="item", claimant_id="c", photo_urls=PHOTOS[:1]))

    result = await PhotoVerificationService(store, FakeAIProvider("I cannot see the image")).verify_photos(claim.id)

    analysis = result.analyses[0]
    assert analysis.is_likely_original is True
    assert analysis.confidence == 0
    assert analysis.analysis == "Could not analyze image"


@pytest.mark.asyncio
async def test_provider_failure_counts_as_original(store):
    claim = await store.insert_claim(Claim(item_id="item", claimant_id="c", photo_urls=PHOTOS[:2]))

    def responder(system, user, image_url):
        if image_url.endswith("p1.jpg"):
            return ProviderTransientError("vision model down")
        return original(60)

    result = await PhotoVerificationService(store, FakeAIProvider(responder)).verify_photos(claim.id)

    assert result.analyses[0].analysis == "Analysis failed"
    assert result.likely_original_count == 2
    assert result.average_confidence == 30


@pytest.mark.asyncio
async def test_no_photos_does_nothing(store):
    claim = await store.insert_claim(Claim(item_id="item", claimant_id="c"))
    ai = FakeAIProvider(original())

    assert await PhotoVerificationService(store, ai).verify_photos(claim.id) is None
    assert ai.calls == []
    assert "photo_verification" not in (await store.get_claim(claim.id)).ai_question_analysis


@pytest.mark.asyncio
async def test_rerun_replaces_summary_line(store):
    claim = await store.insert_claim(Claim(item_id="item", claimant_id="c", photo_urls=PHOTOS[:1]))
    service = PhotoVerificationService(store, FakeAIProvider(original()))

    await service.verify_photos(claim.id)
    await service.verify_photos(claim.id)

    stored = await store.get_claim(claim.id)
    assert stored.ai_analysis.count("Photo Verification:") == 1


@pytest.mark.asyncio
async def test_verdict_keys_survive_photo_check(store):
    claim = await store.insert_claim(Claim(
        item_id="item",
        claimant_id="c",
        photo_urls=PHOTOS[:1],
        ai_question_analysis={"q1": {"status": "Correct"}},
    ))

    await PhotoVerificationService(store, FakeAIProvider(original())).verify_photos(claim.id)

    stored = await store.get_claim(claim.id)
    assert set(stored.ai_question_analysis) == {"q1", "photo_verification"}
