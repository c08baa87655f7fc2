"""Tests for claim models and analysis helpers."""

from lostfound_ai.domain.models.claim import (
    EVIDENCE_KEY,
    LINKED_POST_KEY,
    AnswerStatus,
    EvidenceAnalysis,
    LinkedPostAnalysis,
    LinkedPostStatus,
    PhotoAnalysis,
    QuestionAnalysis,
    VerificationResult,
    split_analysis,
)
from lostfound_ai.domain.models.item import ItemStatus, build_item_text
from lostfound_ai.domain.models.match import ScoredMatch

from tests.fakes import make_item


def test_split_analysis_strips_markers():
    """Markers are removed and the two parts separated."""
    parts = split_analysis("[VERDICT] Likely the owner. [ELABORATION] Answers match the item.")
    assert parts == {"verdict": "Likely the owner.", "elaboration": "Answers match the item."}


def test_split_analysis_without_markers():
    parts = split_analysis("Likely the owner.\nPhoto Verification: Photos appear authentic")
    assert parts["verdict"] == "Likely the owner."
    assert parts["elaboration"] == "Photo Verification: Photos appear authentic"


def test_labels_are_normalized():
    qa = QuestionAnalysis.model_validate({"status": "partially correct", "score": "0.6"})
    assert qa.status == AnswerStatus.PARTIALLY_CORRECT
    assert qa.score == 60

    linked = LinkedPostAnalysis.model_validate({"status": "STRONG_MATCH"})
    assert linked.status == LinkedPostStatus.STRONG_MATCH


def test_photo_analysis_coerces_loose_values():
    photo = PhotoAnalysis.model_validate({
        "url": "https://img/1.jpg",
        "is_likely_original": "false",
        "confidence": "80",
        "red_flags": "watermark",
    })
    assert photo.is_likely_original is False
    assert photo.confidence == 80
    assert photo.red_flags == ["watermark"]


def test_analysis_blob_omits_empty_photo_fields():
    result = VerificationResult(
        confidence_percentage=70,
        analysis="ok",
        question_analysis={"q1": QuestionAnalysis(status=AnswerStatus.CORRECT, score=90)},
        linked_post_analysis=LinkedPostAnalysis(status=LinkedPostStatus.NO_MATCH),
        evidence_analysis=EvidenceAnalysis(strength="Weak", explanation="answers only"),
    )
    blob = result.analysis_blob()

    assert blob["q1"]["status"] == "Correct"
    assert blob[LINKED_POST_KEY]["status"] == "No Match"
    assert blob[EVIDENCE_KEY] == {"strength": "Weak", "explanation": "answers only"}


def test_scored_match_accepts_legacy_field_names():
    match = ScoredMatch.model_validate({"matched_item_id": "abc", "confidence_score": 0.75, "reasoning": None})
    assert match.candidate_id == "abc"
    assert match.confidence == 75
    assert match.reasoning == ""


def test_build_item_text():
    item = make_item(city="Springfield", state="IL", ai_tags=["leather", "black"])
    text = build_item_text(item)

    assert text == (
        "Black wallet. Black leather wallet with a red stitched edge. Category: Electronics. "
        "Location: Central Station. City: Springfield. State: IL. Tags: leather, black"
    )


def test_opposite_status():
    assert ItemStatus.LOST.opposite == ItemStatus.FOUND
    assert ItemStatus.FOUND.opposite == ItemStatus.LOST
