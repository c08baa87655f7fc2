"""Service producing the AI verdict for an ownership claim."""

import difflib
import json
import logging
import re
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..exceptions import NotFoundError
from ..models.claim import (
    EVIDENCE_KEY,
    LINKED_POST_KEY,
    PHOTO_SUMMARY_PREFIX,
    RESERVED_ANALYSIS_KEYS,
    UNAVAILABLE_ANALYSIS,
    Claim,
    ClaimAIStatus,
    EvidenceAnalysis,
    LinkedPostAnalysis,
    LinkedPostStatus,
    QuestionAnalysis,
    VerificationResult,
)
from ..models.confidence import coerce_confidence
from ..models.item import Item, Question
from ..ports.ai_provider import AIProvider
from ..ports.store import DataStore
from ..prompts import ClaimVerificationPrompts

logger = logging.getLogger(__name__)

LINKED_POST_BOOST = 15
STRONG_SIMILARITY = 0.8
POSSIBLE_SIMILARITY = 0.5

_DONT_KNOW_ANSWERS = {
    "i dont know",
    "i do not know",
    "dont know",
    "do not know",
    "idk",
    "not sure",
    "im not sure",
    "i am not sure",
    "no idea",
    "unknown",
    "i dont remember",
    "dont remember",
}


def is_dont_know(answer: Optional[str]) -> bool:
    """True for answers that decline to answer ("I don't know", "idk", ...)."""
    if not answer:
        return False
    text = answer.lower().replace("’", "'").replace("'", "")
    text = " ".join(re.sub(r"[^a-z ]", " ", text).split())
    return text in _DONT_KNOW_ANSWERS


def text_similarity(a: str, b: str) -> float:
    """Character-level similarity of two descriptions (0-1)."""
    return difflib.SequenceMatcher(None, a.lower().strip(), b.lower().strip()).ratio()


def derive_linked_post_analysis(item: Item, linked_post: Item) -> LinkedPostAnalysis:
    """Judge a linked lost post by text similarity alone."""
    found_text = item.description or item.title
    lost_text = linked_post.description or linked_post.title
    similarity = text_similarity(found_text, lost_text)

    if similarity >= STRONG_SIMILARITY:
        status = LinkedPostStatus.STRONG_MATCH
    elif similarity >= POSSIBLE_SIMILARITY:
        status = LinkedPostStatus.POSSIBLE_MATCH
    else:
        status = LinkedPostStatus.NO_MATCH

    return LinkedPostAnalysis(
        status=status,
        similarity_score=round(similarity * 100),
        explanation=f"Descriptions are {round(similarity * 100)}% textually similar",
    )


class ClaimVerificationService:
    """Builds the claim dossier, asks the model for a verdict and stores it.

    The model output is post-processed so the scoring heuristics hold even
    when the model ignores them:

    - "I don't know" answers to more than half of the questions scale the
      confidence by the share of questions actually answered.
    - A linked post judged a Strong Match adds a fixed boost.
    - Evidence never carries photo fields when there are no photos or the
      photos are internet-sourced.
    """

    def __init__(self, store: DataStore, ai_provider: Optional[AIProvider] = None, temperature: float = 0.2):
        self.store = store
        self.ai = ai_provider
        self.temperature = temperature
        logger.info("🔧 ClaimVerificationService initialized")

    @property
    def is_available(self) -> bool:
        return self.ai is not None

    async def verify_claim(self, claim_id: str) -> Optional[VerificationResult]:
        """Verify a stored claim and write the verdict back onto it.

        Returns:
            The verification result, or None when no provider is configured
            (the claim is then marked unavailable)

        Raises:
            NotFoundError: If the claim or its item does not exist
            ProviderTransientError: If the model and its fallback both failed
            PersistenceError: If the write-back fails
        """
        claim = await self.store.get_claim(claim_id)
        if claim is None:
            raise NotFoundError("Claim", claim_id)

        if not self.is_available:
            logger.warning(f"⚠️ No chat provider configured - claim {claim_id} marked unavailable")
            await self.store.update_claim(claim_id, self._unavailable_patch)
            return None

        item = await self.store.get_item(claim.item_id)
        if item is None:
            raise NotFoundError("Item", claim.item_id)

        linked_post = None
        if claim.linked_lost_item_id:
            linked_post = await self.store.get_item(claim.linked_lost_item_id)
            if linked_post is None:
                logger.warning(f"⚠️ Linked post {claim.linked_lost_item_id} not found for claim {claim_id}")

        questions = await self.store.get_questions(item.id)
        if not questions:
            questions = [
                Question(id=question_id, item_id=item.id, question_text=f"Question {question_id}")
                for question_id in claim.answers
            ]

        logger.info(f"🔍 Verifying claim {claim_id} on item {item.id} ({len(questions)} questions)")
        result = await self.verify(claim, item, linked_post, questions)
        await self.store.update_claim(claim_id, lambda current: self._result_patch(current, result))
        logger.info(f"✅ Claim {claim_id} verdict: {result.confidence_percentage}%")
        return result

    async def verify(
        self,
        claim: Claim,
        item: Item,
        linked_post: Optional[Item],
        questions: List[Question],
    ) -> VerificationResult:
        """Ask the model for a verdict and apply the scoring rules. Does not write."""
        prompt = ClaimVerificationPrompts.build(
            item,
            linked_post,
            len(claim.photo_urls),
            questions,
            claim.answers,
        )
        raw = await self.ai.complete_json(
            ClaimVerificationPrompts.SYSTEM,
            prompt,
            temperature=self.temperature,
        )
        result = self.parse_result(raw)
        if result.is_fallback:
            return result
        return self.apply_rules(result, claim, item, linked_post, questions)

    def parse_result(self, raw: str) -> VerificationResult:
        """Validate model output; unusable output yields the fallback result."""
        try:
            data: Any = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning(f"⚠️ Failed to parse verification response: {str(raw)[:200]}")
            return VerificationResult(is_fallback=True)

        if not isinstance(data, dict):
            logger.warning(f"⚠️ Verification response is not an object: {str(raw)[:200]}")
            return VerificationResult(is_fallback=True)

        question_analysis: Dict[str, QuestionAnalysis] = {}
        raw_questions = data.get("question_analysis")
        if isinstance(raw_questions, dict):
            for question_id, entry in raw_questions.items():
                if question_id in RESERVED_ANALYSIS_KEYS:
                    continue
                try:
                    question_analysis[str(question_id)] = QuestionAnalysis.model_validate(entry)
                except ValidationError:
                    logger.warning(f"⚠️ Dropping invalid analysis for question {question_id}")

        return VerificationResult(
            confidence_percentage=coerce_confidence(data.get("confidence_percentage"), default=50),
            analysis=str(data.get("analysis") or "No analysis provided"),
            question_analysis=question_analysis,
            linked_post_analysis=self._optional(LinkedPostAnalysis, data.get(LINKED_POST_KEY)),
            evidence_analysis=self._optional(EvidenceAnalysis, data.get(EVIDENCE_KEY)),
        )

    @staticmethod
    def _optional(model, value):
        if not isinstance(value, dict):
            return None
        try:
            return model.model_validate(value)
        except ValidationError:
            logger.warning(f"⚠️ Dropping invalid {model.__name__}: {value!r}")
            return None

    def apply_rules(
        self,
        result: VerificationResult,
        claim: Claim,
        item: Item,
        linked_post: Optional[Item],
        questions: List[Question],
    ) -> VerificationResult:
        confidence = result.confidence_percentage

        question_ids = [question.id for question in questions]
        if question_ids:
            unknown = sum(1 for qid in question_ids if is_dont_know(claim.answers.get(qid)))
            if unknown * 2 > len(question_ids):
                answered_share = (len(question_ids) - unknown) / len(question_ids)
                confidence = round(confidence * answered_share)
                logger.info(f"📉 {unknown}/{len(question_ids)} answers were 'I don't know'")

        linked_analysis = None
        if linked_post is not None:
            linked_analysis = result.linked_post_analysis or derive_linked_post_analysis(item, linked_post)
            if linked_analysis.status == LinkedPostStatus.STRONG_MATCH:
                confidence = min(100, confidence + LINKED_POST_BOOST)

        evidence = result.evidence_analysis
        if evidence is not None and (not claim.photo_urls or evidence.photos_internet_sourced):
            evidence = evidence.without_photo_fields()

        return result.model_copy(update={
            "confidence_percentage": max(0, min(100, confidence)),
            "linked_post_analysis": linked_analysis,
            "evidence_analysis": evidence,
        })

    @staticmethod
    def _photo_summary_lines(text: str) -> List[str]:
        return [line for line in text.splitlines() if line.startswith(PHOTO_SUMMARY_PREFIX)]

    def _result_patch(self, current: Claim, result: VerificationResult) -> Dict[str, Any]:
        # Keys owned by the photo checker survive; this stage's keys are replaced
        analysis_blob = {
            key: value for key, value in current.ai_question_analysis.items()
            if key not in (LINKED_POST_KEY, EVIDENCE_KEY)
        }
        analysis_blob.update(result.analysis_blob())

        text = result.analysis
        photo_lines = self._photo_summary_lines(current.ai_analysis)
        if photo_lines:
            text = "\n\n".join([text] + photo_lines)

        return {
            "ai_verdict": str(result.confidence_percentage),
            "ai_analysis": text,
            "ai_question_analysis": analysis_blob,
            "ai_status": ClaimAIStatus.COMPLETE,
        }

    @staticmethod
    def _unavailable_patch(current: Claim) -> Dict[str, Any]:
        return {
            "ai_verdict": "0",
            "ai_analysis": UNAVAILABLE_ANALYSIS,
            "ai_status": ClaimAIStatus.UNAVAILABLE,
        }
