"""Domain models for ownership claims and their AI verification results."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from .confidence import coerce_confidence

# Reserved keys of Claim.ai_question_analysis that are not question ids
LINKED_POST_KEY = "linked_post_analysis"
EVIDENCE_KEY = "evidence_analysis"
PHOTO_VERIFICATION_KEY = "photo_verification"
RESERVED_ANALYSIS_KEYS = frozenset({LINKED_POST_KEY, EVIDENCE_KEY, PHOTO_VERIFICATION_KEY})

PENDING_VERDICT = "0"
PENDING_ANALYSIS = "AI verification pending."
UNAVAILABLE_ANALYSIS = "AI verification unavailable (no API key)."

VERDICT_MARKER = "[VERDICT]"
ELABORATION_MARKER = "[ELABORATION]"
PHOTO_SUMMARY_PREFIX = "Photo Verification:"


class ClaimStatus(str, Enum):
    """Owner's decision on a claim."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ClaimAIStatus(str, Enum):
    """Progress of the background verdict for a claim."""

    PENDING = "pending"
    COMPLETE = "complete"
    UNAVAILABLE = "unavailable"


class AnswerStatus(str, Enum):
    """Grade of a single verification answer."""

    CORRECT = "Correct"
    PARTIALLY_CORRECT = "Partially Correct"
    INCORRECT = "Incorrect"


class LinkedPostStatus(str, Enum):
    """How well a linked lost post matches the found item."""

    STRONG_MATCH = "Strong Match"
    POSSIBLE_MATCH = "Possible Match"
    NO_MATCH = "No Match"


def _normalize_label(value: Any, enum_cls) -> Any:
    """Case/space-insensitive lookup of an enum label from model output."""
    if isinstance(value, enum_cls) or not isinstance(value, str):
        return value
    wanted = " ".join(value.replace("_", " ").split()).lower()
    for member in enum_cls:
        if member.value.lower() == wanted:
            return member
    return value


class Claim(BaseModel):
    """An ownership claim against a found item."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    item_id: str
    claimant_id: str
    answers: Dict[str, str] = Field(default_factory=dict, description="Answers keyed by question id")
    photo_urls: List[str] = Field(default_factory=list)
    linked_lost_item_id: Optional[str] = Field(None, description="Claimant's own lost post")
    status: ClaimStatus = ClaimStatus.PENDING
    ai_verdict: str = Field(default=PENDING_VERDICT, description="Confidence 0-100 as a string")
    ai_analysis: str = PENDING_ANALYSIS
    ai_question_analysis: Dict[str, Any] = Field(default_factory=dict)
    ai_status: ClaimAIStatus = ClaimAIStatus.PENDING
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("answers", "ai_question_analysis", mode="before")
    @classmethod
    def _dict_default(cls, value):
        return value or {}

    @field_validator("photo_urls", mode="before")
    @classmethod
    def _list_default(cls, value):
        return value or []

    @field_validator("ai_analysis", mode="before")
    @classmethod
    def _analysis_default(cls, value):
        return value or ""


class QuestionAnalysis(BaseModel):
    """Model grading of one answer."""

    status: AnswerStatus
    score: int = 0
    explanation: str = ""

    @field_validator("status", mode="before")
    @classmethod
    def _label(cls, value):
        return _normalize_label(value, AnswerStatus)

    @field_validator("score", mode="before")
    @classmethod
    def _score(cls, value):
        return coerce_confidence(value, default=0)

    @field_validator("explanation", mode="before")
    @classmethod
    def _text(cls, value):
        return "" if value is None else str(value)


class LinkedPostAnalysis(BaseModel):
    """Assessment of the claimant's linked lost post."""

    status: LinkedPostStatus
    similarity_score: Optional[int] = None
    explanation: str = ""

    @field_validator("status", mode="before")
    @classmethod
    def _label(cls, value):
        return _normalize_label(value, LinkedPostStatus)

    @field_validator("similarity_score", mode="before")
    @classmethod
    def _score(cls, value):
        return coerce_confidence(value)

    @field_validator("explanation", mode="before")
    @classmethod
    def _text(cls, value):
        return "" if value is None else str(value)


class EvidenceAnalysis(BaseModel):
    """Strength of the supporting evidence.

    ``photos_considered`` and ``photos_internet_sourced`` are the photo-specific
    fields; they stay None for claims without usable photos.
    """

    strength: str = "None"
    explanation: str = ""
    photos_considered: Optional[int] = None
    photos_internet_sourced: Optional[bool] = None

    @field_validator("strength", "explanation", mode="before")
    @classmethod
    def _text(cls, value):
        return "" if value is None else str(value)

    def without_photo_fields(self) -> "EvidenceAnalysis":
        return self.model_copy(update={"photos_considered": None, "photos_internet_sourced": None})


class VerificationResult(BaseModel):
    """Outcome of the claim verification stage."""

    confidence_percentage: int = 50
    analysis: str = "Unable to complete analysis"
    question_analysis: Dict[str, QuestionAnalysis] = Field(default_factory=dict)
    linked_post_analysis: Optional[LinkedPostAnalysis] = None
    evidence_analysis: Optional[EvidenceAnalysis] = None
    is_fallback: bool = Field(default=False, description="True when the model output was unusable")

    def analysis_blob(self) -> Dict[str, Any]:
        """Keys this stage owns inside Claim.ai_question_analysis."""
        blob: Dict[str, Any] = {
            question_id: qa.model_dump(mode="json")
            for question_id, qa in self.question_analysis.items()
        }
        if self.linked_post_analysis is not None:
            blob[LINKED_POST_KEY] = self.linked_post_analysis.model_dump(mode="json")
        if self.evidence_analysis is not None:
            blob[EVIDENCE_KEY] = self.evidence_analysis.model_dump(mode="json", exclude_none=True)
        return blob


class PhotoAnalysis(BaseModel):
    """Authenticity verdict for one uploaded photo."""

    url: str
    is_likely_original: bool = True
    confidence: int = 0
    analysis: str = "No analysis available"
    red_flags: List[str] = Field(default_factory=list)

    @field_validator("is_likely_original", mode="before")
    @classmethod
    def _flag(cls, value):
        if value is None:
            return True
        if isinstance(value, str):
            return value.strip().lower() not in ("false", "no", "0")
        return bool(value)

    @field_validator("confidence", mode="before")
    @classmethod
    def _confidence(cls, value):
        return coerce_confidence(value, default=0)

    @field_validator("analysis", mode="before")
    @classmethod
    def _text(cls, value):
        return str(value) if value else "No analysis available"

    @field_validator("red_flags", mode="before")
    @classmethod
    def _flags(cls, value):
        if not value:
            return []
        if isinstance(value, str):
            return [value]
        return [str(flag) for flag in value if flag]


class PhotoVerificationResult(BaseModel):
    """Claim-level aggregate of per-photo verdicts."""

    total_photos: int
    likely_original_count: int
    average_confidence: int
    overall_assessment: str
    analyses: List[PhotoAnalysis] = Field(default_factory=list)
    red_flags_summary: List[str] = Field(default_factory=list)

    def summary_line(self) -> str:
        return (
            f"{PHOTO_SUMMARY_PREFIX} {self.overall_assessment} "
            f"({self.likely_original_count}/{self.total_photos} photos appear original)"
        )


class ClaimSubmission(BaseModel):
    """Input for submitting a new claim."""

    item_id: str
    claimant_id: str
    answers: Dict[str, str] = Field(default_factory=dict)
    photo_urls: List[str] = Field(default_factory=list)
    linked_lost_item_id: Optional[str] = None


def split_analysis(text: str) -> Dict[str, str]:
    """Split a stored analysis into its verdict line and elaboration.

    The markers are stripped; text without markers is treated as a verdict
    with everything after the first line as elaboration.
    """
    text = (text or "").strip()
    if VERDICT_MARKER in text or ELABORATION_MARKER in text:
        head, _, tail = text.partition(ELABORATION_MARKER)
        verdict = head.replace(VERDICT_MARKER, "").strip()
        return {"verdict": verdict, "elaboration": tail.strip()}

    first, _, rest = text.partition("\n")
    return {"verdict": first.strip(), "elaboration": rest.strip()}
