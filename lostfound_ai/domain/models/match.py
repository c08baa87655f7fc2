"""Domain models for candidate retrieval and match edges."""

from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from pydantic import AliasChoices, BaseModel, Field, field_validator

from .confidence import coerce_confidence, truncate_confidence
from .item import Item


class Candidate(BaseModel):
    """An opposite-status item being considered as a match."""

    item: Item
    similarity: Optional[float] = Field(
        None, description="Cosine similarity (0-1) from the vector search, if any"
    )


class CandidateSet(BaseModel):
    """Candidates together with the strategy that produced them."""

    candidates: List[Candidate] = Field(default_factory=list)
    search_method: str = Field(default="legacy", description="vector or legacy")

    def __len__(self) -> int:
        return len(self.candidates)


class ScoredMatch(BaseModel):
    """One entry of the re-ranker's ``matches`` array.

    Model output is untrusted; the aliases accept both the documented field
    names and the ones the model was historically prompted with. Confidence is
    truncated rather than rounded so a 39.6 never clears a 40 floor.
    """

    candidate_id: str = Field(
        ..., validation_alias=AliasChoices("candidate_id", "matched_item_id", "id")
    )
    confidence: int = Field(
        ..., validation_alias=AliasChoices("confidence", "confidence_score", "score")
    )
    reasoning: str = Field(default="", validation_alias=AliasChoices("reasoning", "reason"))

    @field_validator("candidate_id", mode="before")
    @classmethod
    def _id_to_str(cls, value):
        if value is None:
            raise ValueError("candidate_id is required")
        return str(value)

    @field_validator("confidence", mode="before")
    @classmethod
    def _coerce(cls, value):
        coerced = truncate_confidence(value)
        if coerced is None:
            raise ValueError(f"confidence is not numeric: {value!r}")
        return coerced

    @field_validator("reasoning", mode="before")
    @classmethod
    def _reasoning_text(cls, value):
        return "" if value is None else str(value)


class PotentialMatch(BaseModel):
    """One directional match edge (item_id -> matched_item_id)."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    item_id: str
    matched_item_id: str
    confidence_score: int = Field(..., ge=0, le=100)
    reasoning: Optional[str] = None
    is_dismissed: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("confidence_score", mode="before")
    @classmethod
    def _coerce(cls, value):
        return coerce_confidence(value, default=0)


class MatchingReport(BaseModel):
    """Outcome of one matching run for an item."""

    item_id: str
    search_method: Optional[str] = None
    candidates_considered: int = 0
    matches: List[ScoredMatch] = Field(default_factory=list)
    notifications_sent: int = 0
    message: str = "Matching completed"
