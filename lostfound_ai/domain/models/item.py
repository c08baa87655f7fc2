"""Domain models for lost/found items and their verification questions."""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


class ItemStatus(str, Enum):
    """Whether an item was lost or found."""

    LOST = "lost"
    FOUND = "found"

    @property
    def opposite(self) -> "ItemStatus":
        """The status of items this one can match against."""
        return ItemStatus.FOUND if self is ItemStatus.LOST else ItemStatus.LOST


class ResolutionStatus(str, Enum):
    """Resolution state of an item."""

    NONE = "none"
    PENDING = "pending"
    CONFIRMED = "confirmed"


class Item(BaseModel):
    """A posted lost or found item."""

    id: str = Field(default_factory=lambda: str(uuid4()), description="Item ID")
    user_id: str = Field(..., description="Owner (poster) of the item")
    status: ItemStatus = Field(..., description="lost or found")
    title: str = Field(..., description="Short title")
    description: str = Field(default="", description="Free-text description")
    category: str = Field(default="Other", description="Item category")
    location: str = Field(default="", description="Free-text location")
    city: Optional[str] = None
    state: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    date: Optional[str] = Field(None, description="Date of loss or find (ISO)")
    image_url: Optional[str] = None
    ai_tags: List[str] = Field(default_factory=list, description="AI-derived tags")
    embedding: Optional[List[float]] = Field(None, description="Text embedding vector")
    is_active: bool = True
    resolution_status: ResolutionStatus = ResolutionStatus.NONE
    resolved_at: Optional[datetime] = None
    resolved_claim_id: Optional[str] = None
    linked_item_id: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("description", "location", mode="before")
    @classmethod
    def _text_default(cls, value):
        return value or ""

    @field_validator("date", mode="before")
    @classmethod
    def _date_to_iso(cls, value):
        if hasattr(value, "isoformat"):
            return value.isoformat()
        return value

    @field_validator("ai_tags", mode="before")
    @classmethod
    def _tags_default(cls, value):
        return value or []

    @field_validator("resolution_status", mode="before")
    @classmethod
    def _resolution_default(cls, value):
        return value or ResolutionStatus.NONE

    @field_validator("embedding", mode="before")
    @classmethod
    def _parse_vector(cls, value):
        # pgvector columns come back from PostgREST as "[0.1,0.2,...]"
        if isinstance(value, str):
            return json.loads(value)
        return value

    def location_line(self) -> str:
        """Location with optional city and state appended."""
        parts = [self.location] if self.location else []
        if self.city:
            parts.append(self.city)
        if self.state:
            parts.append(self.state)
        return ", ".join(parts) if parts else "Not specified"

    def coordinates_line(self) -> str:
        """Coordinates for prompts."""
        if self.latitude is not None and self.longitude is not None:
            return f"{self.latitude}, {self.longitude}"
        return "Not provided"


class Question(BaseModel):
    """Verification question attached to an item by its poster."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    item_id: str
    question_text: str
    correct_answer: Optional[str] = Field(None, description="Owner-supplied answer")


def build_item_text(item: Item) -> str:
    """Consolidate an item's fields into the single string that gets embedded."""
    parts = [
        item.title,
        item.description,
        f"Category: {item.category}",
        f"Location: {item.location}",
    ]
    if item.city:
        parts.append(f"City: {item.city}")
    if item.state:
        parts.append(f"State: {item.state}")
    if item.ai_tags:
        parts.append(f"Tags: {', '.join(item.ai_tags)}")
    return ". ".join(parts)
