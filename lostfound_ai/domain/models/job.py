"""Domain model for background enrichment jobs (outbox rows)."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional
from uuid import uuid4

from pydantic import BaseModel, Field


class JobKind(str, Enum):
    """Kinds of out-of-band enrichment."""

    MATCH_ITEM = "match_item"
    VERIFY_CLAIM = "verify_claim"
    VERIFY_PHOTOS = "verify_photos"


class JobStatus(str, Enum):
    """Lifecycle of an enrichment job."""

    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


class EnrichmentJob(BaseModel):
    """A persisted intent to run one enrichment step."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    kind: JobKind
    payload: Dict[str, Any] = Field(default_factory=dict)
    status: JobStatus = JobStatus.PENDING
    attempts: int = 0
    last_error: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
