"""Domain model for user notifications."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

from pydantic import BaseModel, Field


class Notification(BaseModel):
    """A message for a user's notification inbox."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    type: str = Field(..., description="match, claim, status_change or system")
    title: str
    message: str
    link: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    is_read: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
