"""Domain event schemas."""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class EventName(str, Enum):
    """Events published to the notification bus."""

    TASK_CREATED = "TaskCreated"
    TASK_UPDATED = "TaskUpdated"
    TASK_DELETED = "TaskDeleted"
    ATTACHMENT_ADDED = "AttachmentAdded"
    ATTACHMENT_DELETED = "AttachmentDeleted"


class EventEnvelope(BaseModel):
    """Message body sent to the bus."""

    event: EventName
    cid: Optional[str] = None
    payload: Dict[str, Any]
    ts: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class PublishOutcome(BaseModel):
    """Result of a publish attempt."""

    published: bool
    cid: Optional[str] = None
    error: Optional[str] = None
