"""Attachment schemas."""
from datetime import datetime
from typing import Dict

from pydantic import Field

from app.schemas.common import APIModel


class PresignUploadRequest(APIModel):
    """Request for an upload grant."""

    task_id: int = Field(..., gt=0)
    original_name: str = Field(..., min_length=1)
    content_type: str = Field(..., min_length=1)
    size: int = Field(..., gt=0)


class PresignUploadResponse(APIModel):
    """Upload grant returned to the client."""

    bucket: str
    key: str
    upload_url: str
    headers: Dict[str, str]


class AttachmentRegister(APIModel):
    """Register an uploaded object against a task."""

    task_id: int = Field(..., gt=0)
    key: str = Field(..., min_length=1)
    original_name: str = Field(..., min_length=1)
    content_type: str = Field(..., min_length=1)
    size: int = Field(..., gt=0)


class AttachmentResponse(APIModel):
    """Attachment response schema."""

    id: int
    task_id: int
    key: str
    original_name: str
    content_type: str
    size: int
    created_at: datetime


class PresignDownloadResponse(APIModel):
    """Download grant."""

    url: str
