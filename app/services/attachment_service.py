"""Attachment lifecycle: presign, register, list, download and delete.

Object storage, the metadata database and the event bus are not covered by
one transaction; operations rely on ordering only:

* presign writes no row;
* delete removes stored objects first and metadata rows second, and a failed
  storage delete aborts with the rows untouched;
* events are fired after the metadata commit and never fail the call.

Objects uploaded with a grant but never registered are left in storage.
"""
from __future__ import annotations

import logging
import re
import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.core.exceptions import NotFoundError, PolicyViolationError, ValidationError
from app.crud.attachment import attachment as attachment_crud
from app.crud.task import task as task_crud
from app.models.attachment import Attachment
from app.models.task import Task
from app.schemas.attachment import (
    AttachmentRegister,
    PresignDownloadResponse,
    PresignUploadRequest,
    PresignUploadResponse,
)
from app.schemas.event import EventName
from app.services.event_service import EventNotifier
from app.services.storage_service import StorageService

logger = logging.getLogger(__name__)

_UNSAFE_NAME_CHARS_RE = re.compile(r"[^A-Za-z0-9_.\-]+")
MAX_SAFE_NAME_LENGTH = 80


def sanitize_name(original_name: str) -> str:
    """Replace runs of unsafe characters with '_' and cap the length."""
    return _UNSAFE_NAME_CHARS_RE.sub("_", original_name)[:MAX_SAFE_NAME_LENGTH]


def build_attachment_key(
    project_id: int,
    task_id: int,
    original_name: str,
    *,
    timestamp_ms: Optional[int] = None,
    suffix: Optional[str] = None,
) -> str:
    """Storage key namespaced by project and task so a prefix covers a whole task."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    if suffix is None:
        suffix = secrets.token_hex(4)
    return f"projects/{project_id}/tasks/{task_id}/{timestamp_ms}_{suffix}_{sanitize_name(original_name)}"


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class UploadPolicy:
    """Size cap and MIME allow-list applied before issuing upload grants."""

    max_bytes: int
    allowed_mime_types: List[str] = field(default_factory=list)

    @classmethod
    def from_settings(cls, settings: Settings) -> "UploadPolicy":
        return cls(
            max_bytes=settings.S3_UPLOAD_MAX_BYTES,
            allowed_mime_types=settings.allowed_mime_types,
        )

    def is_mime_allowed(self, content_type: str) -> bool:
        # Empty allow-list admits everything
        return not self.allowed_mime_types or content_type in self.allowed_mime_types

    def check(self, content_type: str, size: int) -> None:
        if size <= 0 or size > self.max_bytes:
            raise PolicyViolationError(
                f"File size must be between 1 and {self.max_bytes} bytes (got {size})"
            )
        if not self.is_mime_allowed(content_type):
            raise PolicyViolationError(f"Content-Type not allowed ({content_type})")


class AttachmentService:
    """Request-scoped orchestrator; holds no state of its own."""

    def __init__(
        self,
        db: AsyncSession,
        storage: StorageService,
        notifier: EventNotifier,
        policy: UploadPolicy,
        cid: Optional[str] = None,
    ):
        self.db = db
        self.storage = storage
        self.notifier = notifier
        self.policy = policy
        self.cid = cid

    async def _get_task(self, task_id: int) -> Task:
        task_obj = await task_crud.get(self.db, id=task_id)
        if not task_obj:
            raise NotFoundError("Task not found")
        return task_obj

    def _notify(self, event: EventName, payload: dict) -> None:
        self.notifier.fire(event, payload, self.cid)

    async def presign_upload(self, request: PresignUploadRequest) -> PresignUploadResponse:
        """Issue an upload grant. No metadata row is created here."""
        task_obj = await self._get_task(request.task_id)
        self.policy.check(request.content_type, request.size)

        key = build_attachment_key(task_obj.project_id, task_obj.id, request.original_name)
        grant = self.storage.presign_upload(key, request.content_type, request.size)

        return PresignUploadResponse(
            bucket=self.storage.bucket_name,
            key=key,
            upload_url=grant.url,
            headers=grant.headers,
        )

    async def register(self, data: AttachmentRegister) -> Attachment:
        """Record an uploaded object. Size and type are taken as reported."""
        await self._get_task(data.task_id)
        try:
            attachment_obj = await attachment_crud.register(self.db, obj_in=data)
        except IntegrityError:
            await self.db.rollback()
            # Task removed between the lookup and the insert
            if not await task_crud.get(self.db, id=data.task_id):
                raise NotFoundError("Task not found")
            raise

        self._notify(
            EventName.ATTACHMENT_ADDED,
            {
                "id": attachment_obj.id,
                "taskId": attachment_obj.task_id,
                "key": attachment_obj.key,
                "originalName": attachment_obj.original_name,
                "size": attachment_obj.size,
                "createdAt": attachment_obj.created_at.isoformat(),
            },
        )
        return attachment_obj

    async def list_for_task(self, task_id: int) -> List[Attachment]:
        await self._get_task(task_id)
        return await attachment_crud.list_by_task(self.db, task_id=task_id)

    def presign_download(self, key: Optional[str]) -> PresignDownloadResponse:
        if not key:
            raise ValidationError("key is required")
        return PresignDownloadResponse(url=self.storage.presign_download(key))

    async def delete_attachment(self, attachment_id: int) -> None:
        """Delete the stored object, then the row, then announce it."""
        attachment_obj = await attachment_crud.get(self.db, id=attachment_id)
        if not attachment_obj:
            raise NotFoundError("Attachment not found")

        key = attachment_obj.key
        task_id = attachment_obj.task_id
        await self.storage.delete_one(key)
        await attachment_crud.delete_by_id(self.db, id=attachment_id)

        logger.info("Deleted attachment %s (key=%s)", attachment_id, key)
        self._notify(
            EventName.ATTACHMENT_DELETED,
            {
                "id": attachment_id,
                "taskId": task_id,
                "key": key,
                "deletedAt": _utcnow_iso(),
            },
        )

    async def delete_task(self, task_id: int) -> None:
        """Delete a task, its stored objects and its attachment rows.

        The task row is only removed once every object has been deleted.
        """
        await self._get_task(task_id)

        keys = await attachment_crud.list_keys_for_task(self.db, task_id=task_id)
        if keys:
            await self.storage.delete_many(keys)

        await task_crud.remove_with_attachments(self.db, task_id=task_id)

        logger.info("Deleted task %s with %d attachment(s)", task_id, len(keys))
        self._notify(
            EventName.TASK_DELETED,
            {"id": task_id, "deletedAt": _utcnow_iso()},
        )
