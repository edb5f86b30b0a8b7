"""FastAPI dependencies wiring services to app-scoped clients."""
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.services.attachment_service import AttachmentService, UploadPolicy
from app.services.event_service import EventNotifier
from app.services.storage_service import StorageService
from app.services.task_service import TaskService


def get_correlation_id(request: Request) -> Optional[str]:
    """Correlation id assigned by CorrelationIdMiddleware."""
    return getattr(request.state, "cid", None)


def get_storage_service(request: Request) -> StorageService:
    return request.app.state.storage


def get_event_notifier(request: Request) -> EventNotifier:
    return request.app.state.notifier


def get_upload_policy() -> UploadPolicy:
    return UploadPolicy.from_settings(settings)


def get_attachment_service(
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
    notifier: EventNotifier = Depends(get_event_notifier),
    policy: UploadPolicy = Depends(get_upload_policy),
    cid: Optional[str] = Depends(get_correlation_id),
) -> AttachmentService:
    return AttachmentService(db, storage, notifier, policy, cid=cid)


def get_task_service(
    db: AsyncSession = Depends(get_db),
    notifier: EventNotifier = Depends(get_event_notifier),
    cid: Optional[str] = Depends(get_correlation_id),
) -> TaskService:
    return TaskService(db, notifier, cid=cid)
