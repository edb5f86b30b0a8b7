"""Schema modules."""
from app.schemas.project import ProjectCreate, ProjectResponse
from app.schemas.task import TaskCreate, TaskResponse, TaskQuery, TaskPage, TaskStatusFilter
from app.schemas.attachment import (
    AttachmentRegister,
    AttachmentResponse,
    PresignDownloadResponse,
    PresignUploadRequest,
    PresignUploadResponse,
)
from app.schemas.event import EventEnvelope, EventName, PublishOutcome
