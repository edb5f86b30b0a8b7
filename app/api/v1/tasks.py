"""Tasks API endpoints."""
from typing import List

from fastapi import APIRouter, Depends, status

from app.dependencies import get_attachment_service, get_task_service
from app.schemas.attachment import AttachmentResponse
from app.schemas.task import TaskCreate, TaskResponse
from app.services.attachment_service import AttachmentService
from app.services.task_service import TaskService

router = APIRouter()


@router.get("", response_model=List[TaskResponse])
async def list_tasks(service: TaskService = Depends(get_task_service)):
    """List all tasks, newest first."""
    return await service.list_tasks()


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    payload: TaskCreate,
    service: TaskService = Depends(get_task_service),
):
    """Create a task in an existing project."""
    return await service.create_task(payload)


@router.patch("/{task_id}/toggle", response_model=TaskResponse)
async def toggle_task(
    task_id: int,
    service: TaskService = Depends(get_task_service),
):
    """Flip the done flag of a task."""
    return await service.toggle_task(task_id)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: int,
    service: AttachmentService = Depends(get_attachment_service),
):
    """Delete a task after removing its attachments from storage."""
    await service.delete_task(task_id)


@router.get("/{task_id}/attachments", response_model=List[AttachmentResponse])
async def list_task_attachments(
    task_id: int,
    service: AttachmentService = Depends(get_attachment_service),
):
    """List attachments of a task, newest first."""
    return await service.list_for_task(task_id)
