"""Projects API endpoints."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from app.dependencies import get_task_service
from app.schemas.project import ProjectCreate, ProjectResponse
from app.schemas.task import TaskPage, TaskQuery, TaskStatusFilter
from app.services.task_service import TaskService

router = APIRouter()


@router.get("", response_model=List[ProjectResponse])
async def list_projects(service: TaskService = Depends(get_task_service)):
    """List projects, newest first."""
    return await service.list_projects()


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: ProjectCreate,
    service: TaskService = Depends(get_task_service),
):
    """Create a project."""
    return await service.create_project(payload)


@router.get("/{project_id}/tasks", response_model=TaskPage)
async def list_project_tasks(
    project_id: int,
    status_filter: TaskStatusFilter = Query(TaskStatusFilter.ALL, alias="status"),
    q: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: TaskService = Depends(get_task_service),
):
    """List a project's tasks with done-state and title filters."""
    query = TaskQuery(status=status_filter, q=q, page=page, limit=limit)
    return await service.list_project_tasks(project_id, query)
