"""Project and task operations outside the attachment lifecycle."""
from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError
from app.crud.project import project as project_crud
from app.crud.task import task as task_crud
from app.models.project import Project
from app.models.task import Task
from app.schemas.event import EventName
from app.schemas.project import ProjectCreate
from app.schemas.task import TaskCreate, TaskPage, TaskQuery, TaskResponse
from app.services.event_service import EventNotifier


class TaskService:
    """Task CRUD with lifecycle events."""

    def __init__(self, db: AsyncSession, notifier: EventNotifier, cid: Optional[str] = None):
        self.db = db
        self.notifier = notifier
        self.cid = cid

    async def list_projects(self) -> List[Project]:
        return await project_crud.list_recent(self.db)

    async def create_project(self, data: ProjectCreate) -> Project:
        return await project_crud.create(self.db, obj_in=data)

    async def list_tasks(self) -> List[Task]:
        return await task_crud.list_recent(self.db)

    async def create_task(self, data: TaskCreate) -> Task:
        project_obj = await project_crud.get(self.db, id=data.project_id)
        if not project_obj:
            raise ValidationError("projectId does not reference an existing project")

        task_obj = await task_crud.create(self.db, obj_in={"title": data.title, "project_id": data.project_id})
        self.notifier.fire(
            EventName.TASK_CREATED,
            {
                "id": task_obj.id,
                "title": task_obj.title,
                "projectId": task_obj.project_id,
                "done": task_obj.done,
                "createdAt": task_obj.created_at.isoformat(),
            },
            self.cid,
        )
        return task_obj

    async def toggle_task(self, task_id: int) -> Task:
        task_obj = await task_crud.get(self.db, id=task_id)
        if not task_obj:
            raise NotFoundError("Task not found")

        task_obj = await task_crud.toggle(self.db, db_obj=task_obj)
        self.notifier.fire(
            EventName.TASK_UPDATED,
            {
                "id": task_obj.id,
                "done": task_obj.done,
                "projectId": task_obj.project_id,
                "updatedAt": datetime.now(timezone.utc).isoformat(),
            },
            self.cid,
        )
        return task_obj

    async def list_project_tasks(self, project_id: int, query: TaskQuery) -> TaskPage:
        """Filtered, paginated tasks of one project."""
        project_obj = await project_crud.get(self.db, id=project_id)
        if not project_obj:
            raise NotFoundError("Project not found")

        total = await task_crud.count_filtered(self.db, project_id=project_id, query=query)
        pages = math.ceil(total / query.limit) or 1
        if query.page > 1 and query.page > pages:
            raise NotFoundError(f"Page {query.page} does not exist. Available pages: 1-{pages}")

        items = await task_crud.list_filtered(self.db, project_id=project_id, query=query)
        return TaskPage(
            items=[TaskResponse.model_validate(item) for item in items],
            page=query.page,
            limit=query.limit,
            total=total,
            pages=pages,
        )
