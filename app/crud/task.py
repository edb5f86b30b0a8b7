"""Task CRUD operations."""
from typing import List

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.base import CRUDBase
from app.models.attachment import Attachment
from app.models.task import Task
from app.schemas.task import TaskCreate, TaskQuery, TaskStatusFilter


class CRUDTask(CRUDBase[Task, TaskCreate, dict]):
    """CRUD operations for Task."""

    @staticmethod
    def _query_conditions(project_id: int, query: TaskQuery) -> list:
        conditions = [Task.project_id == project_id]
        if query.status == TaskStatusFilter.DONE:
            conditions.append(Task.done.is_(True))
        elif query.status == TaskStatusFilter.PENDING:
            conditions.append(Task.done.is_(False))
        if query.q:
            conditions.append(Task.title.contains(query.q))
        return conditions

    async def list_recent(self, db: AsyncSession) -> List[Task]:
        """All tasks, newest first."""
        return await self.get_multi(
            db,
            limit=None,
            order_by=[Task.created_at.desc(), Task.id.desc()],
        )

    async def count_filtered(self, db: AsyncSession, *, project_id: int, query: TaskQuery) -> int:
        result = await db.execute(
            select(func.count(Task.id)).where(*self._query_conditions(project_id, query))
        )
        return result.scalar_one()

    async def list_filtered(self, db: AsyncSession, *, project_id: int, query: TaskQuery) -> List[Task]:
        result = await db.execute(
            select(Task)
            .where(*self._query_conditions(project_id, query))
            .order_by(Task.created_at.desc(), Task.id.desc())
            .offset(query.skip)
            .limit(query.take)
        )
        return list(result.scalars().all())

    async def toggle(self, db: AsyncSession, *, db_obj: Task) -> Task:
        return await self.update(db, db_obj=db_obj, obj_in={"done": not db_obj.done})

    async def remove_with_attachments(self, db: AsyncSession, *, task_id: int) -> None:
        """Delete a task together with its attachment rows in one transaction."""
        await db.execute(delete(Attachment).where(Attachment.task_id == task_id))
        await db.execute(delete(Task).where(Task.id == task_id))
        await db.commit()


task = CRUDTask(Task)
