"""Project CRUD operations."""
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.base import CRUDBase
from app.models.project import Project
from app.schemas.project import ProjectCreate


class CRUDProject(CRUDBase[Project, ProjectCreate, dict]):
    """CRUD operations for Project."""

    async def list_recent(self, db: AsyncSession) -> List[Project]:
        """All projects, newest first."""
        return await self.get_multi(
            db,
            limit=None,
            order_by=[Project.created_at.desc(), Project.id.desc()],
        )


project = CRUDProject(Project)
