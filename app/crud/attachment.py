"""Attachment CRUD operations."""
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.crud.base import CRUDBase
from app.models.attachment import Attachment
from app.schemas.attachment import AttachmentRegister


class CRUDAttachment(CRUDBase[Attachment, AttachmentRegister, dict]):
    """CRUD operations for Attachment."""

    async def list_by_task(self, db: AsyncSession, *, task_id: int) -> List[Attachment]:
        """Attachments of a task, newest first."""
        return await self.get_multi(
            db,
            limit=None,
            filters={"task_id": task_id},
            order_by=[Attachment.created_at.desc(), Attachment.id.desc()],
        )

    async def list_keys_for_task(self, db: AsyncSession, *, task_id: int) -> List[str]:
        """Storage keys of every committed attachment row for the task."""
        result = await db.execute(
            select(Attachment.key).where(Attachment.task_id == task_id).order_by(Attachment.id)
        )
        return list(result.scalars().all())

    async def register(self, db: AsyncSession, *, obj_in: AttachmentRegister) -> Attachment:
        """Insert the row exactly as reported by the client."""
        return await self.create(db, obj_in=obj_in)

    async def delete_by_id(self, db: AsyncSession, *, id: int) -> None:
        removed = await self.remove(db, id=id)
        if not removed:
            raise NotFoundError("Attachment not found")


attachment = CRUDAttachment(Attachment)
