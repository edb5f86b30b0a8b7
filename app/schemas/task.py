"""Task schemas."""
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator

from app.schemas.common import APIModel


class TaskStatusFilter(str, Enum):
    """Done-state filter for task listings."""

    ALL = "all"
    DONE = "done"
    PENDING = "pending"


class TaskCreate(APIModel):
    """Task creation schema."""

    title: str = Field(..., min_length=1)
    project_id: int = Field(..., gt=0)


class TaskResponse(APIModel):
    """Task response schema."""

    id: int
    title: str
    done: bool
    project_id: int
    created_at: datetime


class TaskQuery(APIModel):
    """Filtering and pagination options for a project's task list."""

    status: TaskStatusFilter = TaskStatusFilter.ALL
    q: Optional[str] = None
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)

    @field_validator("q")
    @classmethod
    def _strip_q(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def take(self) -> int:
        return self.limit


class TaskPage(APIModel):
    """Paginated task list."""

    items: List[TaskResponse]
    page: int
    limit: int
    total: int
    pages: int
