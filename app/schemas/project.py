"""Project schemas."""
from datetime import datetime

from pydantic import Field

from app.schemas.common import APIModel


class ProjectCreate(APIModel):
    """Project creation schema."""

    name: str = Field(..., min_length=1)


class ProjectResponse(APIModel):
    """Project response schema."""

    id: int
    name: str
    created_at: datetime
