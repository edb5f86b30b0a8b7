"""Model modules."""
from app.models.project import Project
from app.models.task import Task
from app.models.attachment import Attachment

__all__ = [
    "Project",
    "Task",
    "Attachment",
]
