"""Demo data for local development."""
from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from typing import Dict

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.project import Project
from app.models.task import Task

DEMO_PROJECTS = ["General", "Web App"]
DEMO_TITLES = [
    "Set up environment",
    "Design initial UI",
    "Write basic endpoints",
    "Configure CORS",
    "Add request validation",
    "Add pagination",
    "Implement search",
    "Optimistic updates in the frontend",
    "Write README",
    "Prepare demo",
]
TASKS_PER_PROJECT = 20


async def seed_demo_data(db: AsyncSession, *, rng: random.Random | None = None) -> Dict[str, int]:
    """Create demo projects and tasks unless projects already exist.

    Existing data is never removed so that no stored attachment loses its row.
    """
    rng = rng or random.Random()
    existing = (await db.execute(select(func.count(Project.id)))).scalar_one()
    if existing:
        return {"projects": 0, "tasks": 0}

    now = datetime.now(timezone.utc)
    projects = [Project(name=name) for name in DEMO_PROJECTS]
    db.add_all(projects)
    await db.flush()

    tasks = []
    for project_obj in projects:
        for i in range(TASKS_PER_PROJECT):
            title = DEMO_TITLES[i % len(DEMO_TITLES)]
            tasks.append(
                Task(
                    title=f"{title} #{i + 1} ({project_obj.name})",
                    done=i % 2 == 0,
                    project_id=project_obj.id,
                    created_at=now - timedelta(seconds=rng.randint(0, 7 * 24 * 60 * 60)),
                )
            )
    db.add_all(tasks)
    await db.commit()
    return {"projects": len(projects), "tasks": len(tasks)}
