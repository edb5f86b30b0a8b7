"""Script to load demo projects and tasks."""
import asyncio
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.database import AsyncSessionLocal, init_db, close_db
from app.services.demo_service import seed_demo_data


async def seed():
    """Create demo data if the database has no projects yet."""
    await init_db()
    try:
        async with AsyncSessionLocal() as db:
            created = await seed_demo_data(db)
    finally:
        await close_db()

    if created["projects"]:
        print(f"✓ Seed done: {created['projects']} projects, {created['tasks']} tasks")
    else:
        print("✓ Projects already exist, nothing to seed")


if __name__ == "__main__":
    asyncio.run(seed())
