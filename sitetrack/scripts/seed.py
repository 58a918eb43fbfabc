"""
Seed script for SiteTrack.

Populates the database with a demo construction project: three phases, six tasks
across them, and one account per role.

Usage:
    python -m sitetrack.scripts.seed
"""

import asyncio
from datetime import date

from sitetrack.common.enums import ProjectStatus, TaskPriority, TaskStatus, UserRole
from sitetrack.common.logging import get_logger, setup_logging
from sitetrack.core.tracking.store import ProjectStore
from sitetrack.db.repository import SqlRepository

logger = get_logger("scripts.seed")

PROJECT_NAME = "Office Building Construction"

USERS = [
    ("admin", "John Admin", UserRole.ADMIN, "admin123"),
    ("member1", "Mike Worker", UserRole.MEMBER, "member123"),
    ("client1", "Sarah Client", UserRole.CLIENT, "client123"),
]

PHASES = [
    ("Foundation", "Foundation and underground work", date(2024, 1, 1), date(2024, 2, 15), "#8B5CF6"),
    ("Structure", "Building structure and framework", date(2024, 2, 16), date(2024, 4, 30), "#F59E0B"),
    ("Finishing", "Interior and exterior finishing", date(2024, 5, 1), date(2024, 6, 30), "#10B981"),
]

# (name, phase, trade, priority, status, progress, start, end)
TASKS = [
    ("Excavation and Site Preparation", "Foundation", "Excavation", TaskPriority.HIGH,
     TaskStatus.COMPLETED, 100, date(2024, 1, 1), date(2024, 1, 15)),
    ("Foundation Concrete Pour", "Foundation", "Concrete", TaskPriority.HIGH,
     TaskStatus.IN_PROGRESS, 75, date(2024, 1, 16), date(2024, 2, 15)),
    ("Steel Frame Assembly", "Structure", "Steel Work", TaskPriority.HIGH,
     TaskStatus.IN_PROGRESS, 45, date(2024, 2, 16), date(2024, 3, 30)),
    ("Electrical Installation", "Structure", "Electrical", TaskPriority.MEDIUM,
     TaskStatus.IN_PROGRESS, 20, date(2024, 3, 15), date(2024, 5, 15)),
    ("HVAC Installation", "Structure", "HVAC", TaskPriority.MEDIUM,
     TaskStatus.PLANNED, 10, date(2024, 4, 1), date(2024, 5, 30)),
    ("Interior Painting", "Finishing", "Painting", TaskPriority.LOW,
     TaskStatus.PLANNED, 0, date(2024, 5, 1), date(2024, 6, 15)),
]


async def main() -> None:
    setup_logging()
    store = ProjectStore(SqlRepository())
    if not await store.load():
        raise SystemExit("Could not load the database")

    # Guard: skip if already seeded
    if store.get_project_by_name(PROJECT_NAME) is not None:
        print("Database already seeded -- skipping.")
        return

    users = {}
    for username, name, role, password in USERS:
        users[username] = store.get_user_by_username(username) or await store.add_user(
            username=username, name=name, role=role, password=password
        )
    admin = users["admin"]

    project = await store.add_project(
        name=PROJECT_NAME,
        description="Modern office building with 20 floors",
        start_date=date(2024, 1, 1),
        end_date=date(2024, 6, 30),
        status=ProjectStatus.IN_PROGRESS,
        progress=35,
        created_by=admin.id if admin else None,
    )
    if project is None:
        raise SystemExit("Could not create the demo project")

    phase_ids = {}
    for name, description, start, end, color in PHASES:
        phase = await store.add_phase(
            project.id,
            name=name,
            description=description,
            start_date=start,
            end_date=end,
            color=color,
        )
        if phase:
            phase_ids[name] = phase.id

    for name, phase, trade, priority, status, progress, start, end in TASKS:
        await store.add_task(
            name=name,
            project=PROJECT_NAME,
            phase_id=phase_ids.get(phase),
            trade=trade,
            priority=priority,
            status=status,
            progress=progress,
            start_date=start,
            end_date=end,
            due_date=end,
            assigned_to="Mike Worker",
            created_by=admin.id if admin else None,
        )

    client = users.get("client1")
    if client and client.role == UserRole.CLIENT:
        await store.update_user(client.id, {"assigned_projects": [project.id]})

    logger.info(
        "Seeded %s with %d phases and %d tasks",
        PROJECT_NAME, len(phase_ids), len(store.tasks_for_project(project)),
    )


if __name__ == "__main__":
    asyncio.run(main())
