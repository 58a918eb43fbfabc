from datetime import date

from sitetrack.common.enums import ProjectStatus, TaskStatus, UserRole
from sitetrack.common.logging import get_logger
from sitetrack.core.reporting.schemas import (
    AdminStats,
    DashboardSummary,
    MemberStats,
    ProgressUpdate,
    ProjectProgress,
    UpcomingTask,
)
from sitetrack.core.timeline.aggregator import summarize_tasks
from sitetrack.core.tracking.schemas import Project, Task, User
from sitetrack.core.tracking.store import ProjectStore

logger = get_logger("reporting.dashboard")

UPCOMING_LIMIT = 5
RECENT_UPDATES_LIMIT = 5
RECENT_UPLOADS_LIMIT = 5


def project_progress(project: Project, tasks: list[Task]) -> ProjectProgress:
    summary = summarize_tasks(tasks)
    return ProjectProgress(
        id=project.id,
        name=project.name,
        status=project.status,
        start_date=project.start_date,
        end_date=project.end_date,
        total_tasks=summary.total,
        completed_tasks=summary.completed,
        overall_progress=summary.overall_progress,
    )


def upcoming_tasks(tasks: list[Task], today: date, limit: int = UPCOMING_LIMIT) -> list[UpcomingTask]:
    """First ``limit`` tasks, in load order, whose due date is strictly after today."""
    due = [t for t in tasks if t.due_date is not None and t.due_date > today]
    return [
        UpcomingTask(task_id=t.id, name=t.name, project=t.project, due_date=t.due_date)
        for t in due[:limit]
    ]


def recent_updates(tasks: list[Task], limit: int = RECENT_UPDATES_LIMIT) -> list[ProgressUpdate]:
    updates = [
        ProgressUpdate(
            task_id=t.id,
            task_name=t.name,
            project=t.project,
            user_name=c.user_name,
            previous_progress=c.previous_progress,
            new_progress=c.new_progress,
            comment=c.comment,
            timestamp=c.timestamp,
        )
        for t in tasks
        for c in t.progress_comments
    ]
    updates.sort(key=lambda u: u.timestamp, reverse=True)
    return updates[:limit]


def _is_assignee(task: Task, user: User) -> bool:
    return task.assigned_to is not None and task.assigned_to in (user.id, user.name, user.username)


def compile_dashboard(store: ProjectStore, user: User, today: date | None = None) -> DashboardSummary:
    today = today or date.today()
    projects = store.visible_projects(user)
    project_names = {p.name for p in projects}
    tasks = [t for t in store.tasks if t.project in project_names]

    summary = DashboardSummary(
        role=user.role,
        projects=[project_progress(p, store.tasks_for_project(p)) for p in projects],
        upcoming=upcoming_tasks(tasks, today),
        recent_updates=recent_updates(tasks),
    )

    if user.role == UserRole.ADMIN:
        summary.admin = AdminStats(
            total_projects=len(projects),
            active_projects=sum(1 for p in projects if p.status == ProjectStatus.IN_PROGRESS),
            delayed_projects=sum(1 for p in projects if p.status == ProjectStatus.DELAYED),
            total_tasks=len(tasks),
            completed_tasks=sum(1 for t in tasks if t.status == TaskStatus.COMPLETED),
            total_users=len(store.users),
        )
    elif user.role == UserRole.MEMBER:
        assigned = [t for t in tasks if _is_assignee(t, user)]
        uploads = [m for m in store.media if m.uploaded_by == user.id]
        summary.member = MemberStats(
            assigned_tasks=len(assigned),
            active_tasks=sum(1 for t in assigned if t.status == TaskStatus.IN_PROGRESS),
            recent_uploads=min(len(uploads), RECENT_UPLOADS_LIMIT),
        )

    logger.debug("Dashboard compiled | user=%s | projects=%d", user.username, len(projects))
    return summary
