"""Application state for the tracking service.

``ProjectStore`` owns flat, wholesale-loaded collections of projects (with their
phases embedded), tasks (with their progress comments embedded), media files,
milestones and users. All mutation goes through the methods below: each one awaits
its repository write(s) and then patches local state assuming the write landed.
There is no reconciliation read and no atomicity across writes; a failed write is
logged and the mutation is dropped, leaving local state untouched.

Lookups that fail (unknown project, task, phase) are logged and return ``None``
before anything is written. Input validation raises before anything is written.
"""

from __future__ import annotations

import uuid
from collections.abc import Awaitable, Iterable
from datetime import date, datetime, timezone
from typing import Any, TypeVar

from pydantic import BaseModel

from sitetrack.common.enums import (
    MediaType,
    MilestoneType,
    MoveDirection,
    ProjectStatus,
    TaskPriority,
    TaskStatus,
    UserRole,
)
from sitetrack.common.exceptions import BadRequestError, ConflictError
from sitetrack.common.logging import get_logger
from sitetrack.common.security import get_password_hash, verify_password
from sitetrack.core.tracking import adapters
from sitetrack.core.tracking.progress import clean_progress_input, derive_status
from sitetrack.core.tracking.schemas import (
    MediaFile,
    Milestone,
    Phase,
    ProgressComment,
    Project,
    Task,
    User,
)
from sitetrack.db.repository import Repository, RepositoryError

logger = get_logger("tracking.store")

DEFAULT_PHASE_COLOR = "#8B5CF6"
DEFAULT_TRADE = "General"

R = TypeVar("R", bound=BaseModel)


def _new_id() -> str:
    return str(uuid.uuid4())


def _find(items: Iterable[R], item_id: str) -> R | None:
    return next((item for item in items if getattr(item, "id") == item_id), None)


def _replace(items: list[R], updated: R) -> None:
    for index, item in enumerate(items):
        if getattr(item, "id") == getattr(updated, "id"):
            items[index] = updated
            return


class ProjectStore:
    def __init__(self, repository: Repository):
        self._repo = repository
        self.projects: list[Project] = []
        self.tasks: list[Task] = []
        self.media: list[MediaFile] = []
        self.milestones: list[Milestone] = []
        self.users: list[User] = []

    # ---------- Loading ----------

    async def load(self) -> bool:
        """Refetch every table and rebuild local state from scratch."""
        try:
            rows = {
                table: await self._repo.fetch_all(table)
                for table in (
                    "users",
                    "projects",
                    "phases",
                    "tasks",
                    "progress_comments",
                    "media_files",
                    "milestones",
                )
            }
        except RepositoryError as e:
            logger.error("Failed to load tracking data: %s", e)
            return False

        phases_by_project: dict[str, list[Phase]] = {}
        for row in rows["phases"]:
            phase = adapters.phase_from_row(row)
            phases_by_project.setdefault(phase.project_id, []).append(phase)

        comments_by_task: dict[str, list[ProgressComment]] = {}
        for row in rows["progress_comments"]:
            comment = adapters.comment_from_row(row)
            comments_by_task.setdefault(comment.task_id, []).append(comment)

        self.users = [adapters.user_from_row(r) for r in rows["users"]]
        self.projects = [
            adapters.project_from_row(r, phases_by_project.get(r["id"]))
            for r in rows["projects"]
        ]
        project_names = {p.id: p.name for p in self.projects}
        self.tasks = [
            adapters.task_from_row(r, project_names, comments_by_task.get(r["id"]))
            for r in rows["tasks"]
        ]
        self.media = [adapters.media_from_row(r) for r in rows["media_files"]]
        self.milestones = [adapters.milestone_from_row(r) for r in rows["milestones"]]

        logger.info(
            "Loaded %d projects, %d tasks, %d media files, %d users",
            len(self.projects), len(self.tasks), len(self.media), len(self.users),
        )
        return True

    async def _attempt(self, description: str, operation: Awaitable[Any]) -> bool:
        try:
            await operation
        except RepositoryError as e:
            logger.error("Failed to %s: %s", description, e)
            return False
        return True

    # ---------- Queries ----------

    def get_project(self, project_id: str) -> Project | None:
        return _find(self.projects, project_id)

    def get_project_by_name(self, name: str) -> Project | None:
        return next((p for p in self.projects if p.name == name), None)

    def get_phase(self, project_id: str, phase_id: str) -> Phase | None:
        project = self.get_project(project_id)
        return _find(project.phases, phase_id) if project else None

    def get_task(self, task_id: str) -> Task | None:
        return _find(self.tasks, task_id)

    def get_media(self, media_id: str) -> MediaFile | None:
        return _find(self.media, media_id)

    def get_milestone(self, milestone_id: str) -> Milestone | None:
        return _find(self.milestones, milestone_id)

    def get_user(self, user_id: str) -> User | None:
        return _find(self.users, user_id)

    def get_user_by_username(self, username: str) -> User | None:
        return next((u for u in self.users if u.username == username), None)

    def tasks_for_project(self, project: Project) -> list[Task]:
        return [t for t in self.tasks if t.project == project.name]

    def media_for_task(self, task_id: str) -> list[MediaFile]:
        return [m for m in self.media if m.task_id == task_id]

    def media_for_project(self, project: Project) -> list[MediaFile]:
        task_ids = {t.id for t in self.tasks_for_project(project)}
        return [m for m in self.media if m.task_id in task_ids]

    def milestones_for_task(self, task_id: str) -> list[Milestone]:
        return [m for m in self.milestones if m.task_id == task_id]

    def visible_projects(self, user: User) -> list[Project]:
        return [p for p in self.projects if user.can_view(p.id)]

    # ---------- Projects ----------

    async def add_project(
        self,
        *,
        name: str,
        start_date: date,
        end_date: date,
        description: str | None = None,
        status: ProjectStatus = ProjectStatus.PLANNED,
        progress: int = 0,
        created_by: str | None = None,
    ) -> Project | None:
        if not name.strip():
            raise BadRequestError("Project name is required")
        if self.get_project_by_name(name.strip()) is not None:
            raise ConflictError("A project with this name already exists")

        project = Project(
            id=_new_id(),
            name=name.strip(),
            description=description,
            start_date=start_date,
            end_date=end_date,
            status=status,
            progress=progress,
        )
        row = adapters.project_to_row(project)
        row["created_by"] = created_by
        if not await self._attempt(f"add project '{project.name}'", self._repo.insert("projects", row)):
            return None

        self.projects.append(project)
        logger.info("Project created | id=%s | name=%s", project.id, project.name)
        return project

    async def update_project(self, project_id: str, changes: dict[str, Any]) -> Project | None:
        project = self.get_project(project_id)
        if project is None:
            logger.error("Cannot update project %s: not found", project_id)
            return None

        changes = {k: v for k, v in changes.items() if k in adapters.PROJECT_COLUMNS}
        if "name" in changes:
            name = (changes["name"] or "").strip()
            if not name:
                raise BadRequestError("Project name is required")
            other = self.get_project_by_name(name)
            if other is not None and other.id != project_id:
                raise ConflictError("A project with this name already exists")
            changes["name"] = name
        row = adapters.changes_to_row(changes, adapters.PROJECT_COLUMNS)
        if row and not await self._attempt(
            f"update project {project_id}", self._repo.update("projects", project_id, row)
        ):
            return None

        updated = project.model_copy(update=changes)
        _replace(self.projects, updated)
        if updated.name != project.name:
            self.tasks = [
                t.model_copy(update={"project": updated.name}) if t.project_id == project_id else t
                for t in self.tasks
            ]
        return updated

    async def delete_project(self, project_id: str) -> bool:
        project = self.get_project(project_id)
        if project is None:
            logger.error("Cannot delete project %s: not found", project_id)
            return False

        if not await self._attempt(f"delete project {project_id}", self._repo.delete("projects", project_id)):
            return False

        phase_ids = {p.id for p in project.phases}
        for phase_id in phase_ids:
            await self._attempt(f"delete phase {phase_id}", self._repo.delete("phases", phase_id))
            await self._attempt(
                f"unassign tasks from phase {phase_id}",
                self._repo.update_where("tasks", "phase_id", phase_id, {"phase_id": None}),
            )

        self.projects = [p for p in self.projects if p.id != project_id]
        patched: list[Task] = []
        for task in self.tasks:
            update: dict[str, Any] = {}
            if task.phase_id in phase_ids:
                update["phase_id"] = None
            if task.project_id == project_id:
                update["project"] = ""
            patched.append(task.model_copy(update=update) if update else task)
        self.tasks = patched

        logger.info("Project deleted | id=%s | phases=%d", project_id, len(phase_ids))
        return True

    # ---------- Phases ----------

    async def add_phase(
        self,
        project_id: str,
        *,
        name: str,
        start_date: date,
        end_date: date,
        description: str | None = None,
        color: str = DEFAULT_PHASE_COLOR,
    ) -> Phase | None:
        if not name.strip():
            raise BadRequestError("Phase name is required")
        project = self.get_project(project_id)
        if project is None:
            logger.error("Cannot add phase '%s': project %s not found", name, project_id)
            return None

        phase = Phase(
            id=_new_id(),
            project_id=project_id,
            name=name.strip(),
            description=description,
            start_date=start_date,
            end_date=end_date,
            color=color,
            order=len(project.phases),
        )
        if not await self._attempt(
            f"add phase '{phase.name}'", self._repo.insert("phases", adapters.phase_to_row(phase))
        ):
            return None

        _replace(self.projects, project.model_copy(update={"phases": [*project.phases, phase]}))
        return phase

    async def update_phase(self, project_id: str, phase_id: str, changes: dict[str, Any]) -> Phase | None:
        project = self.get_project(project_id)
        phase = self.get_phase(project_id, phase_id)
        if project is None or phase is None:
            logger.error("Cannot update phase %s of project %s: not found", phase_id, project_id)
            return None

        # Ordering only changes through reorder_phases / move_phase
        changes = {k: v for k, v in changes.items() if k in adapters.PHASE_COLUMNS and k != "order"}
        if "name" in changes:
            name = (changes["name"] or "").strip()
            if not name:
                raise BadRequestError("Phase name is required")
            changes["name"] = name
        row = adapters.changes_to_row(changes, adapters.PHASE_COLUMNS)
        if row and not await self._attempt(
            f"update phase {phase_id}", self._repo.update("phases", phase_id, row)
        ):
            return None

        updated = phase.model_copy(update=changes)
        phases = [updated if p.id == phase_id else p for p in project.phases]
        _replace(self.projects, project.model_copy(update={"phases": phases}))
        return updated

    async def delete_phase(self, project_id: str, phase_id: str) -> bool:
        project = self.get_project(project_id)
        if project is None or self.get_phase(project_id, phase_id) is None:
            logger.error("Cannot delete phase %s of project %s: not found", phase_id, project_id)
            return False

        if not await self._attempt(f"delete phase {phase_id}", self._repo.delete("phases", phase_id)):
            return False
        await self._attempt(
            f"unassign tasks from phase {phase_id}",
            self._repo.update_where("tasks", "phase_id", phase_id, {"phase_id": None}),
        )

        remaining = [p for p in project.ordered_phases() if p.id != phase_id]
        phases = await self._renumber(remaining)
        _replace(self.projects, project.model_copy(update={"phases": phases}))
        self.tasks = [
            t.model_copy(update={"phase_id": None}) if t.phase_id == phase_id else t
            for t in self.tasks
        ]
        return True

    async def reorder_phases(self, project_id: str, phase_ids: list[str]) -> list[Phase] | None:
        project = self.get_project(project_id)
        if project is None:
            logger.error("Cannot reorder phases: project %s not found", project_id)
            return None

        current = {p.id: p for p in project.phases}
        if len(phase_ids) != len(set(phase_ids)) or set(phase_ids) != set(current):
            raise BadRequestError("Phase order must list every phase of the project exactly once")

        phases = await self._renumber([current[pid] for pid in phase_ids])
        _replace(self.projects, project.model_copy(update={"phases": phases}))
        return phases

    async def move_phase(
        self, project_id: str, phase_id: str, direction: MoveDirection
    ) -> list[Phase] | None:
        project = self.get_project(project_id)
        if project is None:
            logger.error("Cannot move phase: project %s not found", project_id)
            return None

        phases = project.ordered_phases()
        index = next((i for i, p in enumerate(phases) if p.id == phase_id), None)
        if index is None:
            logger.error("Cannot move phase %s: not part of project %s", phase_id, project_id)
            return None

        target = index - 1 if direction == MoveDirection.UP else index + 1
        if target < 0 or target >= len(phases):
            return phases

        phases[index], phases[target] = phases[target], phases[index]
        return await self.reorder_phases(project_id, [p.id for p in phases])

    async def _renumber(self, phases: list[Phase]) -> list[Phase]:
        """Assign dense 0..n-1 order values in list order, writing only the ones that moved."""
        renumbered: list[Phase] = []
        for index, phase in enumerate(phases):
            if phase.order != index:
                await self._attempt(
                    f"reorder phase {phase.id}",
                    self._repo.update("phases", phase.id, {"order_index": index}),
                )
                phase = phase.model_copy(update={"order": index})
            renumbered.append(phase)
        return renumbered

    # ---------- Tasks ----------

    async def add_task(
        self,
        *,
        name: str,
        project: str,
        trade: str = "",
        priority: TaskPriority = TaskPriority.MEDIUM,
        status: TaskStatus = TaskStatus.PLANNED,
        progress: int = 0,
        start_date: date | None = None,
        end_date: date | None = None,
        due_date: date | None = None,
        phase_id: str | None = None,
        assigned_to: str | None = None,
        created_by: str | None = None,
    ) -> Task | None:
        if not name.strip():
            raise BadRequestError("Task name is required")
        owner = self.get_project_by_name(project)
        if owner is None:
            logger.error("Cannot add task '%s': project '%s' not found", name, project)
            return None

        task = Task(
            id=_new_id(),
            name=name.strip(),
            project_id=owner.id,
            project=owner.name,
            phase_id=phase_id or None,
            start_date=start_date or due_date,
            end_date=end_date or due_date,
            due_date=due_date,
            trade=trade.strip() or DEFAULT_TRADE,
            priority=priority,
            status=status,
            progress=progress,
            assigned_to=assigned_to,
        )
        row = adapters.task_to_row(task)
        row["created_by"] = created_by
        if not await self._attempt(f"add task '{task.name}'", self._repo.insert("tasks", row)):
            return None

        self.tasks.append(task)
        logger.info("Task created | id=%s | project=%s", task.id, owner.name)
        return task

    async def update_task(self, task_id: str, changes: dict[str, Any]) -> Task | None:
        """General task edit. Status and progress are taken as given, independently."""
        task = self.get_task(task_id)
        if task is None:
            logger.error("Cannot update task %s: not found", task_id)
            return None

        changes = dict(changes)
        if "name" in changes:
            name = (changes["name"] or "").strip()
            if not name:
                raise BadRequestError("Task name is required")
            changes["name"] = name
        if "project" in changes:
            owner = self.get_project_by_name(changes["project"])
            if owner is None:
                logger.error("Cannot move task %s: project '%s' not found", task_id, changes["project"])
                return None
            changes["project_id"] = owner.id
        if "phase_id" in changes:
            changes["phase_id"] = changes["phase_id"] or None
        if "trade" in changes:
            changes["trade"] = (changes["trade"] or "").strip() or DEFAULT_TRADE

        row = adapters.changes_to_row(changes, adapters.TASK_COLUMNS)
        if row and not await self._attempt(f"update task {task_id}", self._repo.update("tasks", task_id, row)):
            return None

        local = {k: v for k, v in changes.items() if k in adapters.TASK_COLUMNS or k == "project"}
        updated = task.model_copy(update=local)
        _replace(self.tasks, updated)
        return updated

    async def delete_task(self, task_id: str) -> bool:
        if self.get_task(task_id) is None:
            logger.error("Cannot delete task %s: not found", task_id)
            return False
        if not await self._attempt(f"delete task {task_id}", self._repo.delete("tasks", task_id)):
            return False

        for media in self.media_for_task(task_id):
            await self._attempt(f"delete media {media.id}", self._repo.delete("media_files", media.id))
        for milestone in self.milestones_for_task(task_id):
            await self._attempt(
                f"delete milestone {milestone.id}", self._repo.delete("milestones", milestone.id)
            )

        self.tasks = [t for t in self.tasks if t.id != task_id]
        self.media = [m for m in self.media if m.task_id != task_id]
        self.milestones = [m for m in self.milestones if m.task_id != task_id]
        return True

    async def update_task_progress(
        self,
        task_id: str,
        new_progress: int,
        comment: str,
        user_id: str,
        user_name: str,
    ) -> Task | None:
        """Record a progress change and derive the task status from it.

        Two independent writes: the task row, then the comment row. If the second
        fails the task keeps its new progress without the comment.
        """
        text = clean_progress_input(new_progress, comment)
        task = self.get_task(task_id)
        if task is None:
            logger.error("Cannot update progress of task %s: not found", task_id)
            return None

        status = derive_status(new_progress)
        if not await self._attempt(
            f"update progress of task {task_id}",
            self._repo.update("tasks", task_id, {"progress": new_progress, "status": status.value}),
        ):
            return None

        entry = ProgressComment(
            id=_new_id(),
            task_id=task_id,
            user_id=user_id,
            user_name=user_name,
            comment=text,
            previous_progress=task.progress,
            new_progress=new_progress,
            timestamp=datetime.now(timezone.utc),
        )
        comments = list(task.progress_comments)
        if await self._attempt(
            f"record progress comment on task {task_id}",
            self._repo.insert("progress_comments", adapters.comment_to_row(entry)),
        ):
            comments.append(entry)

        updated = task.model_copy(
            update={"progress": new_progress, "status": status, "progress_comments": comments}
        )
        _replace(self.tasks, updated)
        logger.info(
            "Progress updated | task=%s | %d%% -> %d%% | by=%s",
            task_id, task.progress, new_progress, user_name,
        )
        return updated

    # ---------- Media ----------

    async def add_media(
        self,
        task_id: str,
        *,
        name: str,
        url: str,
        media_type: MediaType,
        uploaded_by: str,
        uploaded_by_name: str,
        description: str | None = None,
    ) -> MediaFile | None:
        if not name.strip() or not url.strip():
            raise BadRequestError("Media name and URL are required")
        if self.get_task(task_id) is None:
            logger.error("Cannot attach media '%s': task %s not found", name, task_id)
            return None

        media = MediaFile(
            id=_new_id(),
            task_id=task_id,
            name=name.strip(),
            url=url,
            media_type=media_type,
            uploaded_by=uploaded_by,
            uploaded_by_name=uploaded_by_name,
            description=description,
            uploaded_at=datetime.now(timezone.utc),
        )
        if not await self._attempt(
            f"add media '{media.name}'", self._repo.insert("media_files", adapters.media_to_row(media))
        ):
            return None

        self.media.append(media)
        return media

    async def update_media(self, media_id: str, changes: dict[str, Any]) -> MediaFile | None:
        media = self.get_media(media_id)
        if media is None:
            logger.error("Cannot update media %s: not found", media_id)
            return None

        changes = {k: v for k, v in changes.items() if k in adapters.MEDIA_COLUMNS}
        row = adapters.changes_to_row(changes, adapters.MEDIA_COLUMNS)
        if row and not await self._attempt(
            f"update media {media_id}", self._repo.update("media_files", media_id, row)
        ):
            return None

        updated = media.model_copy(update=changes)
        _replace(self.media, updated)
        return updated

    async def delete_media(self, media_id: str) -> bool:
        if self.get_media(media_id) is None:
            logger.error("Cannot delete media %s: not found", media_id)
            return False
        if not await self._attempt(f"delete media {media_id}", self._repo.delete("media_files", media_id)):
            return False
        self.media = [m for m in self.media if m.id != media_id]
        return True

    # ---------- Milestones ----------

    async def add_milestone(
        self,
        task_id: str,
        *,
        name: str,
        milestone_type: MilestoneType,
        date: date,
        completed: bool = False,
    ) -> Milestone | None:
        if not name.strip():
            raise BadRequestError("Milestone name is required")
        if self.get_task(task_id) is None:
            logger.error("Cannot add milestone '%s': task %s not found", name, task_id)
            return None

        milestone = Milestone(
            id=_new_id(),
            task_id=task_id,
            name=name.strip(),
            milestone_type=milestone_type,
            date=date,
            completed=completed,
        )
        if not await self._attempt(
            f"add milestone '{milestone.name}'",
            self._repo.insert("milestones", adapters.milestone_to_row(milestone)),
        ):
            return None

        self.milestones.append(milestone)
        return milestone

    async def update_milestone(self, milestone_id: str, changes: dict[str, Any]) -> Milestone | None:
        milestone = self.get_milestone(milestone_id)
        if milestone is None:
            logger.error("Cannot update milestone %s: not found", milestone_id)
            return None

        changes = {k: v for k, v in changes.items() if k in adapters.MILESTONE_COLUMNS}
        row = adapters.changes_to_row(changes, adapters.MILESTONE_COLUMNS)
        if row and not await self._attempt(
            f"update milestone {milestone_id}", self._repo.update("milestones", milestone_id, row)
        ):
            return None

        updated = milestone.model_copy(update=changes)
        _replace(self.milestones, updated)
        return updated

    async def delete_milestone(self, milestone_id: str) -> bool:
        if self.get_milestone(milestone_id) is None:
            logger.error("Cannot delete milestone %s: not found", milestone_id)
            return False
        if not await self._attempt(
            f"delete milestone {milestone_id}", self._repo.delete("milestones", milestone_id)
        ):
            return False
        self.milestones = [m for m in self.milestones if m.id != milestone_id]
        return True

    # ---------- Users ----------

    async def add_user(
        self,
        *,
        username: str,
        name: str,
        role: UserRole,
        password: str,
        assigned_projects: list[str] | None = None,
    ) -> User | None:
        username = username.strip()
        name = name.strip()
        if not username or not name or not password:
            raise BadRequestError("Name, username and password are required")
        if self.get_user_by_username(username) is not None:
            raise ConflictError("Username already exists")

        user = User(
            id=_new_id(),
            username=username,
            name=name,
            role=role,
            password_hash=get_password_hash(password),
            assigned_projects=assigned_projects if role == UserRole.CLIENT else None,
        )
        if not await self._attempt(f"add user '{username}'", self._repo.insert("users", adapters.user_to_row(user))):
            return None

        self.users.append(user)
        logger.info("User created | username=%s | role=%s", username, role.value)
        return user

    async def update_user(self, user_id: str, changes: dict[str, Any]) -> User | None:
        user = self.get_user(user_id)
        if user is None:
            logger.error("Cannot update user %s: not found", user_id)
            return None

        changes = dict(changes)
        if "username" in changes:
            username = (changes["username"] or "").strip()
            if not username:
                raise BadRequestError("Username is required")
            other = self.get_user_by_username(username)
            if other is not None and other.id != user_id:
                raise ConflictError("Username already exists")
            changes["username"] = username
        if "name" in changes and not (changes["name"] or "").strip():
            raise BadRequestError("Name is required")

        password = changes.pop("password", None)
        if password:
            changes["password_hash"] = get_password_hash(password)
        if changes.get("role", user.role) != UserRole.CLIENT:
            changes["assigned_projects"] = None

        changes = {k: v for k, v in changes.items() if k in adapters.USER_COLUMNS}
        row = adapters.changes_to_row(changes, adapters.USER_COLUMNS)
        if row and not await self._attempt(f"update user {user_id}", self._repo.update("users", user_id, row)):
            return None

        updated = user.model_copy(update=changes)
        _replace(self.users, updated)
        return updated

    async def delete_user(self, user_id: str) -> bool:
        if self.get_user(user_id) is None:
            logger.error("Cannot delete user %s: not found", user_id)
            return False
        if not await self._attempt(f"delete user {user_id}", self._repo.delete("users", user_id)):
            return False
        self.users = [u for u in self.users if u.id != user_id]
        return True

    def authenticate(self, username: str, password: str) -> User | None:
        user = self.get_user_by_username(username)
        if user is None or not verify_password(password, user.password_hash):
            return None
        return user

    async def ensure_admin(self, username: str, password: str, name: str) -> User | None:
        """Create the bootstrap admin account when no admin exists yet."""
        if any(u.role == UserRole.ADMIN for u in self.users):
            return None
        return await self.add_user(username=username, name=name, role=UserRole.ADMIN, password=password)
