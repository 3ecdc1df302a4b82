"""
Project owners: a single project's item view and the board of all projects.

``ProjectItem`` owns one project's task collection and pushes every change
up as a whole new ``Project``. ``ProjectBoard`` keeps the list of projects,
applies changes locally right away and writes them to the document store in
the background. A failed write is logged and shown as a toast; the local
state is kept as is.
"""

from __future__ import annotations

import asyncio
import uuid
from datetime import date, datetime
from typing import Any, Awaitable, Callable, Literal, Optional, Sequence

import structlog

from portal_shared.schemas.common import (
    PRIORITY_RANK,
    ClientType,
    DragDirection,
    ProjectPriority,
    ProjectStatus,
    TaskStatus,
)
from portal_shared.schemas.projects import Note, Project, ProjectCreate, ProjectUpdate
from portal_shared.schemas.tasks import Task
from portal_shared.schemas.team import TeamMember

from . import project_service
from .board import KanbanBoard
from .drag import DragFeedback
from .notifications import Notifier, ToastCenter
from .reorder import Clock, utcnow
from .stats import progress
from .store import DocumentStore

log = structlog.get_logger()

# Standard workflow for private traffic impact studies
DEFAULT_TASK_NAMES: list[str] = [
    "TOR Submitted",
    "Data Collection",
    "Transit and AT Network",
    "Traffic Analysis",
    "Site Plan Review",
    "Site Circulation and Access Review",
    "Sightline Review",
    "Turn Lane Warrants",
    "Signal Warrants",
    "Parking and Loading Review",
    "TDM Plan",
    "Draft Report Submitted",
    "Comments Received",
    "Final Report Submitted",
]

PUBLIC_PLACEHOLDER_TASK = "Define project scope"

SortKey = Literal["dueDate", "name", "priority"]


def _seed_tasks(names: Sequence[str]) -> list[Task]:
    return [
        Task(id=str(i), name=name, order=i, status=TaskStatus.TODO)
        for i, name in enumerate(names, start=1)
    ]


def default_tasks(client_type: Optional[ClientType], custom: Sequence[Task] = ()) -> list[Task]:
    """Starting tasks for a new project: the study template for private clients, else custom or a placeholder."""
    if client_type == ClientType.PRIVATE:
        return _seed_tasks(DEFAULT_TASK_NAMES)
    if custom:
        return [t.model_copy(update={"order": i}) for i, t in enumerate(custom, start=1)]
    return _seed_tasks([PUBLIC_PLACEHOLDER_TASK])


# ---------------------------------------------------------------------------
# Project item
# ---------------------------------------------------------------------------


class ProjectItem:
    """One project card: tasks, notes and team assignment."""

    def __init__(
        self,
        project: Project,
        on_update: Callable[[Project], None],
        team_members: Sequence[TeamMember] = (),
        default_direction: DragDirection = DragDirection.BELOW,
    ):
        self._project = project
        self._on_update = on_update
        self._team = list(team_members)
        self._default_direction = default_direction

    @property
    def project(self) -> Project:
        return self._project

    def _emit(self, **changes: Any) -> None:
        self._project = self._project.model_copy(update=changes)
        self._on_update(self._project)

    def kanban(
        self,
        feedback: Optional[DragFeedback] = None,
        clock: Optional[Clock] = None,
        id_factory: Optional[Callable[[], str]] = None,
        default_direction: Optional[DragDirection] = None,
    ) -> KanbanBoard:
        return KanbanBoard(
            self._project.tasks,
            self._team,
            on_tasks_update=self.handle_tasks_update,
            feedback=feedback,
            clock=clock,
            id_factory=id_factory,
            default_direction=default_direction or self._default_direction,
        )

    def handle_tasks_update(self, tasks: list[Task]) -> None:
        self._emit(tasks=list(tasks))

    def edit(self, changes: ProjectUpdate) -> bool:
        """Apply an edit form; name, client and dates may not be blanked."""
        data = {key: getattr(changes, key) for key in changes.model_fields_set}
        if not data:
            return False
        for key in ("name", "client"):
            if key in data and not (data[key] or "").strip():
                return False
        for key in ("start_date", "due_date"):
            if key in data and data[key] is None:
                return False
        self._emit(**data)
        return True

    # --- notes ---

    def add_note(self, content: str, author_id: Optional[str] = None, now: Optional[datetime] = None) -> bool:
        if not content.strip():
            return False
        note = Note(
            id=uuid.uuid4().hex,
            content=content,
            timestamp=now or utcnow(),
            author_id=author_id or None,
        )
        self._emit(notes=[*self._project.notes, note])
        return True

    def delete_note(self, note_id: str) -> bool:
        notes = [n for n in self._project.notes if n.id != note_id]
        if len(notes) == len(self._project.notes):
            return False
        self._emit(notes=notes)
        return True

    # --- team ---

    def toggle_team_member(self, member_id: str) -> None:
        team = list(self._project.assigned_team)
        if member_id in team:
            team.remove(member_id)
        else:
            team.append(member_id)
        self._emit(assigned_team=team)

    def assigned_members(self) -> list[TeamMember]:
        return [m for m in self._team if m.id in self._project.assigned_team]

    # --- derived ---

    @property
    def progress(self) -> int:
        return progress(self._project)

    def days_remaining(self, today: Optional[date] = None) -> int:
        """Whole days until the due date; negative when overdue, 0 once the project is completed."""
        if self._project.status == ProjectStatus.COMPLETED:
            return 0
        today = today or date.today()
        return (self._project.due_date - today).days


# ---------------------------------------------------------------------------
# Project board
# ---------------------------------------------------------------------------


class ProjectBoard:
    """All projects, persisted through the document store in the background."""

    def __init__(
        self,
        store: DocumentStore,
        notifier: Optional[Notifier] = None,
        default_direction: DragDirection = DragDirection.BELOW,
    ):
        self._store = store
        self._notifier = notifier or ToastCenter()
        self._default_direction = default_direction
        self._projects: list[Project] = []
        self._pending: set[asyncio.Task] = set()

    @property
    def store(self) -> DocumentStore:
        return self._store

    @property
    def projects(self) -> list[Project]:
        return list(self._projects)

    def get(self, project_id: str) -> Optional[Project]:
        return next((p for p in self._projects if p.id == project_id), None)

    async def load(self) -> list[Project]:
        self._projects = await project_service.get_all_projects(self._store)
        log.info("projects.loaded", count=len(self._projects))
        return self.projects

    def item(self, project_id: str, team_members: Sequence[TeamMember] = ()) -> Optional[ProjectItem]:
        project = self.get(project_id)
        if project is None:
            return None
        return ProjectItem(project, self.update_project, team_members, self._default_direction)

    # --- mutations ---

    async def create_project(
        self,
        name: str,
        client: str,
        start_date: date,
        due_date: date,
        client_type: ClientType = ClientType.PRIVATE,
        status: ProjectStatus = ProjectStatus.ON_TRACK,
        priority: ProjectPriority = ProjectPriority.MEDIUM,
        custom_tasks: Sequence[Task] = (),
    ) -> Optional[Project]:
        if not name.strip() or not client.strip() or not start_date or not due_date:
            return None
        project_in = ProjectCreate(
            name=name.strip(),
            client=client.strip(),
            client_type=client_type,
            start_date=start_date,
            due_date=due_date,
            status=status,
            priority=priority,
            tasks=default_tasks(client_type, custom_tasks),
        )
        project = await project_service.add_project(self._store, project_in)
        self._projects.append(project)
        log.info("projects.created", project_id=project.id, client_type=client_type.value)
        return project

    def update_project(self, project: Project) -> None:
        """
        Replace the local copy now; write the whole project in the background.

        Must be called with an event loop running. Without one it raises
        ``RuntimeError`` before touching local state.
        """
        loop = asyncio.get_running_loop()
        self._projects = [project if p.id == project.id else p for p in self._projects]
        self._schedule(
            loop,
            project_service.save_project(self._store, project),
            action="update",
            project_id=project.id,
        )

    def delete_project(self, project_id: str) -> None:
        loop = asyncio.get_running_loop()
        self._projects = [p for p in self._projects if p.id != project_id]
        self._schedule(
            loop,
            project_service.delete_project(self._store, project_id),
            action="delete",
            project_id=project_id,
        )

    async def import_projects(self, projects_in: Sequence[ProjectCreate]) -> list[Project]:
        ids = await project_service.batch_add_projects(self._store, projects_in)
        imported = [Project(id=pid, **p.model_dump()) for pid, p in zip(ids, projects_in)]
        self._projects.extend(imported)
        log.info("projects.imported", count=len(imported))
        return imported

    # --- views ---

    def filtered(
        self,
        status: Optional[ProjectStatus] = None,
        client_type: Optional[ClientType] = None,
        sort: SortKey = "dueDate",
    ) -> list[Project]:
        projects = [
            p for p in self._projects
            if (status is None or p.status == status)
            and (client_type is None or p.client_type == client_type)
        ]
        if sort == "dueDate":
            return sorted(projects, key=lambda p: p.due_date)
        if sort == "name":
            return sorted(projects, key=lambda p: p.name.casefold())
        if sort == "priority":
            return sorted(projects, key=lambda p: PRIORITY_RANK[p.priority], reverse=True)
        return projects

    # --- background writes ---

    def _schedule(
        self,
        loop: asyncio.AbstractEventLoop,
        write: Awaitable[None],
        action: str,
        project_id: str,
    ) -> None:
        task = loop.create_task(self._persist(write, action, project_id))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _persist(self, write: Awaitable[None], action: str, project_id: str) -> None:
        try:
            await write
        except Exception as exc:
            log.warning("projects.persist_failed", action=action, project_id=project_id, error=str(exc))
            self._notifier.notify(f"Failed to {action} project. Please try again.", "error")
        else:
            log.debug("projects.persisted", action=action, project_id=project_id)

    async def drain(self) -> None:
        """Wait for every write scheduled so far."""
        pending = [t for t in self._pending if not t.done()]
        if pending:
            await asyncio.gather(*pending)
