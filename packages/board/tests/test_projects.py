"""
Tests for the project item and the project board.

Tests cover:
- Default task seeding by client type
- Optimistic updates written in the background, with toasts on failure
- Project item edits, notes and team assignment
- Kanban changes flowing up to the stored project
"""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from portal_shared.schemas.common import ClientType, DragDirection, ProjectPriority, ProjectStatus, TaskStatus
from portal_shared.schemas.projects import Project, ProjectUpdate
from portal_shared.schemas.tasks import Task
from portal_shared.schemas.team import TeamMember
from portal_board import project_service
from portal_board.notifications import ToastCenter
from portal_board.projects import (
    DEFAULT_TASK_NAMES,
    PUBLIC_PLACEHOLDER_TASK,
    ProjectBoard,
    ProjectItem,
    default_tasks,
)
from portal_board.store import DocumentStore

NOW = datetime(2024, 2, 1, 8, 0, tzinfo=timezone.utc)


def make_project(**overrides) -> Project:
    data = dict(
        id="p1",
        name="Corridor Study",
        client="Region",
        start_date=date(2024, 1, 1),
        due_date=date(2024, 3, 1),
        tasks=[
            Task(id="1", name="Scope", order=1),
            Task(id="2", name="Counts", order=2),
            Task(id="3", name="Report", order=1, status=TaskStatus.COMPLETED),
        ],
    )
    data.update(overrides)
    return Project(**data)


@pytest.fixture
def toasts() -> ToastCenter:
    return ToastCenter()


@pytest.fixture
def board(store, toasts) -> ProjectBoard:
    return ProjectBoard(store, toasts)


# ---------------------------------------------------------------------------
# Default tasks
# ---------------------------------------------------------------------------


class TestDefaultTasks:
    def test_private_clients_get_study_template(self):
        tasks = default_tasks(ClientType.PRIVATE)
        assert [t.name for t in tasks] == DEFAULT_TASK_NAMES
        assert [t.order for t in tasks] == list(range(1, 15))
        assert all(t.status == TaskStatus.TODO for t in tasks)

    def test_public_clients_get_placeholder(self):
        tasks = default_tasks(ClientType.PUBLIC)
        assert [t.name for t in tasks] == [PUBLIC_PLACEHOLDER_TASK]

    def test_public_clients_keep_custom_tasks(self):
        custom = [Task(id="x", name="Audit", order=9), Task(id="y", name="Brief", order=4)]
        tasks = default_tasks(ClientType.PUBLIC, custom)
        assert [(t.id, t.order) for t in tasks] == [("x", 1), ("y", 2)]


# ---------------------------------------------------------------------------
# Project item
# ---------------------------------------------------------------------------


class TestProjectItem:
    def test_kanban_changes_emit_whole_project(self):
        updates: list[Project] = []
        item = ProjectItem(make_project(), updates.append)
        kanban = item.kanban(clock=lambda: NOW)

        kanban.move_to_stage("1", TaskStatus.IN_PROGRESS)

        assert len(updates) == 1
        moved = next(t for t in updates[0].tasks if t.id == "1")
        assert moved.status == TaskStatus.IN_PROGRESS
        assert moved.status_timestamp == NOW
        assert item.project is updates[0]

    def test_progress_and_days_remaining(self):
        item = ProjectItem(make_project(), lambda p: None)
        assert item.progress == 33
        assert item.days_remaining(today=date(2024, 2, 20)) == 10
        assert item.days_remaining(today=date(2024, 3, 5)) == -4

    def test_completed_project_has_no_days_remaining(self):
        item = ProjectItem(make_project(status=ProjectStatus.COMPLETED), lambda p: None)
        assert item.days_remaining(today=date(2024, 1, 1)) == 0

    def test_edit(self):
        updates: list[Project] = []
        item = ProjectItem(make_project(), updates.append)
        assert item.edit(ProjectUpdate(name="New name", priority=ProjectPriority.HIGH)) is True
        assert updates[-1].name == "New name"
        assert updates[-1].priority == ProjectPriority.HIGH
        assert len(updates[-1].tasks) == 3

    @pytest.mark.parametrize(
        "changes",
        [ProjectUpdate(), ProjectUpdate(name="  "), ProjectUpdate(client=""), ProjectUpdate(due_date=None)],
    )
    def test_invalid_edits_are_rejected(self, changes):
        updates: list[Project] = []
        item = ProjectItem(make_project(), updates.append)
        assert item.edit(changes) is False
        assert updates == []

    def test_notes(self):
        updates: list[Project] = []
        item = ProjectItem(make_project(), updates.append)
        assert item.add_note("   ") is False
        assert item.add_note("Client call booked", author_id="m1", now=NOW) is True

        note = item.project.notes[0]
        assert (note.content, note.author_id, note.timestamp) == ("Client call booked", "m1", NOW)
        assert item.delete_note("missing") is False
        assert item.delete_note(note.id) is True
        assert item.project.notes == []
        assert len(updates) == 2

    def test_toggle_team_member(self):
        team = [
            TeamMember(id="m1", name="Ada", role="Engineer", email="ada@example.com"),
            TeamMember(id="m2", name="Bo", role="Planner", email="bo@example.com"),
        ]
        item = ProjectItem(make_project(), lambda p: None, team)
        item.toggle_team_member("m2")
        assert [m.name for m in item.assigned_members()] == ["Bo"]
        item.toggle_team_member("m2")
        assert item.assigned_members() == []


# ---------------------------------------------------------------------------
# Project board
# ---------------------------------------------------------------------------


class TestProjectBoard:
    async def test_create_private_project(self, board, store):
        project = await board.create_project(
            "  Mall Expansion ", "Dev Co", date(2024, 1, 1), date(2024, 6, 1), ClientType.PRIVATE
        )
        assert project.name == "Mall Expansion"
        assert len(project.tasks) == len(DEFAULT_TASK_NAMES)
        assert board.get(project.id) == project
        assert await project_service.get_project_by_id(store, project.id) == project

    async def test_create_requires_name_and_client(self, board):
        assert await board.create_project(" ", "Dev Co", date(2024, 1, 1), date(2024, 6, 1)) is None
        assert await board.create_project("Study", "", date(2024, 1, 1), date(2024, 6, 1)) is None
        assert board.projects == []

    async def test_update_is_local_first_then_persisted(self, board, store, project_in):
        created = await project_service.add_project(store, project_in)
        await board.load()

        changed = created.model_copy(update={"status": ProjectStatus.AT_RISK})
        board.update_project(changed)
        assert board.get(created.id).status == ProjectStatus.AT_RISK

        await board.drain()
        stored = await project_service.get_project_by_id(store, created.id)
        assert stored.status == ProjectStatus.AT_RISK

    async def test_failed_write_keeps_local_state_and_shows_toast(self, board, toasts):
        ghost = make_project(id="ghost")
        board._projects.append(ghost)

        board.update_project(ghost.model_copy(update={"name": "Renamed"}))
        await board.drain()

        assert board.get("ghost").name == "Renamed"
        assert [(t.message, t.level) for t in toasts.toasts] == [
            ("Failed to update project. Please try again.", "error")
        ]

    async def test_delete(self, board, store, project_in):
        created = await project_service.add_project(store, project_in)
        await board.load()

        board.delete_project(created.id)
        assert board.get(created.id) is None
        await board.drain()
        assert await project_service.get_project_by_id(store, created.id) is None

    async def test_item_changes_reach_the_store(self, board, store, project_in):
        created = await project_service.add_project(store, project_in)
        await board.load()

        kanban = board.item(created.id).kanban(clock=lambda: NOW)
        kanban.begin_drag("2")
        kanban.drag_over_task("1", pointer_y=0, top=0, height=40)
        kanban.drop_on_task("1")
        await board.drain()

        stored = await project_service.get_project_by_id(store, created.id)
        moved = next(t for t in stored.tasks if t.id == "2")
        assert moved.status == TaskStatus.COMPLETED
        assert moved.order == 1
        assert moved.status_timestamp == NOW

    async def test_item_for_unknown_project(self, board):
        assert board.item("nope") is None

    async def test_import_projects(self, board, store, project_in):
        imported = await board.import_projects([project_in, project_in.model_copy(update={"name": "Copy"})])
        assert [p.name for p in imported] == ["Downtown Traffic Study", "Copy"]
        assert len(board.projects) == 2
        assert len(await project_service.get_all_projects(store)) == 2

    async def test_filter_and_sort(self, board):
        board._projects = [
            make_project(id="a", name="beta", due_date=date(2024, 5, 1), priority=ProjectPriority.LOW),
            make_project(id="b", name="Alpha", due_date=date(2024, 4, 1), priority=ProjectPriority.HIGH,
                         client_type=ClientType.PUBLIC),
            make_project(id="c", name="gamma", due_date=date(2024, 6, 1), status=ProjectStatus.DELAYED),
        ]
        assert [p.id for p in board.filtered()] == ["b", "a", "c"]
        assert [p.id for p in board.filtered(sort="name")] == ["b", "a", "c"]
        assert [p.id for p in board.filtered(sort="priority")][0] == "b"
        assert [p.id for p in board.filtered(status=ProjectStatus.DELAYED)] == ["c"]
        assert [p.id for p in board.filtered(client_type=ClientType.PUBLIC)] == ["b"]

    async def test_default_direction_reaches_item_boards(self, store, toasts, project_in):
        created = await project_service.add_project(
            store, project_in.model_copy(update={"tasks": default_tasks(ClientType.PRIVATE)[:3]})
        )
        board = ProjectBoard(store, toasts, default_direction=DragDirection.ABOVE)
        await board.load()

        kanban = board.item(created.id).kanban()
        kanban.begin_drag("3")
        kanban.drop_on_task("1")
        assert [t.id for t in sorted(kanban.tasks, key=lambda t: t.order)] == ["3", "1", "2"]
        await board.drain()


class TestProjectBoardWithoutLoop:
    def test_update_leaves_local_state_untouched(self, tmp_path):
        board = ProjectBoard(DocumentStore(str(tmp_path / "portal.db")))
        board._projects.append(make_project())

        with pytest.raises(RuntimeError):
            board.update_project(make_project(name="Renamed"))
        assert board.get("p1").name == "Corridor Study"
        assert board._pending == set()

    def test_delete_leaves_local_state_untouched(self, tmp_path):
        board = ProjectBoard(DocumentStore(str(tmp_path / "portal.db")))
        board._projects.append(make_project())

        with pytest.raises(RuntimeError):
            board.delete_project("p1")
        assert board.get("p1") is not None
