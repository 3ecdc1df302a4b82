"""Tests for task mutations and ingestion normalization."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from portal_shared.schemas.common import TaskStatus
from portal_shared.schemas.tasks import Task
from portal_board import tasks as task_ops
from portal_board.reorder import column

NOW = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)


def task(task_id: str, status: str = "todo", order: int = 1) -> Task:
    return Task(id=task_id, name=task_id.upper(), status=status, order=order)


def orders(tasks, status) -> list[tuple[str, int]]:
    return [(t.id, t.order) for t in column(tasks, status)]


class TestNormalization:
    def test_status_derived_from_completed(self):
        raw = [
            {"id": "1", "name": "Done", "completed": True, "order": 1},
            {"id": "2", "name": "Open", "completed": False, "order": 2},
            {"id": "3", "name": "Bare"},
        ]
        tasks = task_ops.normalize_tasks(raw)
        assert [t.status for t in tasks] == [TaskStatus.COMPLETED, TaskStatus.TODO, TaskStatus.TODO]

    def test_explicit_status_wins(self):
        t = Task.model_validate({"id": "1", "name": "x", "status": "review", "completed": True})
        assert t.status == TaskStatus.REVIEW
        assert t.completed is False

    def test_unknown_status_falls_back(self):
        t = Task.model_validate({"id": "1", "name": "x", "status": "blocked", "completed": True})
        assert t.status == TaskStatus.COMPLETED

    def test_numeric_ids_become_strings(self):
        t = Task.model_validate({"id": 7, "name": "x", "assignedTo": 12})
        assert t.id == "7"
        assert t.assigned_to == "12"

    def test_document_uses_camel_case(self):
        t = Task(id="1", name="x", status=TaskStatus.COMPLETED, status_timestamp=NOW, assigned_to="m1")
        doc = t.to_document()
        assert doc["statusTimestamp"].startswith("2024-05-01T09:30")
        assert doc["assignedTo"] == "m1"
        assert doc["completed"] is True

    def test_tasks_are_immutable(self):
        t = task("a")
        with pytest.raises(ValidationError):
            t.name = "changed"

    def test_existing_records_pass_through(self):
        t = task("a")
        assert task_ops.normalize_tasks([t])[0] is t


class TestAddTask:
    def test_appends_to_todo(self):
        tasks = [task("a", order=1), task("b", order=2), task("r", "review", 5)]
        result = task_ops.add_task(tasks, "  New work  ", NOW, id_factory=lambda: "new")
        added = result[-1]
        assert added.id == "new"
        assert added.name == "New work"
        assert added.status == TaskStatus.TODO
        assert added.order == 3
        assert added.status_timestamp == NOW
        assert added.completed is False

    def test_first_task_gets_order_one(self):
        result = task_ops.add_task([], "First", NOW)
        assert result[0].order == 1
        assert len(result[0].id) == 32

    @pytest.mark.parametrize("name", ["", "   "])
    def test_blank_name_is_noop(self, name):
        tasks = [task("a")]
        result = task_ops.add_task(tasks, name, NOW)
        assert len(result) == len(tasks)


class TestDeleteTask:
    def test_renumbers_former_column(self):
        tasks = [task("A", order=1), task("B", order=2), task("C", order=3), task("D", "review", 4)]
        result = task_ops.delete_task(tasks, "B")
        assert orders(result, "todo") == [("A", 1), ("C", 2)]
        assert orders(result, "review") == [("D", 4)]

    def test_missing_id_is_noop(self):
        tasks = [task("A")]
        assert task_ops.delete_task(tasks, "nope") == tasks


class TestStatusChanges:
    def test_set_status_lands_at_bottom(self):
        tasks = [task("a", order=1), task("b", order=2), task("r", "review", 1)]
        result = task_ops.set_status(tasks, "a", TaskStatus.REVIEW, NOW)
        assert orders(result, "review") == [("r", 1), ("a", 2)]
        assert orders(result, "todo") == [("b", 1)]
        assert next(t for t in result if t.id == "a").status_timestamp == NOW

    def test_set_same_status_is_noop(self):
        tasks = [task("a")]
        result = task_ops.set_status(tasks, "a", TaskStatus.TODO, NOW)
        assert result == tasks
        assert result[0].status_timestamp is None

    def test_toggle_completes_and_reopens(self):
        tasks = [task("a", order=1), task("b", order=2)]
        done = task_ops.toggle_completed(tasks, "a", NOW)
        a = next(t for t in done if t.id == "a")
        assert a.status == TaskStatus.COMPLETED
        assert a.completed is True

        reopened = task_ops.toggle_completed(done, "a", NOW)
        a = next(t for t in reopened if t.id == "a")
        assert a.status == TaskStatus.TODO
        assert orders(reopened, "todo") == [("b", 1), ("a", 2)]

    def test_toggle_from_review_completes(self):
        tasks = [task("a", "review")]
        result = task_ops.toggle_completed(tasks, "a", NOW)
        assert result[0].status == TaskStatus.COMPLETED


class TestFieldEdits:
    def test_assign_and_unassign(self):
        tasks = [task("a"), task("b", order=2)]
        assigned = task_ops.assign_task(tasks, "a", "m1")
        assert assigned[0].assigned_to == "m1"
        assert assigned[1] is tasks[1]
        assert task_ops.assign_task(assigned, "a", None)[0].assigned_to is None

    def test_rename_rejects_blank(self):
        tasks = [task("a")]
        assert task_ops.rename_task(tasks, "a", " ")[0].name == "A"
        assert task_ops.rename_task(tasks, "a", " Site visit ")[0].name == "Site visit"
