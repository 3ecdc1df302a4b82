"""
Task mutations outside of drag-and-drop.

Handles:
- Ingestion of raw task documents (status derived once, at the boundary)
- Creation (``todo`` column only) and deletion with column renumbering
- Explicit "move to stage", completion toggle, assignment and renaming

Every function returns a new collection. Blank names and unknown ids leave
the collection unchanged rather than raising.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Callable, Iterable, Optional, Sequence, Union

import structlog

from portal_shared.schemas.common import TaskStatus
from portal_shared.schemas.tasks import Task

from .reorder import append_to_column, find_task, max_order, renumber_column, utcnow

log = structlog.get_logger()

IdFactory = Callable[[], str]


def new_task_id() -> str:
    return uuid.uuid4().hex


def normalize_tasks(raw: Iterable[Union[Task, dict[str, Any]]]) -> list[Task]:
    """Turn task documents loaded from the store into fully populated ``Task`` records."""
    return [t if isinstance(t, Task) else Task.model_validate(t) for t in raw]


def _replace(tasks: Sequence[Task], updated: Task) -> list[Task]:
    return [updated if t.id == updated.id else t for t in tasks]


# ---------------------------------------------------------------------------
# Create / delete
# ---------------------------------------------------------------------------


def add_task(
    tasks: Sequence[Task],
    name: str,
    now: Optional[datetime] = None,
    id_factory: IdFactory = new_task_id,
) -> list[Task]:
    """Append a new task to the bottom of the ``todo`` column."""
    name = name.strip()
    if not name:
        return list(tasks)

    task = Task(
        id=id_factory(),
        name=name,
        status=TaskStatus.TODO,
        order=max_order(tasks, TaskStatus.TODO) + 1,
        status_timestamp=now or utcnow(),
    )
    return [*tasks, task]


def delete_task(tasks: Sequence[Task], task_id: str) -> list[Task]:
    """Remove a task and close the gap it leaves in its column."""
    task = find_task(tasks, task_id)
    if task is None:
        log.debug("tasks.delete_missing", task_id=task_id)
        return list(tasks)
    remaining = [t for t in tasks if t.id != task_id]
    return renumber_column(remaining, task.status)


# ---------------------------------------------------------------------------
# Status changes
# ---------------------------------------------------------------------------


def set_status(
    tasks: Sequence[Task],
    task_id: str,
    status: TaskStatus,
    now: Optional[datetime] = None,
) -> list[Task]:
    """Move a task to another stage; it lands at the bottom of that column."""
    task = find_task(tasks, task_id)
    if task is None or task.status == status:
        return list(tasks)
    return append_to_column(tasks, task_id, status, now)


def toggle_completed(
    tasks: Sequence[Task],
    task_id: str,
    now: Optional[datetime] = None,
) -> list[Task]:
    task = find_task(tasks, task_id)
    if task is None:
        return list(tasks)
    target = TaskStatus.TODO if task.completed else TaskStatus.COMPLETED
    return set_status(tasks, task_id, target, now)


# ---------------------------------------------------------------------------
# Field edits
# ---------------------------------------------------------------------------


def assign_task(tasks: Sequence[Task], task_id: str, member_id: Optional[str]) -> list[Task]:
    task = find_task(tasks, task_id)
    if task is None:
        return list(tasks)
    return _replace(tasks, task.model_copy(update={"assigned_to": member_id}))


def rename_task(tasks: Sequence[Task], task_id: str, name: str) -> list[Task]:
    name = name.strip()
    task = find_task(tasks, task_id)
    if task is None or not name:
        return list(tasks)
    return _replace(tasks, task.model_copy(update={"name": name}))
