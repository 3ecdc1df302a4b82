"""
Reorder engine: column ordering for kanban drops.

A column is the set of tasks sharing a status, sorted by ``order`` (ties keep
collection order). Every drop renumbers the columns it touches to 1..N and
leaves the other columns alone. Functions here are pure: they take a task
collection and return a new one.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

import structlog

from portal_shared.schemas.common import COLUMN_ORDER, DragDirection, TaskStatus
from portal_shared.schemas.tasks import Task

log = structlog.get_logger()

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Columns
# ---------------------------------------------------------------------------


def column(tasks: Sequence[Task], status: TaskStatus) -> list[Task]:
    """Tasks in one column, ascending by order. ``sorted`` is stable, so ties keep insertion order."""
    return sorted((t for t in tasks if t.status == status), key=lambda t: t.order)


def group_columns(tasks: Sequence[Task]) -> dict[TaskStatus, list[Task]]:
    return {status: column(tasks, status) for status in COLUMN_ORDER}


def find_task(tasks: Sequence[Task], task_id: str) -> Optional[Task]:
    for task in tasks:
        if task.id == task_id:
            return task
    return None


def max_order(tasks: Sequence[Task], status: TaskStatus, exclude_id: Optional[str] = None) -> int | float:
    return max((t.order for t in tasks if t.status == status and t.id != exclude_id), default=0)


def _apply_ranks(
    tasks: Sequence[Task],
    ranks: dict[str, int | float],
    replacements: Optional[dict[str, Task]] = None,
) -> list[Task]:
    """Rebuild the collection with new orders; untouched tasks are reused as-is."""
    replacements = replacements or {}
    result: list[Task] = []
    for task in tasks:
        current = replacements.get(task.id, task)
        rank = ranks.get(task.id)
        if rank is not None and rank != current.order:
            current = current.model_copy(update={"order": rank})
        result.append(current)
    return result


def _dense_ranks(ordered: Sequence[Task]) -> dict[str, int]:
    return {task.id: index for index, task in enumerate(ordered, start=1)}


def renumber_column(tasks: Sequence[Task], status: TaskStatus) -> list[Task]:
    """Renumber one column to 1..N in its current order."""
    return _apply_ranks(tasks, _dense_ranks(column(tasks, status)))


def with_status(task: Task, status: TaskStatus, now: datetime) -> Task:
    """Copy of ``task`` in ``status``; the timestamp only moves when the status does."""
    if task.status == status:
        return task
    return task.model_copy(update={"status": status, "status_timestamp": now})


# ---------------------------------------------------------------------------
# Drops
# ---------------------------------------------------------------------------


def reorder_tasks(
    tasks: Sequence[Task],
    dragged_id: str,
    target_id: str,
    direction: Optional[DragDirection],
    now: Optional[datetime] = None,
) -> list[Task]:
    """
    Drop ``dragged_id`` onto ``target_id``.

    The dragged task is placed directly above or below the target inside the
    target's column, taking the target's status if it differs. The target
    column and (on a cross-column move) the source column are renumbered.
    Dropping a task on itself, or referencing a task that is no longer in the
    collection, returns the collection unchanged.
    """
    if dragged_id == target_id:
        return list(tasks)

    dragged = find_task(tasks, dragged_id)
    target = find_task(tasks, target_id)
    if dragged is None or target is None:
        log.debug("reorder.stale_reference", dragged_id=dragged_id, target_id=target_id)
        return list(tasks)

    direction = direction or DragDirection.BELOW
    source_status = dragged.status
    target_status = target.status
    moved = with_status(dragged, target_status, now or utcnow())

    lane = [t for t in column(tasks, target_status) if t.id != dragged_id]
    index = next(i for i, t in enumerate(lane) if t.id == target_id)
    if direction == DragDirection.BELOW:
        index += 1
    lane.insert(index, moved)

    ranks = _dense_ranks(lane)
    if source_status != target_status:
        ranks.update(_dense_ranks([t for t in column(tasks, source_status) if t.id != dragged_id]))

    return _apply_ranks(tasks, ranks, {dragged_id: moved})


def append_to_column(
    tasks: Sequence[Task],
    task_id: str,
    status: TaskStatus,
    now: Optional[datetime] = None,
) -> list[Task]:
    """
    Drop ``task_id`` on the background of the ``status`` column.

    Moving into another column appends after the highest order already there
    and closes the gap left in the source column. Dropping on the task's own
    column moves it to the end and renumbers that column.
    """
    status = TaskStatus(status)
    task = find_task(tasks, task_id)
    if task is None:
        log.debug("reorder.stale_reference", dragged_id=task_id, column=status.value)
        return list(tasks)

    if task.status == status:
        lane = [t for t in column(tasks, status) if t.id != task_id] + [task]
        return _apply_ranks(tasks, _dense_ranks(lane))

    source_status = task.status
    moved = with_status(task, status, now or utcnow())
    ranks: dict[str, int | float] = {task_id: max_order(tasks, status, exclude_id=task_id) + 1}
    ranks.update(_dense_ranks([t for t in column(tasks, source_status) if t.id != task_id]))
    return _apply_ranks(tasks, ranks, {task_id: moved})
