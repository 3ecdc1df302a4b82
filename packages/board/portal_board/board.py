"""
Kanban board: local task state for one project.

Composes the reorder engine, the drag session and the task mutations. The
board keeps its own copy of the task collection, replaces it wholesale on
every mutation and hands the complete new collection to ``on_tasks_update``.
Persisting that collection is the owner's job.
"""

from __future__ import annotations

from typing import Callable, Optional, Sequence

import structlog

from portal_shared.schemas.common import DragDirection, TaskStatus
from portal_shared.schemas.tasks import Task
from portal_shared.schemas.team import TeamMember

from . import tasks as task_ops
from .drag import DragFeedback, DragSession
from .reorder import Clock, append_to_column, find_task, group_columns, reorder_tasks, utcnow

log = structlog.get_logger()

TasksCallback = Callable[[list[Task]], None]


class KanbanBoard:
    """
    One project's kanban board.

    Responsibilities:
    - Translate drag events into drops via ``DragSession``
    - Apply drops, stage moves, toggles and edits to the local collection
    - Emit the full collection upstream after each effective change
    - Defer creation / deletion to the owner when it supplies hooks
    """

    def __init__(
        self,
        tasks: Sequence[Task],
        team_members: Sequence[TeamMember],
        on_tasks_update: TasksCallback,
        on_add_task: Optional[Callable[[str], None]] = None,
        on_delete_task: Optional[Callable[[str], None]] = None,
        feedback: Optional[DragFeedback] = None,
        clock: Optional[Clock] = None,
        id_factory: Optional[task_ops.IdFactory] = None,
        default_direction: DragDirection = DragDirection.BELOW,
    ):
        self._tasks: list[Task] = task_ops.normalize_tasks(tasks)
        self._team = list(team_members)
        self._on_tasks_update = on_tasks_update
        self._on_add_task = on_add_task
        self._on_delete_task = on_delete_task
        self._clock = clock or utcnow
        self._id_factory = id_factory or task_ops.new_task_id
        self._default_direction = default_direction
        self.drag = DragSession(feedback)
        self.pending_delete: Optional[Task] = None

    # --- queries ---

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    def columns(self) -> dict[TaskStatus, list[Task]]:
        return group_columns(self._tasks)

    def team_member(self, member_id: Optional[str]) -> Optional[TeamMember]:
        if not member_id:
            return None
        return next((m for m in self._team if m.id == member_id), None)

    def sync(self, tasks: Sequence[Task], team_members: Optional[Sequence[TeamMember]] = None) -> None:
        """Adopt a collection handed down by the owner. Does not emit."""
        self._tasks = task_ops.normalize_tasks(tasks)
        if team_members is not None:
            self._team = list(team_members)

    def _commit(self, updated: list[Task]) -> bool:
        if updated == self._tasks:
            return False
        self._tasks = updated
        self._on_tasks_update(list(updated))
        return True

    # --- drag and drop ---

    def begin_drag(self, task_id: str) -> None:
        self.drag.start(task_id)

    def drag_over_task(self, task_id: str, pointer_y: float, top: float, height: float) -> None:
        task = find_task(self._tasks, task_id)
        if task is None:
            return
        self.drag.over_task(task_id, task.status, pointer_y, top, height)

    def drag_over_column(self, status: TaskStatus, on_background: bool = True) -> None:
        self.drag.over_column(status, on_background)

    def drag_leave_task(self, entering_child: bool = False) -> None:
        self.drag.leave_task(entering_child)

    def drop_on_task(self, task_id: str) -> bool:
        target = self.drag.drop_on_task(task_id)
        if target is None:
            return False
        direction = target.direction or self._default_direction
        try:
            updated = reorder_tasks(self._tasks, target.dragged_id, task_id, direction, self._clock())
            log.info(
                "board.drop_on_task",
                task_id=target.dragged_id,
                target_id=task_id,
                direction=direction.value,
            )
            return self._commit(updated)
        finally:
            self.drag.finish()

    def drop_on_column(self, status: TaskStatus) -> bool:
        target = self.drag.drop_on_column(status)
        if target is None:
            return False
        try:
            updated = append_to_column(self._tasks, target.dragged_id, target.column, self._clock())
            log.info("board.drop_on_column", task_id=target.dragged_id, column=target.column.value)
            return self._commit(updated)
        finally:
            self.drag.finish()

    def end_drag(self) -> None:
        """Drag-end without a valid drop: clear state, leave tasks alone."""
        self.drag.finish()

    # --- menu actions ---

    def add_task(self, name: str) -> bool:
        if not name.strip():
            return False
        if self._on_add_task is not None:
            self._on_add_task(name.strip())
            return True
        return self._commit(task_ops.add_task(self._tasks, name, self._clock(), self._id_factory))

    def request_delete(self, task_id: str) -> None:
        """Open the confirmation step, or hand the delete to the owner."""
        if self._on_delete_task is not None:
            self._on_delete_task(task_id)
            return
        self.pending_delete = find_task(self._tasks, task_id)

    def confirm_delete(self) -> bool:
        task, self.pending_delete = self.pending_delete, None
        if task is None:
            return False
        log.info("board.task_deleted", task_id=task.id, column=task.status.value)
        return self._commit(task_ops.delete_task(self._tasks, task.id))

    def cancel_delete(self) -> None:
        self.pending_delete = None

    def assign(self, task_id: str, member_id: Optional[str]) -> bool:
        return self._commit(task_ops.assign_task(self._tasks, task_id, member_id))

    def move_to_stage(self, task_id: str, status: TaskStatus) -> bool:
        return self._commit(task_ops.set_status(self._tasks, task_id, TaskStatus(status), self._clock()))

    def toggle_completed(self, task_id: str) -> bool:
        return self._commit(task_ops.toggle_completed(self._tasks, task_id, self._clock()))

    def rename_task(self, task_id: str, name: str) -> bool:
        return self._commit(task_ops.rename_task(self._tasks, task_id, name))
