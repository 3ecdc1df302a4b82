"""
Drag session state machine.

    idle → dragging → (hovering_task | hovering_column) → idle

The session only records what is being dragged and where it is hovering.
Visual side effects (ghost styling, body-level cursor classes) go through a
``DragFeedback`` port so the state machine has no global state of its own.
``begin`` is called once per drag and ``end`` once on every way out of it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

import structlog

from portal_shared.schemas.common import DragDirection, TaskStatus

log = structlog.get_logger()


class DragState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    HOVERING_TASK = "hovering_task"
    HOVERING_COLUMN = "hovering_column"


class DragFeedback(Protocol):
    def begin(self, task_id: str) -> None: ...

    def end(self) -> None: ...


class NullFeedback:
    def begin(self, task_id: str) -> None:
        pass

    def end(self) -> None:
        pass


@dataclass(frozen=True)
class DropTarget:
    """Where a drop landed: on a task (with direction) or on a column background."""
    dragged_id: str
    task_id: Optional[str] = None
    column: Optional[TaskStatus] = None
    direction: Optional[DragDirection] = None


def direction_for(pointer_y: float, top: float, height: float) -> DragDirection:
    """``above`` when the pointer is in the top half of the hovered card."""
    return DragDirection.ABOVE if pointer_y < top + height / 2 else DragDirection.BELOW


class DragSession:
    """Ephemeral drag-and-drop state for one board."""

    def __init__(self, feedback: Optional[DragFeedback] = None) -> None:
        self._feedback = feedback or NullFeedback()
        self._clear()

    def _clear(self) -> None:
        self.dragged_id: Optional[str] = None
        self.hovered_task_id: Optional[str] = None
        self.hovered_column: Optional[TaskStatus] = None
        self.direction: Optional[DragDirection] = None

    @property
    def state(self) -> DragState:
        if self.dragged_id is None:
            return DragState.IDLE
        if self.hovered_task_id is not None:
            return DragState.HOVERING_TASK
        if self.hovered_column is not None:
            return DragState.HOVERING_COLUMN
        return DragState.DRAGGING

    @property
    def active(self) -> bool:
        return self.dragged_id is not None

    # --- transitions ---

    def start(self, task_id: str) -> None:
        if self.active:
            # A new drag-start without a drag-end: close the stale one first.
            self.finish()
        self.dragged_id = task_id
        self._feedback.begin(task_id)
        log.debug("drag.started", task_id=task_id)

    def over_task(
        self,
        task_id: str,
        status: TaskStatus,
        pointer_y: float,
        top: float,
        height: float,
    ) -> None:
        """Recomputed on every drag-over event, so the direction follows the pointer."""
        if not self.active or task_id == self.dragged_id:
            return
        self.hovered_task_id = task_id
        self.hovered_column = TaskStatus(status)
        self.direction = direction_for(pointer_y, top, height)

    def over_column(self, status: TaskStatus, on_background: bool = True) -> None:
        if not self.active:
            return
        self.hovered_column = TaskStatus(status)
        if on_background:
            self.hovered_task_id = None
            self.direction = None

    def leave_task(self, entering_child: bool = False) -> None:
        """Leaving a card clears the hovered task but keeps the drag alive."""
        if not self.active or entering_child:
            return
        self.hovered_task_id = None
        self.direction = None

    def drop_on_task(self, task_id: str) -> Optional[DropTarget]:
        if not self.active:
            return None
        return DropTarget(
            dragged_id=self.dragged_id,
            task_id=task_id,
            direction=self.direction if task_id == self.hovered_task_id else None,
        )

    def drop_on_column(self, status: TaskStatus) -> Optional[DropTarget]:
        # A drop over a task card belongs to that card's handler.
        if not self.active or self.hovered_task_id is not None:
            return None
        return DropTarget(dragged_id=self.dragged_id, column=TaskStatus(status))

    def finish(self) -> None:
        """Terminal transition back to idle (drop, drag-end or cancel)."""
        if not self.active:
            return
        dragged_id = self.dragged_id
        self._clear()
        self._feedback.end()
        log.debug("drag.finished", task_id=dragged_id)
