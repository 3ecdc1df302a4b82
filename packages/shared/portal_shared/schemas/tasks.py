"""Task schema shared by the board core, the services and the CLI.

A ``Task`` is always fully populated: documents coming out of the store may
omit ``status`` (older records only carry ``completed``), so the status is
derived once while the model is validated and never re-derived afterwards.
``completed`` is computed from ``status`` and cannot drift from it.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Union

from pydantic import ConfigDict, computed_field, model_validator

from .common import DocumentModel, TaskStatus

_STATUS_VALUES = {s.value for s in TaskStatus}


def normalize_task_data(data: dict[str, Any]) -> dict[str, Any]:
    """Fill in ``status`` from ``completed`` when it is missing or unrecognised."""
    data = dict(data)
    status = data.get("status")
    if not isinstance(status, TaskStatus) and status not in _STATUS_VALUES:
        data["status"] = TaskStatus.COMPLETED if data.get("completed") else TaskStatus.TODO
    data.pop("completed", None)
    return data


class Task(DocumentModel):
    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    id: str
    name: str
    order: Union[int, float] = 0
    status: TaskStatus = TaskStatus.TODO
    assigned_to: Optional[str] = None  # team member id
    status_timestamp: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def _derive_status(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return normalize_task_data(data)
        return data

    @computed_field  # type: ignore[prop-decorator]
    @property
    def completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED
