from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import ConfigDict, Field

from .common import ClientType, DocumentModel, ProjectPriority, ProjectStatus
from .tasks import Task


class Note(DocumentModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str
    content: str
    timestamp: datetime
    author_id: Optional[str] = None  # team member id


class ProjectBase(DocumentModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: str
    client: str
    client_type: Optional[ClientType] = None
    start_date: date
    due_date: date
    status: ProjectStatus = ProjectStatus.ON_TRACK
    priority: ProjectPriority = ProjectPriority.MEDIUM
    tasks: List[Task] = Field(default_factory=list)
    notes: List[Note] = Field(default_factory=list)
    assigned_team: List[str] = Field(default_factory=list)  # team member ids


class ProjectCreate(ProjectBase):
    pass


class ProjectUpdate(DocumentModel):
    name: Optional[str] = None
    client: Optional[str] = None
    client_type: Optional[ClientType] = None
    start_date: Optional[date] = None
    due_date: Optional[date] = None
    status: Optional[ProjectStatus] = None
    priority: Optional[ProjectPriority] = None
    tasks: Optional[List[Task]] = None
    notes: Optional[List[Note]] = None
    assigned_team: Optional[List[str]] = None

    def changes(self) -> dict:
        """Only the fields the caller actually set, in document form."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class Project(ProjectBase):
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
