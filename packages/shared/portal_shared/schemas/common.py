from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    REVIEW = "review"
    COMPLETED = "completed"

# Left-to-right column order on the board
COLUMN_ORDER: list["TaskStatus"] = [
    TaskStatus.TODO,
    TaskStatus.IN_PROGRESS,
    TaskStatus.REVIEW,
    TaskStatus.COMPLETED,
]

class DragDirection(str, Enum):
    ABOVE = "above"
    BELOW = "below"

class ProjectStatus(str, Enum):
    ON_TRACK = "on-track"
    AT_RISK = "at-risk"
    DELAYED = "delayed"
    COMPLETED = "completed"

class ProjectPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

# Higher sorts first
PRIORITY_RANK: dict["ProjectPriority", int] = {
    ProjectPriority.HIGH: 3,
    ProjectPriority.MEDIUM: 2,
    ProjectPriority.LOW: 1,
}

class ClientType(str, Enum):
    PRIVATE = "private"
    PUBLIC = "public"


class DocumentModel(BaseModel):
    """Base for records that round-trip through the document store (camelCase keys)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
