"""Task domain models and enums."""

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.core.config import Constants


class TaskPriority(StrEnum):
    """Task priority."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class TaskStatus(StrEnum):
    """Task lifecycle status."""

    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class Task(BaseModel):
    """Task data transfer object."""

    id: str = Field(..., description="Unique task ID from database")
    created: str = Field(..., description="Creation timestamp (ISO format)")
    updated: str = Field(..., description="Last update timestamp (ISO format)")
    title: str = Field(..., description="Task title")
    description: str = Field(default="", description="Detailed task description")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Task priority")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="Current lifecycle status")
    due_date: str | None = Field(default=None, description="Due date (ISO format)")
    assignee_id: str | None = Field(default=None, description="Assigned user ID")
    creator_id: str = Field(..., description="Creator user ID (immutable)")


def _normalize_title(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not value:
        raise ValueError("Title is required")
    if len(value) > Constants.TASK_TITLE_MAX_LENGTH:
        raise ValueError(f"Title too long (max {Constants.TASK_TITLE_MAX_LENGTH} characters)")
    return value


def _normalize_due_date(value: datetime | None) -> datetime | None:
    """Due dates are stored in UTC and must lie strictly in the future."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    value = value.astimezone(UTC)
    if value <= datetime.now(UTC):
        raise ValueError("Due date must be in the future")
    return value


class TaskCreate(BaseModel):
    """Input for creating a task."""

    model_config = ConfigDict(extra="ignore")

    title: str = Field(..., description="Task title")
    description: str = Field(default="", max_length=Constants.TASK_DESCRIPTION_MAX_LENGTH)
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM)
    status: TaskStatus = Field(default=TaskStatus.PENDING)
    due_date: datetime | None = Field(default=None)
    assignee_id: str | None = Field(default=None)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Trim the title and enforce presence and length."""
        return _normalize_title(v)  # type: ignore[return-value]

    @field_validator("description", mode="before")
    @classmethod
    def default_description(cls, v: str | None) -> str:
        """Treat a null description as empty."""
        return v or ""

    @field_validator("due_date")
    @classmethod
    def validate_due_date(cls, v: datetime | None) -> datetime | None:
        """Reject due dates that are not in the future."""
        return _normalize_due_date(v)

    @field_validator("assignee_id", mode="before")
    @classmethod
    def normalize_assignee(cls, v: object) -> str | None:
        """Empty assignee means unassigned."""
        return str(v) if v else None


class TaskUpdate(BaseModel):
    """Partial task update. Only fields present in the request are applied."""

    model_config = ConfigDict(extra="ignore")

    title: str | None = None
    description: str | None = Field(default=None, max_length=Constants.TASK_DESCRIPTION_MAX_LENGTH)
    priority: TaskPriority | None = None
    status: TaskStatus | None = None
    due_date: datetime | None = None
    assignee_id: str | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str | None) -> str | None:
        """Trim the title and enforce presence and length."""
        if v is None:
            raise ValueError("Title cannot be null")
        return _normalize_title(v)

    @field_validator("description", mode="before")
    @classmethod
    def default_description(cls, v: str | None) -> str:
        """Treat a null description as empty."""
        return v or ""

    @field_validator("priority", "status")
    @classmethod
    def reject_null(cls, v: StrEnum | None) -> StrEnum | None:
        """Priority and status can be changed but never cleared."""
        if v is None:
            raise ValueError("Value cannot be null")
        return v

    @field_validator("due_date")
    @classmethod
    def validate_due_date(cls, v: datetime | None) -> datetime | None:
        """Reject due dates that are not in the future."""
        return _normalize_due_date(v)

    @field_validator("assignee_id", mode="before")
    @classmethod
    def normalize_assignee(cls, v: object) -> str | None:
        """Empty assignee means unassigned."""
        return str(v) if v else None

    def applied_fields(self) -> dict[str, object]:
        """Return only the fields the caller actually sent."""
        return {name: getattr(self, name) for name in self.model_fields_set}
