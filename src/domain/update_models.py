"""Update models for database operations."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.domain.badge import Badge
from src.domain.create_models import normalize_description, normalize_status, normalize_title
from src.domain.task import TaskStatus


class TaskReplace(BaseModel):
    """Full-replace payload for a task (PUT)."""

    model_config = ConfigDict(extra="ignore")

    title: str | None = Field(default=None, validate_default=True)
    description: str | None = Field(default=None, validate_default=True)
    status: TaskStatus | None = Field(default=None, validate_default=True)

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: Any) -> str:
        """Validate the title is present and within limits."""
        return normalize_title(v, missing_message="Task title is required")

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, v: Any) -> str:
        """Validate the description is within limits."""
        return normalize_description(v)

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v: Any) -> TaskStatus:
        """Default to pending and reject unknown statuses."""
        if v is None or v == "":
            return TaskStatus.PENDING
        return normalize_status(v)


class TaskUpdate(BaseModel):
    """Partial update payload for a task (PATCH). Only fields that were sent are applied."""

    model_config = ConfigDict(extra="ignore")

    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: Any) -> str:
        """Reject an explicitly empty title."""
        return normalize_title(v, missing_message="Task title cannot be empty")

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, v: Any) -> str:
        """Validate the description is within limits."""
        return normalize_description(v)

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v: Any) -> TaskStatus:
        """Reject unknown statuses."""
        return normalize_status(v)

    def changes(self) -> dict[str, Any]:
        """Return only the fields the client supplied."""
        return self.model_dump(exclude_unset=True)


class BadgeUpdate(BaseModel):
    """Single badge edit carried inside a statistics update."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    badge_id: str
    unlocked: bool | None = None
    unlocked_at: str | None = None


class StatsUpdate(BaseModel):
    """Partial update payload for the statistics record."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    total_points: int | None = Field(default=None, ge=0)
    current_streak: int | None = Field(default=None, ge=0)
    last_completed_date: str | None = None
    tasks_completed: int | None = Field(default=None, ge=0)
    total_tasks: int | None = Field(default=None, ge=0)
    badges: list[Badge] | None = None
    badge: BadgeUpdate | None = None
    version: int | None = Field(default=None, description="Expected version of the record")


class BadgesReplace(BaseModel):
    """Full badge-array replacement payload."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    badges: list[Badge] = Field(default=None, validate_default=True)  # type: ignore[assignment]
    version: int | None = Field(default=None, description="Expected version of the record")

    @field_validator("badges", mode="before")
    @classmethod
    def validate_badges_array(cls, v: Any) -> Any:
        """Require a JSON array."""
        if not isinstance(v, list):
            msg = "Badges must be an array"
            raise ValueError(msg)
        return v
