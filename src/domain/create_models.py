"""Pydantic models for creating records in database."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.core.config import Constants
from src.domain.task import TaskStatus


STATUS_ERROR = 'Status must be either "pending" or "completed"'


def normalize_title(v: Any, *, missing_message: str) -> str:
    """Trim a title and enforce the non-empty and length rules."""
    if v is None or not isinstance(v, str) or not v.strip():
        raise ValueError(missing_message)
    title = v.strip()
    if len(title) > Constants.TASK_TITLE_MAX_LENGTH:
        msg = f"Task title cannot exceed {Constants.TASK_TITLE_MAX_LENGTH} characters"
        raise ValueError(msg)
    return title


def normalize_description(v: Any) -> str:
    """Trim a description, treating a missing one as empty."""
    if v is None:
        return ""
    if not isinstance(v, str):
        msg = "Task description must be a string"
        raise ValueError(msg)
    description = v.strip()
    if len(description) > Constants.TASK_DESCRIPTION_MAX_LENGTH:
        msg = f"Task description cannot exceed {Constants.TASK_DESCRIPTION_MAX_LENGTH} characters"
        raise ValueError(msg)
    return description


def normalize_status(v: Any) -> TaskStatus:
    """Restrict a status to the known values."""
    if v not in {status.value for status in TaskStatus}:
        raise ValueError(STATUS_ERROR)
    return TaskStatus(v)


class TaskCreate(BaseModel):
    """Pydantic model for creating a task record."""

    model_config = ConfigDict(extra="ignore")

    title: str | None = Field(default=None, validate_default=True, description="Task title")
    description: str | None = Field(default=None, validate_default=True, description="Task description")
    status: TaskStatus | None = Field(default=None, validate_default=True, description="Initial status")
    points: int | None = Field(default=None, ge=0, description="Points value; generated when omitted")

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


class StatsCreate(BaseModel):
    """Pydantic model for creating the statistics record."""

    user_id: str = Field(default=Constants.STATS_USER_ID, description="Singleton key")
    total_points: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    last_completed_date: str | None = None
    tasks_completed: int = 0
    total_tasks: int = 0
    badges: list[dict[str, Any]] = Field(default_factory=list)
    version: int = 1
