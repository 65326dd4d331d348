"""Task domain models and enums."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TaskStatus(StrEnum):
    """Task lifecycle state."""

    PENDING = "pending"
    COMPLETED = "completed"


class TaskFilter(StrEnum):
    """Which tasks a listing returns."""

    ALL = "all"
    ACTIVE = "active"  # Pending tasks only
    COMPLETED = "completed"


class Task(BaseModel):
    """Task data transfer object."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., description="Unique task ID from database")
    title: str = Field(..., description="Task title")
    description: str = Field(default="", description="Detailed task description")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="Current lifecycle state")
    points: int = Field(default=0, ge=0, description="Points awarded when the task is completed")
    completed_at: str | None = Field(default=None, description="When the task was last completed (ISO format)")
    created_at: str = Field(..., description="Creation timestamp (ISO format)")
    updated_at: str = Field(..., description="Last update timestamp (ISO format)")

    @property
    def is_completed(self) -> bool:
        """Return True when the task is in the completed state."""
        return self.status == TaskStatus.COMPLETED
