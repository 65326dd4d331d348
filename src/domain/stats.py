"""Statistics aggregate domain model."""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.domain.badge import Badge


class StatsAggregate(BaseModel):
    """Singleton statistics record derived from the task collection."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., description="Record ID from database")
    user_id: str = Field(default="default", description="Singleton key")
    total_points: int = Field(default=0, ge=0)
    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    last_completed_date: str | None = Field(default=None, description="Latest completion timestamp (ISO format)")
    tasks_completed: int = Field(default=0, ge=0)
    total_tasks: int = Field(default=0, ge=0)
    badges: list[Badge] = Field(default_factory=list)
    version: int = Field(default=1, ge=1, description="Optimistic concurrency token")
    created_at: str | None = Field(default=None)
    updated_at: str | None = Field(default=None)

    @field_validator("badges", mode="before")
    @classmethod
    def decode_badges(cls, v: Any) -> Any:
        """Accept the JSON text the SQLite store keeps in the badges column."""
        if v is None:
            return []
        if isinstance(v, str):
            return json.loads(v) if v.strip() else []
        return v

    @property
    def unlocked_badge_count(self) -> int:
        """Number of badges that have been earned."""
        return sum(1 for badge in self.badges if badge.unlocked)
