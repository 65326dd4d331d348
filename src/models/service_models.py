"""Pydantic models for service layer return types.

These models provide type safety at service boundaries, converting database
dictionaries into typed objects with validation.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.domain.badge import Badge
from src.domain.stats import StatsAggregate


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AchievementResult(_CamelModel):
    """Statistics derived from the task set in one engine run."""

    completed_count: int
    total_tasks: int
    total_points: int
    current_streak: int
    longest_streak: int
    last_completed_date: str | None = None
    badges: list[Badge]
    newly_unlocked: list[Badge] = Field(default_factory=list)


class TaskCounts(_CamelModel):
    """Task tallies used by progress displays."""

    all: int
    active: int
    completed: int
    progress: int = Field(description="Completed share of all tasks, rounded percentage")


class StatsSummary(_CamelModel):
    """Compact view of the statistics aggregate for dashboards."""

    total_points: int
    current_streak: int
    longest_streak: int
    tasks_completed: int
    total_tasks: int
    progress: int
    badges_unlocked: int
    badges_total: int
    version: int


class RecomputeResult(_CamelModel):
    """Outcome of a statistics recomputation."""

    stats: StatsAggregate
    newly_unlocked: list[Badge] = Field(default_factory=list)
