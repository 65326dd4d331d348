"""Domain models and DTOs."""

from src.domain.badge import BADGE_CATALOGUE, Badge, BadgeId, default_badges
from src.domain.create_models import StatsCreate, TaskCreate
from src.domain.stats import StatsAggregate
from src.domain.task import Task, TaskFilter, TaskStatus
from src.domain.update_models import BadgesReplace, BadgeUpdate, StatsUpdate, TaskReplace, TaskUpdate


__all__ = [
    "BADGE_CATALOGUE",
    "Badge",
    "BadgeId",
    "BadgeUpdate",
    "BadgesReplace",
    "StatsAggregate",
    "StatsCreate",
    "StatsUpdate",
    "Task",
    "TaskCreate",
    "TaskFilter",
    "TaskReplace",
    "TaskStatus",
    "TaskUpdate",
    "default_badges",
]
