"""Badge domain models and the fixed badge catalogue."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class BadgeId(StrEnum):
    """Identifiers of the badges that can be earned."""

    FIRST_TASK = "first-task"
    STREAK_3 = "streak-3"
    POINTS_50 = "points-50"
    TASKS_10 = "tasks-10"


class Badge(BaseModel):
    """Badge data transfer object."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., description="Badge identifier")
    name: str = Field(..., description="Display name")
    description: str = Field(..., description="How the badge is earned")
    icon: str = Field(..., description="Emoji shown for the badge")
    unlocked: bool = Field(default=False, description="Whether the badge has been earned")
    unlocked_at: str | None = Field(default=None, description="When the badge was earned (ISO format)")


# Catalogue order is the display order
BADGE_CATALOGUE: tuple[Badge, ...] = (
    Badge(id=BadgeId.FIRST_TASK, name="First Steps", description="Complete your first task", icon="🎯"),
    Badge(id=BadgeId.STREAK_3, name="On Fire", description="Complete tasks 3 days in a row", icon="🔥"),
    Badge(id=BadgeId.POINTS_50, name="Point Collector", description="Earn 50 points", icon="⭐"),
    Badge(id=BadgeId.TASKS_10, name="Task Master", description="Complete 10 tasks", icon="👑"),
)


def default_badges() -> list[Badge]:
    """Return a fresh, fully locked copy of the badge catalogue."""
    return [badge.model_copy() for badge in BADGE_CATALOGUE]
