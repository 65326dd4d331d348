"""Pure achievement computation over the task collection.

This module derives everything the statistics aggregate holds from the task
list alone:
- Completion count and point total over completed tasks
- The current daily streak, counted backwards from today
- The longest streak, which never decreases
- Badge unlocks, which only ever move from locked to unlocked

Key Concepts:
- Calendar day: the date of a completion timestamp in the configured zone
  (server local time when no zone is given). Naive timestamps are read as UTC.
- Streak: consecutive calendar days ending today with at least one completion.
  A day without completions today means a streak of 0.
- Idempotence: evaluating the same tasks and badges twice gives the same
  result, and a badge that is already unlocked keeps its unlocked_at.

Nothing here touches the database; callers load tasks and persist the result.
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from datetime import UTC, date, datetime, timedelta, tzinfo

from src.domain.badge import BADGE_CATALOGUE, Badge, BadgeId
from src.domain.task import Task
from src.models.service_models import AchievementResult


logger = logging.getLogger(__name__)

STREAK_BADGE_DAYS = 3
POINTS_BADGE_THRESHOLD = 50
TASKS_BADGE_THRESHOLD = 10


# Badge unlock predicates: (completed_count, total_points, current_streak) -> bool
BADGE_RULES: dict[str, Callable[[int, int, int], bool]] = {
    BadgeId.FIRST_TASK: lambda completed, _points, _streak: completed >= 1,
    BadgeId.STREAK_3: lambda _completed, _points, streak: streak >= STREAK_BADGE_DAYS,
    BadgeId.POINTS_50: lambda _completed, points, _streak: points >= POINTS_BADGE_THRESHOLD,
    BadgeId.TASKS_10: lambda completed, _points, _streak: completed >= TASKS_BADGE_THRESHOLD,
}


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO 8601 timestamp, returning None when missing or malformed."""
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    try:
        # Offsets at the ends of the datetime range cannot be converted to UTC
        parsed.astimezone(UTC)
    except OverflowError:
        return None
    return parsed


def _to_calendar_day(moment: datetime, tz: tzinfo | None) -> date | None:
    # astimezone(None) converts to the system local zone
    try:
        return moment.astimezone(tz).date()
    except (OverflowError, ValueError):
        return None


def completion_days(tasks: Iterable[Task], *, tz: tzinfo | None = None) -> set[date]:
    """Return the distinct calendar days on which completed tasks were completed.

    Completed tasks without a usable completed_at are skipped.
    """
    days: set[date] = set()
    for task in tasks:
        if not task.is_completed:
            continue
        completed_at = parse_timestamp(task.completed_at)
        day = _to_calendar_day(completed_at, tz) if completed_at is not None else None
        if day is None:
            logger.debug("Skipping task without a valid completion timestamp", extra={"task_id": task.id})
            continue
        days.add(day)
    return days


def calculate_current_streak(days: set[date], *, today: date) -> int:
    """Count consecutive days present in `days`, walking backwards from today."""
    streak = 0
    check_day = today
    while check_day in days:
        streak += 1
        check_day -= timedelta(days=1)
    return streak


def _latest_completion(tasks: Iterable[Task]) -> str | None:
    latest: datetime | None = None
    latest_raw: str | None = None
    for task in tasks:
        if not task.is_completed:
            continue
        completed_at = parse_timestamp(task.completed_at)
        if completed_at is not None and (latest is None or completed_at > latest):
            latest = completed_at
            latest_raw = task.completed_at
    return latest_raw


def normalize_badges(badges: Iterable[Badge] | None) -> list[Badge]:
    """Return one badge per catalogue entry, in catalogue order.

    Badges missing from the input are filled from the catalogue (locked);
    unknown badge ids are dropped.
    """
    by_id = {str(badge.id): badge for badge in badges or []}
    return [by_id.get(str(entry.id), entry).model_copy() for entry in BADGE_CATALOGUE]


def evaluate_badges(
    badges: Sequence[Badge],
    *,
    completed_count: int,
    total_points: int,
    current_streak: int,
    unlocked_at: str,
) -> tuple[list[Badge], list[Badge]]:
    """Apply the unlock rules to a badge list.

    Returns:
        Tuple of (all badges, badges newly unlocked by this call)
    """
    evaluated: list[Badge] = []
    newly_unlocked: list[Badge] = []

    for badge in badges:
        rule = BADGE_RULES.get(str(badge.id))
        if badge.unlocked or rule is None or not rule(completed_count, total_points, current_streak):
            evaluated.append(badge)
            continue

        unlocked = badge.model_copy(update={"unlocked": True, "unlocked_at": unlocked_at})
        evaluated.append(unlocked)
        newly_unlocked.append(unlocked)

    return evaluated, newly_unlocked


def evaluate_achievements(
    tasks: Sequence[Task],
    badges: Iterable[Badge] | None = None,
    *,
    previous_longest_streak: int = 0,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> AchievementResult:
    """Derive points, streaks and badge unlocks from the full task set.

    Args:
        tasks: Every task currently in the store
        badges: Current badge state (defaults to a fully locked catalogue)
        previous_longest_streak: Longest streak stored in the aggregate so far
        now: Evaluation instant (defaults to the current UTC time)
        tz: Zone used to bucket completions into calendar days (None = local)

    Returns:
        AchievementResult with the aggregate fields and newly unlocked badges
    """
    moment = now or datetime.now(UTC)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)

    completed = [task for task in tasks if task.is_completed]
    completed_count = len(completed)
    total_points = sum(task.points for task in completed)

    days = completion_days(completed, tz=tz)
    current_streak = calculate_current_streak(days, today=_to_calendar_day(moment, tz))
    longest_streak = max(previous_longest_streak, current_streak)

    badge_list, newly_unlocked = evaluate_badges(
        normalize_badges(badges),
        completed_count=completed_count,
        total_points=total_points,
        current_streak=current_streak,
        unlocked_at=moment.astimezone(UTC).isoformat().replace("+00:00", "Z"),
    )

    if newly_unlocked:
        logger.info(
            "Unlocked %d badge(s): %s",
            len(newly_unlocked),
            ", ".join(str(badge.id) for badge in newly_unlocked),
        )

    return AchievementResult(
        completed_count=completed_count,
        total_tasks=len(tasks),
        total_points=total_points,
        current_streak=current_streak,
        longest_streak=longest_streak,
        last_completed_date=_latest_completion(completed),
        badges=badge_list,
        newly_unlocked=newly_unlocked,
    )
