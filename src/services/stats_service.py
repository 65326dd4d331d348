"""Statistics service for the singleton aggregate record.

This module provides functions for:
- Finding or creating the default statistics record
- Manual edits (points, streaks, badges) coming from the HTTP boundary
- Applying an Achievement Engine run and publishing the change

Key Concepts:
- Singleton: there is exactly one record, keyed by user_id = "default".
- Version: every write increments `version`. Writers that pass an expected
  version get a ConflictError when the record has moved on; writers that
  omit it overwrite (last write wins).
- Writes within this process are serialised with an asyncio lock. A
  recompute also loads its task snapshot while holding that lock.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime, tzinfo
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from src.core import db_client
from src.core.config import Constants, settings
from src.core.errors import ConflictError, ErrorCode, NotFoundError
from src.core.events import STATISTICS_CHANGED, event_bus
from src.core.logging import span
from src.domain.badge import Badge, default_badges
from src.domain.create_models import StatsCreate
from src.domain.stats import StatsAggregate
from src.domain.task import Task
from src.domain.update_models import BadgesReplace, StatsUpdate
from src.models.service_models import RecomputeResult, StatsSummary
from src.services.achievement_engine import evaluate_achievements, normalize_badges


logger = logging.getLogger(__name__)

_COLLECTION = "user_stats"

_stats_lock = asyncio.Lock()


def calculate_progress(completed: int, total: int) -> int:
    """Return the completed share of `total` as a percentage rounded half up."""
    if total <= 0:
        return 0
    return (completed * 200 + total) // (2 * total)


def get_streak_timezone() -> tzinfo | None:
    """Return the configured streak timezone, or None for server local time."""
    if not settings.timezone:
        return None
    try:
        return ZoneInfo(settings.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, falling back to local time", settings.timezone)
        return None


def _dump_badges(badges: Sequence[Badge]) -> list[dict[str, Any]]:
    return [badge.model_dump() for badge in badges]


async def _find_stats_record() -> dict[str, Any] | None:
    return await db_client.get_first_record(
        collection=_COLLECTION,
        filter_query=f'user_id = "{Constants.STATS_USER_ID}"',
    )


async def _create_default_stats() -> StatsAggregate:
    payload = StatsCreate(badges=_dump_badges(default_badges()))
    record = await db_client.create_record(collection=_COLLECTION, data=payload.model_dump())
    logger.info("Created default statistics record", extra={"record_id": record["id"]})
    return StatsAggregate.model_validate(record)


async def _get_or_create_stats() -> tuple[StatsAggregate, bool]:
    """Load the singleton record, creating it (or its badges) when missing.

    Returns:
        Tuple of (stats, created)
    """
    record = await _find_stats_record()
    if record is None:
        return await _create_default_stats(), True

    stats = StatsAggregate.model_validate(record)
    if not stats.badges:
        # Records written without badges get the catalogue back
        stats = await _write_stats(stats, {"badges": _dump_badges(default_badges())})
    return stats, False


def _check_version(stats: StatsAggregate, expected_version: int | None) -> None:
    if expected_version is not None and expected_version != stats.version:
        msg = f"Statistics were modified concurrently (expected version {expected_version}, current {stats.version})"
        raise ConflictError(msg)


async def _write_stats(stats: StatsAggregate, data: dict[str, Any]) -> StatsAggregate:
    """Persist changes to the aggregate and bump its version."""
    payload = {**data, "version": stats.version + 1}
    record = await db_client.update_record(collection=_COLLECTION, record_id=stats.id, data=payload)
    return StatsAggregate.model_validate(record)


async def get_stats() -> StatsAggregate:
    """Get the statistics aggregate, creating the default record if none exists."""
    with span("stats_service.get_stats"):
        async with _stats_lock:
            stats, _ = await _get_or_create_stats()
            return stats


async def initialize_stats() -> tuple[StatsAggregate, bool]:
    """Create the statistics record if it does not exist yet.

    Returns:
        Tuple of (stats, created) where created is False if the record already existed
    """
    with span("stats_service.initialize_stats"):
        async with _stats_lock:
            return await _get_or_create_stats()


async def update_stats(update: StatsUpdate) -> StatsAggregate:
    """Apply a partial manual update to the statistics aggregate.

    Only fields present in the update are written. Raising current_streak above
    longest_streak also raises longest_streak. A `badge` entry edits a single
    badge by id; unknown badge ids are ignored.

    Raises:
        ConflictError: If update.version is set and does not match the stored version
    """
    with span("stats_service.update_stats"):
        async with _stats_lock:
            stats, _ = await _get_or_create_stats()
            _check_version(stats, update.version)

            fields_set = update.model_fields_set
            data: dict[str, Any] = {}

            for field in ("total_points", "tasks_completed", "total_tasks"):
                value = getattr(update, field)
                if value is not None:
                    data[field] = value

            if update.current_streak is not None:
                data["current_streak"] = update.current_streak
                if update.current_streak > stats.longest_streak:
                    data["longest_streak"] = update.current_streak

            if "last_completed_date" in fields_set:
                data["last_completed_date"] = update.last_completed_date

            badges = normalize_badges(update.badges) if update.badges is not None else list(stats.badges)
            if update.badges is not None:
                data["badges"] = _dump_badges(badges)

            if update.badge is not None:
                edit = update.badge
                for index, badge in enumerate(badges):
                    if str(badge.id) != edit.badge_id:
                        continue
                    changes: dict[str, Any] = {}
                    if edit.unlocked is not None:
                        changes["unlocked"] = edit.unlocked
                    if "unlocked_at" in edit.model_fields_set:
                        changes["unlocked_at"] = edit.unlocked_at
                    badges[index] = badge.model_copy(update=changes)
                    data["badges"] = _dump_badges(badges)
                    break
                else:
                    logger.warning("Ignoring update for unknown badge", extra={"badge_id": edit.badge_id})

            if not data:
                return stats

            updated = await _write_stats(stats, data)
            logger.info("Updated statistics", extra={"fields": sorted(data), "version": updated.version})
            return updated


async def replace_badges(payload: BadgesReplace) -> StatsAggregate:
    """Replace the whole badge array.

    The incoming list is normalised to the catalogue: unknown ids are dropped,
    duplicates collapse to the last entry and missing badges come back locked.

    Raises:
        ConflictError: If payload.version is set and does not match the stored version
    """
    with span("stats_service.replace_badges"):
        async with _stats_lock:
            stats, _ = await _get_or_create_stats()
            _check_version(stats, payload.version)
            badges = normalize_badges(payload.badges)
            updated = await _write_stats(stats, {"badges": _dump_badges(badges)})
            logger.info("Replaced badges", extra={"received": len(payload.badges), "version": updated.version})
            return updated


async def unlock_badge(badge_id: str) -> StatsAggregate:
    """Force-unlock a single badge.

    A badge that is already unlocked keeps its original unlocked_at.

    Raises:
        NotFoundError: If no badge with that id exists on the record
    """
    with span("stats_service.unlock_badge"):
        async with _stats_lock:
            stats, _ = await _get_or_create_stats()

            index = next((i for i, badge in enumerate(stats.badges) if str(badge.id) == badge_id), None)
            if index is None:
                raise NotFoundError("Badge not found", code=ErrorCode.ERR_BADGE_NOT_FOUND)

            badge = stats.badges[index]
            if badge.unlocked:
                logger.info("Badge %s already unlocked", badge_id)
                return stats

            badges = list(stats.badges)
            badges[index] = badge.model_copy(update={"unlocked": True, "unlocked_at": db_client.utc_now_iso()})
            updated = await _write_stats(stats, {"badges": _dump_badges(badges)})
            logger.info("Force-unlocked badge %s", badge_id)
            return updated


async def recompute_from(
    load_tasks: Callable[[], Awaitable[Sequence[Task]]],
    *,
    now: datetime | None = None,
) -> RecomputeResult:
    """Load the task set under the statistics lock, run the engine and persist the result.

    Publishes STATISTICS_CHANGED with the RecomputeResult after the write.

    Args:
        load_tasks: Coroutine function returning every task currently in the store
        now: Evaluation instant (defaults to the current time)

    Returns:
        RecomputeResult with the stored aggregate and the badges unlocked by this run
    """
    with span("stats_service.recompute_from"):
        async with _stats_lock:
            tasks = await load_tasks()
            stats, _ = await _get_or_create_stats()

            result = evaluate_achievements(
                tasks,
                stats.badges,
                previous_longest_streak=stats.longest_streak,
                now=now,
                tz=get_streak_timezone(),
            )

            updated = await _write_stats(
                stats,
                {
                    "total_points": result.total_points,
                    "current_streak": result.current_streak,
                    "longest_streak": result.longest_streak,
                    "last_completed_date": result.last_completed_date,
                    "tasks_completed": result.completed_count,
                    "total_tasks": result.total_tasks,
                    "badges": _dump_badges(result.badges),
                },
            )

        logger.info(
            "Recomputed statistics: %d completed, %d points, streak %d",
            result.completed_count,
            result.total_points,
            result.current_streak,
        )

        recompute_result = RecomputeResult(stats=updated, newly_unlocked=result.newly_unlocked)
        event_bus.publish(STATISTICS_CHANGED, recompute_result)
        return recompute_result


async def get_summary() -> StatsSummary:
    """Return a compact view of the aggregate for progress displays."""
    stats = await get_stats()
    return StatsSummary(
        total_points=stats.total_points,
        current_streak=stats.current_streak,
        longest_streak=stats.longest_streak,
        tasks_completed=stats.tasks_completed,
        total_tasks=stats.total_tasks,
        progress=calculate_progress(stats.tasks_completed, stats.total_tasks),
        badges_unlocked=stats.unlocked_badge_count,
        badges_total=len(stats.badges),
        version=stats.version,
    )
