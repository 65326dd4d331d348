"""Unit tests for stats_service module."""

from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from src.core.config import settings
from src.core.errors import ConflictError, ErrorCode, NotFoundError
from src.core.events import STATISTICS_CHANGED, event_bus
from src.domain.badge import BadgeId, default_badges
from src.domain.task import Task, TaskStatus
from src.domain.update_models import BadgesReplace, BadgeUpdate, StatsUpdate
from src.services import stats_service


NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)


def completed_task(task_id: str, *, points: int, days_ago: int = 0) -> Task:
    stamp = (NOW - timedelta(days=days_ago)).isoformat().replace("+00:00", "Z")
    return Task(
        id=task_id,
        title=f"Task {task_id}",
        status=TaskStatus.COMPLETED,
        points=points,
        completed_at=stamp,
        created_at=stamp,
        updated_at=stamp,
    )


def snapshot(tasks: list[Task]):
    async def load_tasks() -> list[Task]:
        return tasks

    return load_tasks


@pytest.fixture
def utc_streaks(monkeypatch):
    """Bucket completions by UTC day."""
    monkeypatch.setattr(settings, "timezone", "UTC")


@pytest.mark.unit
class TestCalculateProgress:
    """Tests for calculate_progress function."""

    @pytest.mark.parametrize(
        ("completed", "total", "expected"),
        [(0, 0, 0), (0, 5, 0), (1, 3, 33), (2, 3, 67), (1, 2, 50), (1, 8, 13), (4, 4, 100)],
    )
    def test_rounded_percentage(self, completed, total, expected):
        """Test percentage rounding (half up)."""
        assert stats_service.calculate_progress(completed, total) == expected


@pytest.mark.unit
class TestStreakTimezone:
    """Tests for get_streak_timezone function."""

    def test_configured_zone(self, monkeypatch):
        """Test that a valid IANA name is resolved."""
        monkeypatch.setattr(settings, "timezone", "Europe/Berlin")

        assert stats_service.get_streak_timezone() == ZoneInfo("Europe/Berlin")

    def test_unset_zone_means_local(self, monkeypatch):
        """Test that no configured zone falls back to local time."""
        monkeypatch.setattr(settings, "timezone", None)

        assert stats_service.get_streak_timezone() is None

    def test_unknown_zone_falls_back(self, monkeypatch):
        """Test that an unknown zone is ignored."""
        monkeypatch.setattr(settings, "timezone", "Mars/Olympus_Mons")

        assert stats_service.get_streak_timezone() is None


@pytest.mark.unit
class TestGetStats:
    """Tests for get_stats and initialize_stats."""

    async def test_get_stats_creates_default(self, patched_db):
        """Test that the first read creates a zeroed record with locked badges."""
        stats = await stats_service.get_stats()

        assert stats.user_id == "default"
        assert stats.total_points == 0
        assert stats.version == 1
        assert [badge.id for badge in stats.badges] == [badge.id for badge in default_badges()]
        assert not any(badge.unlocked for badge in stats.badges)

    async def test_get_stats_is_a_singleton(self, patched_db):
        """Test that repeated reads return the same record."""
        first = await stats_service.get_stats()
        second = await stats_service.get_stats()

        assert first.id == second.id
        assert len(await patched_db.list_records("user_stats")) == 1

    async def test_initialize_reports_creation(self, patched_db):
        """Test that initialize_stats reports whether it created the record."""
        _, created = await stats_service.initialize_stats()
        _, created_again = await stats_service.initialize_stats()

        assert created is True
        assert created_again is False

    async def test_missing_badges_are_reinitialised(self, patched_db):
        """Test that a stored record with no badges gets the catalogue back."""
        patched_db.seed("user_stats", {"user_id": "default", "total_points": 40, "badges": [], "version": 3})

        stats = await stats_service.get_stats()

        assert len(stats.badges) == 4
        assert stats.total_points == 40
        assert stats.version == 4


@pytest.mark.unit
class TestUpdateStats:
    """Tests for update_stats function."""

    async def test_update_points_bumps_version(self, patched_db):
        """Test that a write increments the version."""
        await stats_service.get_stats()

        stats = await stats_service.update_stats(StatsUpdate(total_points=30))

        assert stats.total_points == 30
        assert stats.version == 2

    async def test_matching_version_is_accepted(self, patched_db):
        """Test an update that names the current version."""
        current = await stats_service.get_stats()

        stats = await stats_service.update_stats(StatsUpdate(total_points=5, version=current.version))

        assert stats.version == current.version + 1

    async def test_stale_version_conflicts(self, patched_db):
        """Test that an update against an old version is rejected."""
        await stats_service.get_stats()
        await stats_service.update_stats(StatsUpdate(total_points=5))

        with pytest.raises(ConflictError) as exc_info:
            await stats_service.update_stats(StatsUpdate(total_points=10, version=1))

        assert exc_info.value.code == ErrorCode.ERR_VERSION_CONFLICT
        stats = await stats_service.get_stats()
        assert stats.total_points == 5

    async def test_current_streak_raises_longest(self, patched_db):
        """Test that a higher current streak also raises the longest streak."""
        await stats_service.update_stats(StatsUpdate(current_streak=4))
        stats = await stats_service.update_stats(StatsUpdate(current_streak=2))

        assert stats.current_streak == 2
        assert stats.longest_streak == 4

    async def test_last_completed_date_can_be_cleared(self, patched_db):
        """Test that an explicit null clears last_completed_date."""
        await stats_service.update_stats(StatsUpdate(last_completed_date="2026-03-10T12:00:00Z"))

        stats = await stats_service.update_stats(StatsUpdate.model_validate({"lastCompletedDate": None}))

        assert stats.last_completed_date is None

    async def test_single_badge_edit(self, patched_db):
        """Test editing one badge by id."""
        stats = await stats_service.update_stats(
            StatsUpdate(badge=BadgeUpdate(badge_id="points-50", unlocked=True, unlocked_at="2026-03-01T00:00:00Z"))
        )

        badge = next(b for b in stats.badges if b.id == BadgeId.POINTS_50)
        assert badge.unlocked is True
        assert badge.unlocked_at == "2026-03-01T00:00:00Z"

    async def test_unknown_badge_edit_is_ignored(self, patched_db):
        """Test that editing a badge id that does not exist changes nothing."""
        before = await stats_service.get_stats()

        after = await stats_service.update_stats(StatsUpdate(badge=BadgeUpdate(badge_id="nope", unlocked=True)))

        assert after.version == before.version
        assert after.badges == before.badges

    async def test_empty_update_is_a_no_op(self, patched_db):
        """Test that an update with no fields does not write."""
        before = await stats_service.get_stats()

        after = await stats_service.update_stats(StatsUpdate())

        assert after == before


@pytest.mark.unit
class TestBadges:
    """Tests for replace_badges and unlock_badge."""

    async def test_replace_badges(self, patched_db):
        """Test replacing the badge array."""
        badges = default_badges()
        badges[0] = badges[0].model_copy(update={"unlocked": True, "unlocked_at": "2026-01-01T00:00:00Z"})

        stats = await stats_service.replace_badges(BadgesReplace(badges=badges))

        assert stats.badges[0].unlocked is True
        assert stats.unlocked_badge_count == 1

    async def test_replace_badges_checks_version(self, patched_db):
        """Test that replacing badges honours the expected version."""
        await stats_service.get_stats()

        with pytest.raises(ConflictError):
            await stats_service.replace_badges(BadgesReplace(badges=[], version=9))

    async def test_replace_badges_fills_missing(self, patched_db):
        """Test that an empty array stores the locked catalogue."""
        stats = await stats_service.replace_badges(BadgesReplace(badges=[]))

        assert [str(b.id) for b in stats.badges] == [str(b.id) for b in default_badges()]
        assert stats.unlocked_badge_count == 0

    async def test_update_badges_drops_unknown_ids(self, patched_db):
        """Test that a PATCH badge array is normalised before it is stored."""
        badges = default_badges()
        extra = badges[2].model_copy(update={"id": "gold-star"})

        stats = await stats_service.update_stats(StatsUpdate(badges=[badges[2], extra, badges[2]]))

        assert [str(b.id) for b in stats.badges] == ["first-task", "streak-3", "points-50", "tasks-10"]

    async def test_unlock_badge(self, patched_db):
        """Test force-unlocking a badge."""
        stats = await stats_service.unlock_badge("streak-3")

        badge = next(b for b in stats.badges if b.id == BadgeId.STREAK_3)
        assert badge.unlocked is True
        assert badge.unlocked_at is not None

    async def test_unlock_badge_twice_keeps_original_time(self, patched_db):
        """Test that unlocking an unlocked badge leaves it unchanged."""
        first = await stats_service.unlock_badge("tasks-10")
        second = await stats_service.unlock_badge("tasks-10")

        assert second.badges == first.badges
        assert second.version == first.version

    async def test_unlock_unknown_badge(self, patched_db):
        """Test that an unknown badge id raises NotFoundError."""
        with pytest.raises(NotFoundError) as exc_info:
            await stats_service.unlock_badge("gold-star")

        assert exc_info.value.message == "Badge not found"
        assert exc_info.value.code == ErrorCode.ERR_BADGE_NOT_FOUND


@pytest.mark.unit
class TestRecomputeFrom:
    """Tests for recompute_from function."""

    async def test_persists_engine_result(self, patched_db, utc_streaks):
        """Test that the aggregate mirrors the task set."""
        tasks = [completed_task(str(i), points=20, days_ago=i) for i in range(3)]

        result = await stats_service.recompute_from(snapshot(tasks), now=NOW)

        stats = result.stats
        assert stats.total_points == 60
        assert stats.current_streak == 3
        assert stats.longest_streak == 3
        assert stats.tasks_completed == 3
        assert stats.total_tasks == 3
        assert stats.last_completed_date == tasks[0].completed_at
        assert {str(b.id) for b in result.newly_unlocked} == {"first-task", "streak-3", "points-50"}

    async def test_rerun_unlocks_nothing(self, patched_db, utc_streaks):
        """Test that a second run over the same tasks keeps badges stable."""
        tasks = [completed_task("1", points=60)]

        first = await stats_service.recompute_from(snapshot(tasks), now=NOW)
        second = await stats_service.recompute_from(snapshot(tasks), now=NOW + timedelta(hours=1))

        assert second.newly_unlocked == []
        assert second.stats.badges == first.stats.badges
        assert second.stats.version == first.stats.version + 1

    async def test_longest_streak_is_kept(self, patched_db, utc_streaks):
        """Test that a stored longest streak survives a shorter recompute."""
        await stats_service.update_stats(StatsUpdate(current_streak=7))

        result = await stats_service.recompute_from(snapshot([completed_task("1", points=1)]), now=NOW)

        assert result.stats.current_streak == 1
        assert result.stats.longest_streak == 7

    async def test_publishes_statistics_changed(self, patched_db, utc_streaks):
        """Test that a recompute notifies subscribers once."""
        received = []
        event_bus.subscribe(STATISTICS_CHANGED, received.append)

        result = await stats_service.recompute_from(snapshot([completed_task("1", points=5)]), now=NOW)

        assert received == [result]

    async def test_get_summary(self, patched_db, utc_streaks):
        """Test the summary view after a recompute."""
        tasks = [completed_task("1", points=10)]
        pending = Task(id="2", title="Open", points=3, created_at="2026-03-01T00:00:00Z", updated_at="2026-03-01T00:00:00Z")
        await stats_service.recompute_from(snapshot([*tasks, pending]), now=NOW)

        summary = await stats_service.get_summary()

        assert summary.total_points == 10
        assert summary.tasks_completed == 1
        assert summary.total_tasks == 2
        assert summary.progress == 50
        assert summary.badges_unlocked == 1
        assert summary.badges_total == 4
