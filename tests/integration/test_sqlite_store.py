"""Integration tests against a real SQLite database file."""

import pytest

from src.core import db_client
from src.core.errors import ConflictError, NotFoundError
from src.core.schema import init_db
from src.domain.create_models import TaskCreate
from src.domain.task import TaskFilter, TaskStatus
from src.domain.update_models import StatsUpdate, TaskUpdate
from src.services import stats_service, task_service


@pytest.mark.integration
class TestSchema:
    """Tests for schema creation."""

    async def test_init_db_is_idempotent(self, sqlite_db):
        """Test that running schema sync twice is harmless."""
        await init_db()

        assert sqlite_db.exists()
        assert await db_client.list_records(collection="tasks") == []

    async def test_check_constraints(self, sqlite_db):
        """Test that the table rejects an invalid status."""
        with pytest.raises(db_client.DatabaseError):
            await db_client.create_record(
                collection="tasks",
                data={"title": "bad", "description": "", "status": "archived", "points": 1},
            )


@pytest.mark.integration
class TestRecordStore:
    """Tests for db_client CRUD against SQLite."""

    async def test_crud_round_trip(self, sqlite_db):
        """Test create, read, update and delete of a task row."""
        created = await db_client.create_record(
            collection="tasks",
            data={"title": "Row", "description": "", "status": "pending", "points": 3},
        )
        assert created["id"] == "1"
        assert created["created_at"] == created["updated_at"]

        updated = await db_client.update_record(collection="tasks", record_id=created["id"], data={"points": 4})
        assert updated["points"] == 4
        assert updated["created_at"] == created["created_at"]

        await db_client.delete_record(collection="tasks", record_id=created["id"])
        with pytest.raises(db_client.RecordNotFoundError):
            await db_client.get_record(collection="tasks", record_id=created["id"])

    async def test_missing_rows(self, sqlite_db):
        """Test update and delete of rows that do not exist."""
        with pytest.raises(db_client.RecordNotFoundError):
            await db_client.update_record(collection="tasks", record_id="41", data={"points": 1})
        with pytest.raises(db_client.RecordNotFoundError):
            await db_client.delete_record(collection="tasks", record_id="41")
        with pytest.raises(db_client.RecordNotFoundError):
            await db_client.get_record(collection="tasks", record_id="not-a-number")

    async def test_filter_sort_and_paging(self, sqlite_db):
        """Test listing with a filter, descending sort and pages."""
        for i in range(5):
            await db_client.create_record(
                collection="tasks",
                data={"title": f"task {i}", "description": "", "status": "pending" if i % 2 else "completed", "points": i},
            )

        pending = await db_client.list_records(collection="tasks", filter_query='status = "pending"', sort="-created_at")
        page_two = await db_client.list_records(collection="tasks", page=2, per_page=2, sort="-created_at")
        matching = await db_client.list_records(collection="tasks", filter_query='status = "completed" && title = "task 4"')

        assert [record["title"] for record in pending] == ["task 3", "task 1"]
        assert [record["title"] for record in page_two] == ["task 2", "task 1"]
        assert [record["title"] for record in matching] == ["task 4"]


@pytest.mark.integration
class TestServicesOnSqlite:
    """End-to-end service flows persisted in SQLite."""

    async def test_completion_flow(self, sqlite_db):
        """Test that completing tasks persists points, streak and badges."""
        first = await task_service.create_task(payload=TaskCreate(title="One", points=30))
        second = await task_service.create_task(payload=TaskCreate(title="Two", points=25))

        await task_service.toggle_task(task_id=first.id)
        await task_service.update_task(task_id=second.id, payload=TaskUpdate(status=TaskStatus.COMPLETED))

        stats = await stats_service.get_stats()
        assert stats.total_points == 55
        assert stats.tasks_completed == 2
        assert stats.total_tasks == 2
        assert stats.current_streak == 1
        unlocked = {str(badge.id) for badge in stats.badges if badge.unlocked}
        assert unlocked == {"first-task", "points-50"}

        completed = await task_service.list_tasks(task_filter=TaskFilter.COMPLETED)
        assert {task.title for task in completed} == {"One", "Two"}

    async def test_badges_survive_reload(self, sqlite_db):
        """Test that badge JSON stored in SQLite reloads identically."""
        await stats_service.unlock_badge("tasks-10")
        before = await stats_service.get_stats()

        await db_client.close_connection()
        after = await stats_service.get_stats()

        assert after.badges == before.badges
        assert after.version == before.version

    async def test_version_conflict_on_sqlite(self, sqlite_db):
        """Test optimistic concurrency on the persisted record."""
        stats = await stats_service.get_stats()
        await stats_service.update_stats(StatsUpdate(total_points=10, version=stats.version))

        with pytest.raises(ConflictError):
            await stats_service.update_stats(StatsUpdate(total_points=20, version=stats.version))

    async def test_missing_task(self, sqlite_db):
        """Test that service lookups map missing rows to NotFoundError."""
        with pytest.raises(NotFoundError):
            await task_service.get_task(task_id="123")
