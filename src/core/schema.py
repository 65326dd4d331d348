"""SQLite schema management (code-first approach)."""

import logging

import aiosqlite

from src.core.db_client import get_connection


logger = logging.getLogger(__name__)


# Central list of all collections in the schema
COLLECTIONS = [
    "tasks",
    "user_stats",
]


_COLLECTION_DDL = {
    "tasks": """
        CREATE TABLE IF NOT EXISTS tasks (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL CHECK (length(title) BETWEEN 1 AND 200),
            description TEXT NOT NULL DEFAULT '' CHECK (length(description) <= 1000),
            status TEXT NOT NULL DEFAULT 'pending' CHECK (status IN ('pending', 'completed')),
            points INTEGER NOT NULL DEFAULT 0 CHECK (points >= 0),
            completed_at TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """,
    "user_stats": """
        CREATE TABLE IF NOT EXISTS user_stats (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL UNIQUE DEFAULT 'default',
            total_points INTEGER NOT NULL DEFAULT 0,
            current_streak INTEGER NOT NULL DEFAULT 0,
            longest_streak INTEGER NOT NULL DEFAULT 0,
            last_completed_date TEXT,
            tasks_completed INTEGER NOT NULL DEFAULT 0,
            total_tasks INTEGER NOT NULL DEFAULT 0,
            badges TEXT NOT NULL DEFAULT '[]',
            version INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """,
}

_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks (status)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_created_at ON tasks (created_at DESC)",
]


async def init_db(*, db_path: str | None = None) -> None:
    """Create all collections and indexes if they do not exist (idempotent)."""
    logger.info("Starting schema sync...")

    conn = await get_connection(db_path=db_path)
    try:
        for collection_name in COLLECTIONS:
            await conn.execute(_COLLECTION_DDL[collection_name])
            logger.info("Collection %s is up to date", collection_name)

        for index_ddl in _INDEXES:
            await conn.execute(index_ddl)

        await conn.commit()
    except aiosqlite.Error as e:
        logger.error("schema_sync_failed", extra={"error": str(e)})
        raise

    logger.info("Schema sync complete")
