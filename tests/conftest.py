"""Pytest configuration and shared fixtures."""

import logging
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest

from src.core import db_client
from src.core.config import Settings, settings
from src.core.schema import COLLECTIONS


logger = logging.getLogger(__name__)


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Override settings for testing."""
    return Settings(
        sqlite_db_path=str(tmp_path / "taskquest-test.db"),
        logfire_token=None,
        environment="test",
        timezone="UTC",
        points_seed=42,
    )


@pytest.fixture
async def sqlite_db(test_settings: Settings, monkeypatch) -> AsyncGenerator[Path]:
    """Provide an initialized, empty SQLite database in a temporary directory."""
    monkeypatch.setattr(settings, "sqlite_db_path", test_settings.sqlite_db_path)
    monkeypatch.setattr(settings, "timezone", test_settings.timezone)

    await db_client.init_db()
    logger.info("Initialized test database with collections %s", COLLECTIONS)

    yield db_client.get_db_path()

    await db_client.close_connection()
