"""Pytest configuration and fixtures for unit tests."""

import pytest
from fastapi.testclient import TestClient

from src.core.events import event_bus
from src.main import app
from src.services import notification_service, task_service
from tests.unit.mocks import InMemoryDBClient


@pytest.fixture
def in_memory_db():
    """Provides a fresh InMemoryDBClient for each test."""
    return InMemoryDBClient()


@pytest.fixture
def patched_db(monkeypatch, in_memory_db):
    """Patches src.core.db_client functions to use InMemoryDBClient."""

    # Patch all db_client functions
    monkeypatch.setattr("src.core.db_client.create_record", in_memory_db.create_record)
    monkeypatch.setattr("src.core.db_client.get_record", in_memory_db.get_record)
    monkeypatch.setattr("src.core.db_client.update_record", in_memory_db.update_record)
    monkeypatch.setattr("src.core.db_client.delete_record", in_memory_db.delete_record)
    monkeypatch.setattr("src.core.db_client.list_records", in_memory_db.list_records)
    monkeypatch.setattr("src.core.db_client.get_first_record", in_memory_db.get_first_record)

    return in_memory_db


@pytest.fixture(autouse=True)
def clean_event_bus():
    """Ensure no subscribers leak between tests."""
    event_bus.clear()
    yield
    event_bus.clear()


@pytest.fixture(autouse=True)
def seeded_points():
    """Make generated task points reproducible."""
    task_service.reseed_points(1234)


@pytest.fixture
def client(patched_db) -> TestClient:
    """Create a test client for the FastAPI app backed by the in-memory database.

    The lifespan is not run, so no SQLite file is created; the notification
    subscriber is registered here instead.
    """
    unsubscribers = notification_service.register_subscribers(event_bus)
    yield TestClient(app)
    for unsubscribe in unsubscribers:
        unsubscribe()


@pytest.fixture
def sample_task_data():
    """Returns sample task data for testing."""
    return {
        "title": "Write report",
        "description": "Quarterly numbers",
        "points": 10,
    }
