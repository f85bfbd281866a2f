"""pytest configuration for change_tracking tests."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlmodel import Session

from change_tracking.core.config import RollbackSettings
from change_tracking.application.services import RollbackEngine
from change_tracking.infrastructure.db import DatabaseManager, build_default_registry
from change_tracking.infrastructure.db.models import ChangeRecord, Client


@pytest.fixture
def db_manager():
    """In-memory SQLite database with every table created."""
    manager = DatabaseManager(database_url="sqlite:///:memory:")
    manager.create_tables()
    yield manager
    manager.dispose()


@pytest.fixture
def session(db_manager):
    with Session(db_manager.get_engine()) as session:
        yield session
        session.rollback()


@pytest.fixture
def registry():
    return build_default_registry()


@pytest.fixture
def rollback_engine(session, registry):
    return RollbackEngine(session, registry, settings=RollbackSettings())


@pytest.fixture
def make_client(session):
    """Insert and commit a client, returning the refreshed row."""
    def _make(**fields):
        values = {"name": "Acme", "industry": "Manufacturing", "status": "active"}
        values.update(fields)
        client = Client(**values)
        session.add(client)
        session.commit()
        session.refresh(client)
        return client
    return _make


@pytest.fixture
def make_record(session):
    """Insert and commit a change record.

    Records get strictly increasing timestamps in creation order unless one
    is given.
    """
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    counter = {"n": 0}

    def _make(**fields):
        counter["n"] += 1
        values = {
            "entity_type": "client",
            "action": "update",
            "inverse_action": "update",
            "timestamp": base + timedelta(seconds=counter["n"]),
        }
        values.update(fields)
        record = ChangeRecord(**values)
        session.add(record)
        session.commit()
        session.refresh(record)
        return record
    return _make

