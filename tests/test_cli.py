"""Tests for the management commands."""

import pytest

from change_tracking.core.config import get_settings
from change_tracking.infrastructure.db import DatabaseManager
from change_tracking.infrastructure.db.models import ChangeRecord, Client
from change_tracking.interfaces.cli import main as cli
from change_tracking.interfaces.cli.commands import base


@pytest.fixture
def database_url(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'cli.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    monkeypatch.setattr(base, "setup_logging", lambda settings=None: None)
    get_settings.cache_clear()
    yield url
    get_settings.cache_clear()


@pytest.fixture
def seeded(database_url):
    cli.main(["initdb"])
    manager = DatabaseManager(database_url=database_url)
    try:
        with manager.get_session() as session:
            session.add(Client(id=42, name="Acme Corp"))
            record = ChangeRecord(
                entity_type="client",
                entity_id=42,
                entity_name="Acme",
                action="update",
                inverse_action="update",
                field_name="name",
                old_value="Acme",
                new_value="Acme Corp",
            )
            session.add(record)
            session.flush()
            change_id = record.id
    finally:
        manager.dispose()
    return change_id


def test_commands_are_discovered():
    commands = cli.CLIManager().available_commands
    assert {"initdb", "migrate", "history", "rollback"} <= set(commands)
    assert "base" not in commands


def test_initdb_drop_recreates_empty_tables(seeded, database_url):
    cli.main(["initdb", "--drop"])

    manager = DatabaseManager(database_url=database_url)
    try:
        with manager.get_session() as session:
            assert session.get(Client, 42) is None
            assert session.get(ChangeRecord, seeded) is None
    finally:
        manager.dispose()


def test_help_lists_commands(capsys):
    cli.main([])
    out = capsys.readouterr().out
    assert "rollback" in out
    assert "history" in out


def test_history(seeded, capsys):
    capsys.readouterr()
    cli.main(["history", "--entity-type", "client"])

    out = capsys.readouterr().out
    assert f"[{seeded}]" in out
    assert "client#42 (Acme)" in out
    assert "'Acme' -> 'Acme Corp'" in out


def test_rollback(seeded, database_url, capsys):
    cli.main(["rollback", str(seeded)])

    assert "Rolled back 1 changes" in capsys.readouterr().out
    manager = DatabaseManager(database_url=database_url)
    try:
        with manager.get_session() as session:
            assert session.get(Client, 42).name == "Acme"
    finally:
        manager.dispose()


def test_rollback_failure_exits_non_zero(seeded, capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["rollback", "999"])

    assert excinfo.value.code == 1
    assert "CHANGE_RECORD_NOT_FOUND" in capsys.readouterr().out


def test_unknown_command_exits(capsys):
    with pytest.raises(SystemExit):
        cli.main(["frobnicate"])
    assert "Unknown command" in capsys.readouterr().out
