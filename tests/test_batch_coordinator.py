"""Tests for batch grouping and all-or-nothing batch rollback."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlmodel import select

from change_tracking.application.services import BatchCoordinator, ChangeRecorder, RollbackEngine, group_by_batch
from change_tracking.core.config import RollbackSettings
from change_tracking.core.exceptions import (
    BatchRollbackFailed,
    ChangeRecordNotFound,
    EntityNotFound,
    RollbackNotAvailable,
)
from change_tracking.infrastructure.db.models import ChangeRecord, Client


@pytest.fixture
def coordinator(rollback_engine):
    return BatchCoordinator(rollback_engine)


def _record(id, batch_id=None, seconds=0):
    return ChangeRecord(
        id=id,
        entity_type="client",
        entity_id=1,
        action="update",
        inverse_action="update",
        batch_id=batch_id,
        timestamp=datetime(2024, 3, 1, tzinfo=timezone.utc) + timedelta(seconds=seconds),
    )


class TestGroupByBatch:
    def test_records_without_batch_are_singletons(self):
        batches = group_by_batch([_record(1), _record(2)])

        assert [batch.is_singleton for batch in batches] == [True, True]
        assert [batch.records[0].id for batch in batches] == [1, 2]

    def test_batches_keep_first_appearance_and_sort_records(self):
        # Listing order is newest first
        records = [
            _record(5, "batch_b", seconds=50),
            _record(4, "batch_a", seconds=40),
            _record(3, None, seconds=30),
            _record(2, "batch_a", seconds=20),
            _record(1, "batch_b", seconds=10),
        ]

        batches = group_by_batch(records)

        assert [batch.batch_id for batch in batches] == ["batch_b", "batch_a", None]
        assert [record.id for record in batches[0].records] == [1, 5]
        assert [record.id for record in batches[1].records] == [2, 4]

    def test_rollback_order_is_newest_first_with_id_tiebreak(self):
        batch = group_by_batch([
            _record(2, "batch_x", seconds=0),
            _record(1, "batch_x", seconds=0),
            _record(3, "batch_x", seconds=5),
        ])[0]

        assert [record.id for record in batch.records] == [1, 2, 3]
        assert [record.id for record in batch.rollback_order()] == [3, 2, 1]
        assert batch.started_at == datetime(2024, 3, 1, tzinfo=timezone.utc)

    def test_to_read(self):
        batch = group_by_batch([_record(1, "batch_x"), _record(2, "batch_x", seconds=1)])[0]

        read = batch.to_read()

        assert read.batch_id == "batch_x"
        assert read.automatic_change is False
        assert [record.id for record in read.records] == [1, 2]


class TestBatchRollback:
    def test_reverts_every_record(self, session, coordinator, make_client):
        client = make_client(name="Acme", industry="Retail", status="active")
        before = {"name": client.name, "industry": client.industry, "status": client.status}

        recorder = ChangeRecorder(session, user_id=1)
        with recorder.batch() as batch_id:
            snapshot = client.model_dump(mode="json")
            client.name = "Acme Corp"
            client.industry = "Wholesale"
            client.status = "on_hold"
            session.add(client)
            session.flush()
            recorder.record_changes("client", snapshot, client)
        session.commit()

        result = coordinator.rollback_batch_by_id(batch_id)

        assert result.batch_id == batch_id
        assert len(result.applied) == 3
        restored = session.get(Client, client.id)
        assert {"name": restored.name, "industry": restored.industry, "status": restored.status} == before

    def test_failure_in_second_record_leaves_all_rows_unchanged(self, session, coordinator, make_client, make_record):
        first = make_client(id=1, name="Alpha Corp")
        third = make_client(id=3, name="Gamma Corp")

        records = [
            make_record(entity_id=1, field_name="name", old_value="Alpha", new_value="Alpha Corp", batch_id="batch_1"),
            make_record(entity_id=2, field_name="name", old_value="Beta", new_value="Beta Corp", batch_id="batch_1"),
            make_record(entity_id=3, field_name="name", old_value="Gamma", new_value="Gamma Corp", batch_id="batch_1"),
        ]

        with pytest.raises(BatchRollbackFailed) as excinfo:
            coordinator.rollback_batch_by_id("batch_1")

        error = excinfo.value
        assert isinstance(error.cause, EntityNotFound)
        assert error.change_id == records[1].id
        assert error.details["failed_change_id"] == records[1].id
        assert error.details["reason"] == "ENTITY_NOT_FOUND"
        assert error.status_code == 404

        session.expire_all()
        assert session.get(Client, first.id).name == "Alpha Corp"
        assert session.get(Client, third.id).name == "Gamma Corp"
        assert session.get(Client, 2) is None

    def test_unknown_batch(self, coordinator):
        with pytest.raises(ChangeRecordNotFound):
            coordinator.rollback_batch_by_id("batch_missing")

    def test_irreversible_member_rejects_batch(self, session, coordinator, make_client, make_record):
        make_client(id=1, name="Alpha Corp")
        make_record(entity_id=1, field_name="name", old_value="Alpha", new_value="Alpha Corp", batch_id="batch_2")
        blocked = make_record(entity_id=1, field_name="notes", inverse_action=None, batch_id="batch_2")

        with pytest.raises(BatchRollbackFailed) as excinfo:
            coordinator.rollback_batch_by_id("batch_2")

        assert isinstance(excinfo.value.cause, RollbackNotAvailable)
        assert excinfo.value.change_id == blocked.id
        assert session.get(Client, 1).name == "Alpha Corp"

    def test_create_and_update_in_one_batch(self, session, coordinator, make_client):
        recorder = ChangeRecorder(session)
        with recorder.batch("batch_onboarding") as batch_id:
            client = make_client(name="Wayne Enterprises")
            recorder.record_create("client", client)
            snapshot = client.model_dump(mode="json")
            client.notes = "Priority"
            session.add(client)
            session.flush()
            recorder.record_changes("client", snapshot, client)
        session.commit()

        coordinator.rollback_batch_by_id(batch_id)

        assert session.get(Client, client.id) is None
        remaining = session.exec(select(ChangeRecord).where(ChangeRecord.batch_id == batch_id)).all()
        assert len(remaining) == 2


def test_audited_batch_rollback_keeps_original_batch(session, registry, make_client):
    client = make_client(name="Acme", industry="Retail")
    recorder = ChangeRecorder(session)
    with recorder.batch() as batch_id:
        snapshot = client.model_dump(mode="json")
        client.name = "Acme Corp"
        client.industry = "Wholesale"
        session.add(client)
        session.flush()
        original_ids = [record.id for record in recorder.record_changes("client", snapshot, client)]
    session.commit()
    engine = RollbackEngine(session, registry, settings=RollbackSettings(record_rollbacks=True))
    coordinator = BatchCoordinator(engine)

    coordinator.rollback_batch_by_id(batch_id)

    batch = coordinator.get_batch(batch_id)
    assert [record.id for record in batch.records] == original_ids
    assert batch.to_read().automatic_change is False

    written = session.exec(select(ChangeRecord).where(ChangeRecord.automatic_change)).all()
    assert len(written) == 2
    assert len({record.batch_id for record in written}) == 1
    assert written[0].batch_id not in (None, batch_id)
    assert all(record.rollback_data["reverted_batch_id"] == batch_id for record in written)
    assert sorted(record.rollback_data["reverted_change_id"] for record in written) == sorted(original_ids)

    # The original batch can still be reverted
    assert len(coordinator.rollback_batch_by_id(batch_id).applied) == 2
