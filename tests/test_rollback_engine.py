"""Tests for reverting single change records."""

import logging
from datetime import date

import pytest
from sqlmodel import select

from change_tracking.application.services import ChangeRecorder, RollbackEngine
from change_tracking.core.config import RollbackSettings
from change_tracking.core.enums import ChangeAction, RollbackState
from change_tracking.core.exceptions import (
    ChangeRecordNotFound,
    ConcurrentModification,
    DuplicateKey,
    EntityNotFound,
    MissingField,
    MissingSnapshot,
    RollbackNotAvailable,
    StorageFailure,
    UnknownEntityType,
    UnsupportedAction,
)
from change_tracking.infrastructure.db.models import ChangeRecord, Client, Contract


def test_update_rollback_restores_previous_name(session, rollback_engine, make_client, make_record):
    make_client(id=42, name="Acme Corp")
    record = make_record(
        entity_id=42,
        field_name="name",
        old_value="Acme",
        new_value="Acme Corp",
    )

    result = rollback_engine.perform_rollback_by_id(record.id)

    assert result.state is RollbackState.COMMITTED
    assert [applied.change_id for applied in result.applied] == [record.id]
    assert result.applied[0].action is ChangeAction.UPDATE
    assert result.applied[0].field_name == "name"
    assert session.get(Client, 42).name == "Acme"


def test_update_rollback_changes_only_that_field(session, rollback_engine, make_client, make_record):
    client = make_client(name="Initech", industry="Software", domain="initech.example", notes="Key account")
    before = client.model_dump(mode="json")
    record = make_record(entity_id=client.id, field_name="industry", old_value="Consulting", new_value="Software")

    rollback_engine.perform_rollback(record)

    after = session.get(Client, client.id).model_dump(mode="json")
    assert after.pop("industry") == "Consulting"
    before.pop("industry")
    assert after == before


def test_create_then_rollback_removes_entity(session, rollback_engine, make_client):
    client = make_client(name="Hooli")
    recorder = ChangeRecorder(session, user_id=5)
    record = recorder.record_create("client", client)
    session.commit()

    result = rollback_engine.perform_rollback_by_id(record.id)

    assert result.applied[0].action is ChangeAction.DELETE
    assert session.get(Client, client.id) is None


def test_delete_then_rollback_restores_snapshot(session, rollback_engine, make_client):
    client = make_client(name="Umbrella", short_name="UMB", domain="umbrella.example", notes="Do not renew")
    contract = Contract(
        client_id=client.id,
        name="Support 2024",
        start_date=date(2024, 1, 1),
        end_date=date(2024, 12, 31),
        total_value=12000.5,
        auto_renewal=True,
    )
    session.add(contract)
    session.commit()
    session.refresh(contract)
    snapshot = contract.model_dump(mode="json")

    record = ChangeRecorder(session).record_delete("contract", contract)
    session.delete(contract)
    session.commit()
    assert session.get(Contract, snapshot["id"]) is None

    rollback_engine.perform_rollback_by_id(record.id)
    session.expire_all()

    restored = session.get(Contract, snapshot["id"])
    assert restored.model_dump(mode="json") == snapshot
    assert restored.start_date == date(2024, 1, 1)


def test_unknown_entity_type_has_no_side_effects(session, rollback_engine, make_client, make_record):
    make_client(id=1, name="Acme")
    record = make_record(entity_type="spaceship", entity_id=1, field_name="name",
                         old_value="Old", new_value="Acme")

    with pytest.raises(UnknownEntityType) as excinfo:
        rollback_engine.perform_rollback(record)

    assert excinfo.value.change_id == record.id
    assert session.get(Client, 1).name == "Acme"
    assert len(session.exec(select(Client)).all()) == 1
    assert len(session.exec(select(ChangeRecord)).all()) == 1


def test_recreate_without_snapshot(rollback_engine, make_record):
    record = make_record(entity_id=3, action="delete", inverse_action="create")

    with pytest.raises(MissingSnapshot) as excinfo:
        rollback_engine.perform_rollback(record)

    assert excinfo.value.status_code == 422
    assert excinfo.value.details["change_id"] == record.id


def test_recreate_existing_row_is_duplicate(session, rollback_engine, make_client, make_record):
    make_client(id=9, name="Still Here")
    record = make_record(
        entity_id=9,
        action="delete",
        inverse_action="create",
        old_data={"id": 9, "name": "Was Deleted", "status": "active"},
    )

    with pytest.raises(DuplicateKey) as excinfo:
        rollback_engine.perform_rollback(record)

    assert excinfo.value.status_code == 409
    assert session.get(Client, 9).name == "Still Here"


def test_recreate_uses_entity_id_when_snapshot_has_none(session, rollback_engine, make_record):
    record = make_record(
        entity_id=77,
        action="delete",
        inverse_action="create",
        old_data={"name": "Soylent", "status": "inactive"},
    )

    rollback_engine.perform_rollback(record)

    assert session.get(Client, 77).status == "inactive"


def test_update_without_field(rollback_engine, make_client, make_record):
    client = make_client()
    record = make_record(entity_id=client.id, old_value="x", new_value="y")

    with pytest.raises(MissingField):
        rollback_engine.perform_rollback(record)


def test_update_of_unknown_column(rollback_engine, make_client, make_record):
    client = make_client()
    record = make_record(entity_id=client.id, field_name="colour", old_value="red", new_value="blue")

    with pytest.raises(MissingField) as excinfo:
        rollback_engine.perform_rollback(record)

    assert excinfo.value.details["field"] == "colour"


def test_unsupported_inverse_action(rollback_engine, make_client, make_record):
    client = make_client()
    record = make_record(entity_id=client.id, inverse_action="archive", field_name="name")

    with pytest.raises(UnsupportedAction) as excinfo:
        rollback_engine.perform_rollback(record)

    assert excinfo.value.error_code == "UNSUPPORTED_ACTION"


@pytest.mark.parametrize("action,inverse_action", [("create", "delete"), ("update", "update")])
def test_missing_target_row(rollback_engine, make_record, action, inverse_action):
    record = make_record(entity_id=404, action=action, inverse_action=inverse_action,
                         field_name="name", old_value="a", new_value="b")

    with pytest.raises(EntityNotFound) as excinfo:
        rollback_engine.perform_rollback(record)

    assert excinfo.value.status_code == 404
    assert excinfo.value.details["entity_id"] == 404


def test_bad_stored_value_is_storage_failure(session, rollback_engine, make_client, make_record):
    make_client(id=5, name="Acme")
    record = make_record(entity_type="client", entity_id=5, field_name="name",
                         old_value={"not": "a string"}, new_value="Acme")

    with pytest.raises(StorageFailure) as excinfo:
        rollback_engine.perform_rollback(record)

    assert excinfo.value.status_code == 500
    assert excinfo.value.details == {"operation": "update", "change_id": record.id}
    assert session.get(Client, 5).name == "Acme"


def test_rollback_by_id_unknown_record(rollback_engine):
    with pytest.raises(ChangeRecordNotFound):
        rollback_engine.perform_rollback_by_id(12345)


def test_rollback_by_id_of_irreversible_record(rollback_engine, make_record):
    record = make_record(entity_id=1, inverse_action=None)

    with pytest.raises(RollbackNotAvailable):
        rollback_engine.perform_rollback_by_id(record.id)


class TestVerifyCurrentValue:
    def test_changed_since_recorded(self, session, registry, make_client, make_record):
        client = make_client(name="Acme Holdings")
        record = make_record(entity_id=client.id, field_name="name", old_value="Acme", new_value="Acme Corp")
        engine = RollbackEngine(session, registry, settings=RollbackSettings(verify_current_value=True))

        with pytest.raises(ConcurrentModification) as excinfo:
            engine.perform_rollback(record)

        assert excinfo.value.details["actual"] == "Acme Holdings"
        assert session.get(Client, client.id).name == "Acme Holdings"

    def test_unchanged_since_recorded(self, session, registry, make_client, make_record):
        client = make_client(name="Acme Corp")
        record = make_record(entity_id=client.id, field_name="name", old_value="Acme", new_value="Acme Corp")
        engine = RollbackEngine(session, registry, settings=RollbackSettings(verify_current_value=True))

        engine.perform_rollback(record)

        assert session.get(Client, client.id).name == "Acme"

    def test_new_value_that_fits_no_column_value(self, session, registry, make_client, make_record):
        client = make_client(name="Acme Holdings")
        record = make_record(entity_id=client.id, field_name="name", old_value="Acme", new_value=None)
        engine = RollbackEngine(session, registry, settings=RollbackSettings(verify_current_value=True))

        with pytest.raises(ConcurrentModification) as excinfo:
            engine.perform_rollback(record)

        assert excinfo.value.status_code == 409
        assert excinfo.value.details["expected"] is None
        assert session.get(Client, client.id).name == "Acme Holdings"

    def test_disabled_overwrites_unconditionally(self, session, rollback_engine, make_client, make_record):
        client = make_client(name="Acme Holdings")
        record = make_record(entity_id=client.id, field_name="name", old_value="Acme", new_value="Acme Corp")

        rollback_engine.perform_rollback(record)

        assert session.get(Client, client.id).name == "Acme"


def test_record_rollbacks_appends_automatic_records(session, registry, make_client, make_record):
    client = make_client(name="Acme Corp")
    record = make_record(entity_id=client.id, field_name="name", old_value="Acme", new_value="Acme Corp")
    engine = RollbackEngine(session, registry, settings=RollbackSettings(record_rollbacks=True), user_id=3)

    engine.perform_rollback(record)

    written = session.exec(select(ChangeRecord).where(ChangeRecord.id != record.id)).one()
    assert written.automatic_change is True
    assert written.inverse_action is None
    assert written.old_value == "Acme Corp"
    assert written.new_value == "Acme"
    assert written.rollback_data == {"reverted_change_id": record.id}
    assert written.user_id == 3


def test_rollback_is_audited(caplog, rollback_engine, make_client, make_record):
    client = make_client(name="Acme Corp")
    record = make_record(entity_id=client.id, field_name="name", old_value="Acme", new_value="Acme Corp")

    with caplog.at_level(logging.INFO, logger="audit"):
        rollback_engine.perform_rollback(record)

    audit = [entry for entry in caplog.records if entry.name == "audit"]
    assert len(audit) == 1
    assert audit[0].extra_fields["action"] == "ROLLBACK"
    assert audit[0].extra_fields["success"] is True
    assert audit[0].extra_fields["details"]["change_ids"] == [record.id]
