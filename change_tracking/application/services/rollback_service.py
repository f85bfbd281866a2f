"""
Rollback engine.

Applies the stored inverse of a change record to the collection its entity
type resolves to. Each call is one unit of work: every row mutation of the
call is flushed inside the session's transaction and committed together, or
the transaction is rolled back and nothing is visible.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from change_tracking.application.services.base import BaseService
from change_tracking.application.services.change_recorder import generate_batch_id
from change_tracking.core.config import RollbackSettings, get_settings
from change_tracking.core.enums import ChangeAction, RollbackState
from change_tracking.core.exceptions import (
    ConcurrentModification,
    DatabaseError,
    DuplicateKey,
    EntityNotFound,
    MissingField,
    MissingSnapshot,
    RollbackError,
    RollbackNotAvailable,
    StorageFailure,
    UnsupportedAction,
)
from change_tracking.core.logging import audit_log
from change_tracking.infrastructure.db.models.audit import ChangeRecord
from change_tracking.infrastructure.db.registry import EntityTypeRegistry, SqlCollection
from change_tracking.infrastructure.db.repositories import ChangeRecordRepository
from change_tracking.schemas.rollback import AppliedRollback, RollbackResult


@dataclass
class RollbackAttempt:
    """Tracks one record through PENDING -> RESOLVING -> APPLYING -> COMMITTED | FAILED."""
    record: ChangeRecord
    state: RollbackState = RollbackState.PENDING
    action: Optional[ChangeAction] = None
    reason: Optional[str] = None
    snapshot: Optional[Dict[str, Any]] = field(default=None, repr=False)

    def to_applied(self) -> AppliedRollback:
        return AppliedRollback(
            change_id=self.record.id,
            entity_type=self.record.entity_type,
            entity_id=self.record.entity_id,
            action=self.action,
            field_name=self.record.field_name if self.action is ChangeAction.UPDATE else None,
        )


class RollbackEngine(BaseService):
    """Reverts change records against the collections of an ``EntityTypeRegistry``."""

    def __init__(
        self,
        db_session: Session,
        registry: EntityTypeRegistry,
        settings: Optional[RollbackSettings] = None,
        user_id: Optional[int] = None,
    ):
        super().__init__(db_session)
        self.registry = registry
        self.settings = settings or get_settings().rollback
        self.user_id = user_id
        self.store = ChangeRecordRepository(db_session)

    def get_service_name(self) -> str:
        return "RollbackEngine"

    def perform_rollback(self, record: ChangeRecord) -> RollbackResult:
        """
        Revert a single change record.

        Raises:
            RollbackError: One of the rollback error kinds; nothing is applied
        """
        self.log_operation("perform_rollback", {
            "change_id": record.id,
            "entity_type": record.entity_type,
            "entity_id": record.entity_id,
            "inverse_action": record.inverse_action,
        })
        return self.rollback_records([record])

    def perform_rollback_by_id(self, change_id: int) -> RollbackResult:
        """
        Load a change record from the store and revert it.

        Raises:
            ChangeRecordNotFound: If no record has this id
            RollbackNotAvailable: If the record carries no inverse action
            RollbackError: Any failure of the rollback itself
        """
        record = self.store.get_or_404(change_id)
        if not record.is_reversible:
            raise RollbackNotAvailable(change_id=change_id)
        return self.perform_rollback(record)

    def rollback_records(self, records: Sequence[ChangeRecord], batch_id: Optional[str] = None) -> RollbackResult:
        """
        Revert records in the given order inside a single transaction.

        The first failure rolls the whole transaction back and is re-raised.
        """
        attempts: List[RollbackAttempt] = []
        try:
            for record in records:
                attempt = RollbackAttempt(record=record)
                attempts.append(attempt)
                self._apply(attempt)

            if self.settings.record_rollbacks:
                self._record_rollbacks(attempts, batch_id)

            applied = [attempt.to_applied() for attempt in attempts]
            self.db_session.commit()

        except RollbackError as e:
            self._audit(attempts, batch_id, success=False, reason=e.error_code)
            self.db_session.rollback()
            raise

        except SQLAlchemyError as e:
            self.logger.error(f"Rollback commit failed: {e}")
            self._audit(attempts, batch_id, success=False, reason="STORAGE_FAILURE")
            self.db_session.rollback()
            raise StorageFailure("commit") from e

        except DatabaseError as e:
            self.logger.error(f"Recording rollback history failed: {e.message}")
            self._audit(attempts, batch_id, success=False, reason="STORAGE_FAILURE")
            self.db_session.rollback()
            raise StorageFailure("record_rollback") from e

        for attempt in attempts:
            self._transition(attempt, RollbackState.COMMITTED)

        self._audit(attempts, batch_id, success=True)
        return RollbackResult(
            state=RollbackState.COMMITTED,
            batch_id=batch_id,
            applied=applied,
        )

    def _apply(self, attempt: RollbackAttempt) -> None:
        record = attempt.record
        try:
            self._transition(attempt, RollbackState.RESOLVING)
            collection = self.registry.resolve(record.entity_type)
            attempt.action = self._inverse_action(record)

            self._transition(attempt, RollbackState.APPLYING)
            if attempt.action is ChangeAction.DELETE:
                attempt.snapshot = self._undo_create(collection, record)
            elif attempt.action is ChangeAction.CREATE:
                self._undo_delete(collection, record)
            else:
                self._undo_update(collection, record)

        except RollbackError as e:
            if e.change_id is None:
                e.change_id = record.id
                e.details["change_id"] = record.id
            self._fail(attempt, e.error_code)
            raise

        except (SQLAlchemyError, ValidationError) as e:
            self.logger.error(f"Storage error reverting change {record.id}: {e}")
            self._fail(attempt, "STORAGE_FAILURE")
            operation = attempt.action.value if attempt.action else "resolve"
            raise StorageFailure(operation, change_id=record.id) from e

    @staticmethod
    def _inverse_action(record: ChangeRecord) -> ChangeAction:
        try:
            return ChangeAction(record.inverse_action)
        except ValueError:
            raise UnsupportedAction(record.inverse_action, change_id=record.id) from None

    def _undo_create(self, collection: SqlCollection, record: ChangeRecord) -> Dict[str, Any]:
        row = collection.get(self.db_session, record.entity_id)
        if row is None:
            raise EntityNotFound(record.entity_type, record.entity_id, change_id=record.id)
        snapshot = row.model_dump(mode="json")
        collection.delete_by_id(self.db_session, record.entity_id)
        return snapshot

    def _undo_delete(self, collection: SqlCollection, record: ChangeRecord) -> None:
        if record.old_data is None:
            raise MissingSnapshot(change_id=record.id)

        row = dict(record.old_data)
        row.setdefault("id", record.entity_id)
        if collection.exists(self.db_session, row["id"]):
            raise DuplicateKey(record.entity_type, row["id"], change_id=record.id)

        collection.insert(self.db_session, row)

    def _undo_update(self, collection: SqlCollection, record: ChangeRecord) -> None:
        if not record.field_name:
            raise MissingField(change_id=record.id)

        if not collection.has_field(record.field_name):
            raise MissingField(
                f"Field '{record.field_name}' does not exist on {record.entity_type}",
                change_id=record.id,
                field=record.field_name,
            )

        row = collection.get(self.db_session, record.entity_id)
        if row is None:
            raise EntityNotFound(record.entity_type, record.entity_id, change_id=record.id)

        if self.settings.verify_current_value:
            current = getattr(row, record.field_name)
            try:
                expected = collection.coerce(record.field_name, record.new_value)
            except ValidationError:
                # Not a valid column value, so the column cannot still hold it
                expected = record.new_value
            if current != expected:
                raise ConcurrentModification(
                    record.entity_type,
                    record.entity_id,
                    record.field_name,
                    expected=record.new_value,
                    actual=current,
                    change_id=record.id,
                )

        collection.update_field(self.db_session, record.entity_id, record.field_name, record.old_value)

    def _record_rollbacks(self, attempts: List[RollbackAttempt], batch_id: Optional[str]) -> None:
        """Append one automatic change record per applied rollback.

        Reverting a batch is its own operation: its records get a fresh batch
        id and point back to the reverted batch through ``rollback_data``.
        """
        audit_batch_id = generate_batch_id() if batch_id else None
        for attempt in attempts:
            record = attempt.record
            audit_record = ChangeRecord(
                entity_type=record.entity_type,
                entity_id=record.entity_id,
                entity_name=record.entity_name,
                action=attempt.action.value,
                field_name=record.field_name if attempt.action is ChangeAction.UPDATE else None,
                old_value=record.new_value if attempt.action is ChangeAction.UPDATE else None,
                new_value=record.old_value if attempt.action is ChangeAction.UPDATE else None,
                old_data=attempt.snapshot,
                automatic_change=True,
                batch_id=audit_batch_id,
                rollback_data=self._reverted(record, batch_id),
                user_id=self.user_id,
            )
            self.store.add(audit_record)

    @staticmethod
    def _reverted(record: ChangeRecord, batch_id: Optional[str]) -> Dict[str, Any]:
        reverted: Dict[str, Any] = {"reverted_change_id": record.id}
        if batch_id:
            reverted["reverted_batch_id"] = batch_id
        return reverted

    def _transition(self, attempt: RollbackAttempt, state: RollbackState) -> None:
        self.logger.debug(f"Rollback of change {attempt.record.id}: {attempt.state.value} -> {state.value}")
        attempt.state = state

    def _fail(self, attempt: RollbackAttempt, reason: str) -> None:
        self._transition(attempt, RollbackState.FAILED)
        attempt.reason = reason

    def _audit(self, attempts: List[RollbackAttempt], batch_id: Optional[str], success: bool,
               reason: Optional[str] = None) -> None:
        entity_types = sorted({attempt.record.entity_type for attempt in attempts})
        audit_log(
            action="ROLLBACK_BATCH" if batch_id else "ROLLBACK",
            resource=",".join(entity_types),
            user_id=self.user_id,
            details={
                "batch_id": batch_id,
                "change_ids": [attempt.record.id for attempt in attempts],
                "states": {str(attempt.record.id): attempt.state.value for attempt in attempts},
                "reason": reason,
            },
            success=success,
        )
