"""
Change recorder.

The writing side of the change history: business operations call it after
each mutation so the change can later be listed and rolled back. Every
record is written with the inverse action that undoes it.
"""

import secrets
import string
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

from sqlmodel import Session, SQLModel

from change_tracking.application.services.base import BaseService
from change_tracking.core.enums import ChangeAction, EntityType
from change_tracking.infrastructure.db.models.audit import ChangeRecord
from change_tracking.infrastructure.db.repositories import ChangeRecordRepository

SKIPPED_FIELDS = frozenset({"id", "created_at", "updated_at"})

_BATCH_ALPHABET = string.ascii_lowercase + string.digits


@dataclass(frozen=True)
class FieldChange:
    field: str
    old_value: Any
    new_value: Any


def generate_batch_id() -> str:
    """Return an id such as ``batch_1718000000000_k3j9x0a2b``."""
    suffix = "".join(secrets.choice(_BATCH_ALPHABET) for _ in range(9))
    return f"batch_{int(time.time() * 1000)}_{suffix}"


def _as_dict(row: Union[SQLModel, Mapping[str, Any], None]) -> Dict[str, Any]:
    if row is None:
        return {}
    if isinstance(row, SQLModel):
        return row.model_dump(mode="json")
    return dict(row)


def detect_changes(
    old: Union[SQLModel, Mapping[str, Any], None],
    new: Union[SQLModel, Mapping[str, Any], None],
) -> List[FieldChange]:
    """
    Compare two row states column by column.

    ``id`` and timestamp columns are ignored. Values are compared in their
    JSON form, so a ``date`` and its ISO string are equal.
    """
    old_values = _as_dict(old)
    new_values = _as_dict(new)

    changes = []
    for key in sorted(set(old_values) | set(new_values)):
        if key in SKIPPED_FIELDS or key.endswith("_at"):
            continue
        if old_values.get(key) != new_values.get(key):
            changes.append(FieldChange(field=key, old_value=old_values.get(key), new_value=new_values.get(key)))
    return changes


class ChangeRecorder(BaseService):
    """Writes change records for creations, updates and deletions."""

    def __init__(
        self,
        db_session: Session,
        user_id: Optional[int] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        automatic: bool = False,
    ):
        super().__init__(db_session)
        self.store = ChangeRecordRepository(db_session)
        self.user_id = user_id
        self.ip_address = ip_address
        self.user_agent = user_agent
        self.automatic = automatic
        self.batch_id: Optional[str] = None

    def get_service_name(self) -> str:
        return "ChangeRecorder"

    @contextmanager
    def batch(self, batch_id: Optional[str] = None) -> Iterator[str]:
        """Give every record written inside the block the same batch id."""
        previous = self.batch_id
        self.batch_id = batch_id or generate_batch_id()
        try:
            yield self.batch_id
        finally:
            self.batch_id = previous

    def record_create(self, entity_type: Union[EntityType, str], row: SQLModel,
                      entity_name: Optional[str] = None) -> ChangeRecord:
        """Record a creation; rolling it back deletes the row."""
        entity_type = EntityType(entity_type).value
        data = row.model_dump(mode="json")
        record = self._build(
            entity_type=entity_type,
            entity_id=row.id,
            entity_name=entity_name or self._name_of(data),
            action=ChangeAction.CREATE,
            new_value=data,
            rollback_data={"action": ChangeAction.DELETE.value, "entity_type": entity_type, "entity_id": row.id},
        )
        self.log_operation("record_create", {"entity_type": entity_type, "entity_id": row.id})
        return self.store.add(record)

    def record_update(
        self,
        entity_type: Union[EntityType, str],
        entity_id: int,
        changes: List[FieldChange],
        entity_name: Optional[str] = None,
        full_old_data: Optional[Dict[str, Any]] = None,
    ) -> List[ChangeRecord]:
        """Record one change record per modified column."""
        entity_type = EntityType(entity_type).value
        records = []
        for change in changes:
            records.append(self._build(
                entity_type=entity_type,
                entity_id=entity_id,
                entity_name=entity_name,
                action=ChangeAction.UPDATE,
                field_name=change.field,
                old_value=change.old_value,
                new_value=change.new_value,
                rollback_data={
                    "action": ChangeAction.UPDATE.value,
                    "entity_type": entity_type,
                    "entity_id": entity_id,
                    "field": change.field,
                    "value": change.old_value,
                    "full_data": full_old_data,
                },
            ))
        self.log_operation("record_update", {
            "entity_type": entity_type,
            "entity_id": entity_id,
            "fields": [change.field for change in changes],
        })
        return self.store.add_all(records)

    def record_changes(self, entity_type: Union[EntityType, str], before: Union[SQLModel, Mapping[str, Any]],
                       after: SQLModel, entity_name: Optional[str] = None) -> List[ChangeRecord]:
        """Diff two states of a row and record every changed column.

        Pass ``before`` as a dict snapshot when ``after`` is the same object
        mutated in place.
        """
        old_data = _as_dict(before)
        return self.record_update(
            entity_type,
            after.id,
            detect_changes(old_data, after),
            entity_name=entity_name or self._name_of(old_data),
            full_old_data=old_data,
        )

    def record_delete(self, entity_type: Union[EntityType, str], row: SQLModel,
                      entity_name: Optional[str] = None) -> ChangeRecord:
        """Record a deletion; rolling it back reinserts the snapshot."""
        entity_type = EntityType(entity_type).value
        snapshot = row.model_dump(mode="json")
        record = self._build(
            entity_type=entity_type,
            entity_id=row.id,
            entity_name=entity_name or self._name_of(snapshot),
            action=ChangeAction.DELETE,
            old_data=snapshot,
            rollback_data={"action": ChangeAction.CREATE.value, "entity_type": entity_type, "data": snapshot},
        )
        self.log_operation("record_delete", {"entity_type": entity_type, "entity_id": row.id})
        return self.store.add(record)

    def _build(self, *, action: ChangeAction, **fields: Any) -> ChangeRecord:
        return ChangeRecord(
            action=action.value,
            inverse_action=action.inverse.value,
            automatic_change=self.automatic,
            batch_id=self.batch_id,
            user_id=self.user_id,
            ip_address=self.ip_address,
            user_agent=self.user_agent,
            **fields,
        )

    @staticmethod
    def _name_of(data: Mapping[str, Any]) -> Optional[str]:
        name = data.get("name")
        return str(name) if name is not None else None
