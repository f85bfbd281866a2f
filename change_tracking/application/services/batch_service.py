"""
Batch coordinator.

Change records sharing a ``batch_id`` come from one logical operation (one
form submission touching several fields, a bulk import, ...). They are shown
together and reverted together.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from change_tracking.application.services.rollback_service import RollbackEngine
from change_tracking.core.exceptions import (
    BatchRollbackFailed,
    ChangeRecordNotFound,
    RollbackError,
    RollbackNotAvailable,
)
from change_tracking.infrastructure.db.models.audit import BatchRead, ChangeRecord, ChangeRecordRead
from change_tracking.schemas.rollback import RollbackResult


def _order_key(record: ChangeRecord):
    return (record.timestamp, record.id or 0)


@dataclass
class Batch:
    """A singleton (no ``batch_id``) or the records of one batch, oldest first."""
    batch_id: Optional[str]
    records: List[ChangeRecord]

    @property
    def is_singleton(self) -> bool:
        return self.batch_id is None

    @property
    def started_at(self) -> datetime:
        return self.records[0].timestamp

    def rollback_order(self) -> List[ChangeRecord]:
        """Newest first, so dependent changes are undone before what they built on."""
        return sorted(self.records, key=_order_key, reverse=True)

    def to_read(self) -> BatchRead:
        return BatchRead(
            batch_id=self.batch_id,
            started_at=self.started_at,
            automatic_change=all(record.automatic_change for record in self.records),
            records=[ChangeRecordRead.model_validate(record) for record in self.records],
        )


def group_by_batch(records: Iterable[ChangeRecord]) -> List[Batch]:
    """
    Group records by ``batch_id``.

    Records without a batch id become singleton batches. Batches keep the
    position at which they first appear in ``records``; inside a batch,
    records are ordered by timestamp ascending.
    """
    batches: List[Batch] = []
    by_id: Dict[str, Batch] = {}

    for record in records:
        if record.batch_id is None:
            batches.append(Batch(batch_id=None, records=[record]))
            continue
        batch = by_id.get(record.batch_id)
        if batch is None:
            batch = Batch(batch_id=record.batch_id, records=[])
            by_id[record.batch_id] = batch
            batches.append(batch)
        batch.records.append(record)

    for batch in by_id.values():
        batch.records.sort(key=_order_key)

    return batches


class BatchCoordinator:
    """Reverts whole batches through a ``RollbackEngine``."""

    def __init__(self, engine: RollbackEngine):
        self.engine = engine
        self.store = engine.store
        self.logger = engine.logger

    def get_batch(self, batch_id: str) -> Batch:
        records = self.store.get_by_batch(batch_id)
        if not records:
            raise ChangeRecordNotFound(batch_id=batch_id)
        return Batch(batch_id=batch_id, records=records)

    def rollback_batch(self, batch: Batch) -> RollbackResult:
        """
        Revert every record of a batch in one transaction, newest first.

        Raises:
            BatchRollbackFailed: Naming the first record that failed; no record
                of the batch is applied
        """
        self.engine.log_operation("rollback_batch", {
            "batch_id": batch.batch_id,
            "records": len(batch.records),
        })
        try:
            return self.engine.rollback_records(batch.rollback_order(), batch_id=batch.batch_id)
        except RollbackError as e:
            self.logger.warning(f"Batch {batch.batch_id} rollback failed at change {e.change_id}: {e.error_code}")
            raise BatchRollbackFailed(batch.batch_id, e) from e

    def rollback_batch_by_id(self, batch_id: str) -> RollbackResult:
        """
        Load a batch from the store and revert it.

        Raises:
            ChangeRecordNotFound: If no record carries this batch id
            BatchRollbackFailed: If any record of the batch cannot be reverted
        """
        batch = self.get_batch(batch_id)
        irreversible = [record for record in batch.records if not record.is_reversible]
        if irreversible:
            raise BatchRollbackFailed(batch_id, RollbackNotAvailable(change_id=irreversible[0].id))
        return self.rollback_batch(batch)
