"""
Change record store.

Append-only: records are inserted by the recording side and read back for
timelines and rollback. There is no update or delete.
"""

import logging
from typing import List, Optional

from sqlmodel import Session, select
from sqlalchemy.exc import SQLAlchemyError

from ....core.exceptions import ChangeRecordNotFound, DatabaseError
from ..models.audit import ChangeRecord
from .base import BaseRepository

logger = logging.getLogger(__name__)


class ChangeRecordRepository(BaseRepository[ChangeRecord]):
    """Repository for ``change_history`` records."""

    def __init__(self, session: Session):
        super().__init__(ChangeRecord, session)

    def add(self, record: ChangeRecord) -> ChangeRecord:
        return self.create(record)

    def add_all(self, records: List[ChangeRecord]) -> List[ChangeRecord]:
        return self.create_many(records)

    def get_or_404(self, change_id: int) -> ChangeRecord:
        record = self.get(change_id)
        if record is None:
            raise ChangeRecordNotFound(change_id=change_id)
        return record

    def get_by_batch(self, batch_id: str) -> List[ChangeRecord]:
        """Records of one batch in the order they were recorded."""
        statement = (
            select(ChangeRecord)
            .where(ChangeRecord.batch_id == batch_id)
            .order_by(ChangeRecord.timestamp.asc(), ChangeRecord.id.asc())
        )
        return self._fetch(statement, "get_by_batch")

    def get_by_entity(self, entity_type: str, entity_id: int, limit: int = 100) -> List[ChangeRecord]:
        """Change timeline of one entity, newest first."""
        return self.list_changes(entity_type=entity_type, entity_id=entity_id, limit=limit)

    def list_changes(
        self,
        *,
        entity_type: Optional[str] = None,
        entity_id: Optional[int] = None,
        batch_id: Optional[str] = None,
        user_id: Optional[int] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[ChangeRecord]:
        """Filtered listing, newest first."""
        statement = select(ChangeRecord)

        if entity_type is not None:
            statement = statement.where(ChangeRecord.entity_type == entity_type)
        if entity_id is not None:
            statement = statement.where(ChangeRecord.entity_id == entity_id)
        if batch_id is not None:
            statement = statement.where(ChangeRecord.batch_id == batch_id)
        if user_id is not None:
            statement = statement.where(ChangeRecord.user_id == user_id)

        statement = (
            statement
            .order_by(ChangeRecord.timestamp.desc(), ChangeRecord.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return self._fetch(statement, "list_changes")

    def _fetch(self, statement, operation: str) -> List[ChangeRecord]:
        try:
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            logger.error(f"Failed to {operation} change records: {e}")
            raise DatabaseError(f"Failed to read change records: {str(e)}", operation=operation)
