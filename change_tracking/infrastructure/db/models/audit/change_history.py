from datetime import datetime
from typing import Optional, Dict, Any, List

from sqlmodel import SQLModel, Field, Column, JSON
from sqlalchemy import DateTime

from change_tracking.infrastructure.db.models.base import BaseModel, utc_now


class ChangeRecordBase(SQLModel):
    """Base model for change history records."""
    entity_type: str = Field(max_length=50, index=True, description="Tag of the collection that changed")
    entity_id: int = Field(index=True, description="Primary key of the row that changed")
    entity_name: Optional[str] = Field(default=None, max_length=255, description="Display name at change time")
    action: str = Field(
        max_length=10,
        description="Mutation that happened: create, update, delete"
    )
    inverse_action: Optional[str] = Field(
        default=None,
        max_length=10,
        description="Mutation a rollback performs: create, update, delete"
    )
    field_name: Optional[str] = Field(default=None, max_length=100, description="Column concerned by an update")
    old_value: Optional[Any] = Field(
        default=None,
        sa_column=Column(JSON),
        description="Column value before the change"
    )
    new_value: Optional[Any] = Field(
        default=None,
        sa_column=Column(JSON),
        description="Column value after the change"
    )
    old_data: Optional[Dict[str, Any]] = Field(
        default=None,
        sa_column=Column(JSON),
        description="Full row snapshot taken before a deletion"
    )
    automatic_change: bool = Field(default=False, description="System generated rather than user initiated")
    batch_id: Optional[str] = Field(default=None, max_length=64, index=True, description="Groups one logical operation")
    rollback_data: Optional[Dict[str, Any]] = Field(
        default=None,
        sa_column=Column(JSON),
        description="Auxiliary rollback payload carried for display and audit"
    )
    user_id: Optional[int] = Field(default=None, index=True, description="User who made the change")
    ip_address: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=255)


class ChangeRecord(ChangeRecordBase, BaseModel, table=True):
    """
    One recorded mutation of a business entity.

    ``inverse_action`` holds the action that *undoes* the change, written at
    record time: an entity creation is stored with ``inverse_action="delete"``,
    a deletion with ``inverse_action="create"`` plus the row snapshot in
    ``old_data``, and each updated column as its own record with
    ``inverse_action="update"``. Records are append-only.
    """
    __tablename__ = "change_history"

    timestamp: datetime = Field(
        default_factory=utc_now,
        sa_type=DateTime(timezone=True),
        nullable=False,
        index=True,
        description="Time the change was recorded"
    )

    @property
    def is_reversible(self) -> bool:
        return self.inverse_action is not None


class ChangeRecordRead(ChangeRecordBase):
    """Schema for reading change records."""
    id: int
    timestamp: datetime


class BatchRead(SQLModel):
    """Schema for a group of change records from one logical operation."""
    batch_id: Optional[str]
    started_at: datetime
    automatic_change: bool
    records: List[ChangeRecordRead]
