from typing import List, Optional

from pydantic import BaseModel, Field

from change_tracking.core.enums import ChangeAction, RollbackState


class AppliedRollback(BaseModel):
    """One row mutation performed by a rollback."""
    change_id: Optional[int] = Field(default=None, description="Change record that was reverted")
    entity_type: str
    entity_id: int
    action: ChangeAction = Field(..., description="Mutation the rollback performed")
    field_name: Optional[str] = None


class RollbackResult(BaseModel):
    """Outcome of a committed rollback of one record or one batch."""
    state: RollbackState = RollbackState.COMMITTED
    batch_id: Optional[str] = None
    applied: List[AppliedRollback] = Field(default_factory=list)
