"""
API routes for rolling back recorded changes.

Failures surface as the rollback error taxonomy through the application
exception handler, so a rejected rollback never leaves partial state.
"""

from fastapi import APIRouter, Depends

from change_tracking.application.services import BatchCoordinator, RollbackEngine
from change_tracking.core.response import APIResponse
from change_tracking.interfaces.dependencies import get_batch_coordinator, get_rollback_engine
from change_tracking.schemas.rollback import RollbackResult


router = APIRouter(prefix="/rollback")


@router.post("/batch/{batch_id}", response_model=APIResponse[RollbackResult])
def rollback_batch(
    batch_id: str,
    coordinator: BatchCoordinator = Depends(get_batch_coordinator),
):
    """Revert every change of a batch, all or nothing."""
    result = coordinator.rollback_batch_by_id(batch_id)
    return APIResponse.ok(
        message=f"Rolled back {len(result.applied)} changes",
        data=result,
    )


@router.post("/{change_id}", response_model=APIResponse[RollbackResult])
def rollback_change(
    change_id: int,
    engine: RollbackEngine = Depends(get_rollback_engine),
):
    """Revert a single change."""
    result = engine.perform_rollback_by_id(change_id)
    return APIResponse.ok(message="Change rolled back successfully", data=result)
