"""
API routes for reading the change history.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from change_tracking.application.services import group_by_batch
from change_tracking.core.exceptions import ChangeRecordNotFound
from change_tracking.core.response import APIResponse
from change_tracking.infrastructure.db import ChangeRecordRepository
from change_tracking.infrastructure.db.models.audit import BatchRead, ChangeRecordRead
from change_tracking.interfaces.dependencies import get_change_store


router = APIRouter(prefix="/change-history")


@router.get("", response_model=APIResponse[List[ChangeRecordRead]])
def list_changes(
    entity_type: Optional[str] = Query(None),
    entity_id: Optional[int] = Query(None),
    batch_id: Optional[str] = Query(None),
    user_id: Optional[int] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    store: ChangeRecordRepository = Depends(get_change_store),
):
    """
    List change records, newest first.

    Supports filtering by:
    - entity_type / entity_id: one entity's timeline
    - batch_id: the records of one logical operation
    - user_id: changes made by one user
    """
    records = store.list_changes(
        entity_type=entity_type,
        entity_id=entity_id,
        batch_id=batch_id,
        user_id=user_id,
        limit=limit,
        offset=offset,
    )
    return APIResponse.ok(
        message=f"Retrieved {len(records)} changes",
        data=[ChangeRecordRead.model_validate(record) for record in records],
    )


@router.get("/timeline", response_model=APIResponse[List[BatchRead]])
def get_timeline(
    entity_type: Optional[str] = Query(None),
    entity_id: Optional[int] = Query(None),
    user_id: Optional[int] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    store: ChangeRecordRepository = Depends(get_change_store),
):
    """List change records grouped into batches, newest batch first."""
    records = store.list_changes(
        entity_type=entity_type,
        entity_id=entity_id,
        user_id=user_id,
        limit=limit,
        offset=offset,
    )
    batches = group_by_batch(records)
    return APIResponse.ok(
        message=f"Retrieved {len(batches)} batches",
        data=[batch.to_read() for batch in batches],
    )


@router.get("/batches/{batch_id}", response_model=APIResponse[BatchRead])
def get_batch(
    batch_id: str,
    store: ChangeRecordRepository = Depends(get_change_store),
):
    """Get every record of one batch, oldest first."""
    records = store.get_by_batch(batch_id)
    if not records:
        raise ChangeRecordNotFound(batch_id=batch_id)
    batch = group_by_batch(records)[0]
    return APIResponse.ok(message="Batch retrieved successfully", data=batch.to_read())


@router.get("/{change_id}", response_model=APIResponse[ChangeRecordRead])
def get_change(
    change_id: int,
    store: ChangeRecordRepository = Depends(get_change_store),
):
    """Get a single change record."""
    record = store.get_or_404(change_id)
    return APIResponse.ok(
        message="Change retrieved successfully",
        data=ChangeRecordRead.model_validate(record),
    )
