from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header
from sqlmodel import Session

from change_tracking.application.services import BatchCoordinator, RollbackEngine
from change_tracking.core.config import Settings, get_settings
from change_tracking.infrastructure.db import (
    ChangeRecordRepository,
    EntityTypeRegistry,
    build_default_registry,
    get_session_dependency,
)


@lru_cache
def get_entity_registry() -> EntityTypeRegistry:
    """Registry shared by all requests; it is read-only after construction."""
    return build_default_registry()


def get_actor_id(x_user_id: Optional[int] = Header(default=None)) -> Optional[int]:
    """Id of the operator, as forwarded by the authenticating proxy."""
    return x_user_id


def get_change_store(db: Session = Depends(get_session_dependency)) -> ChangeRecordRepository:
    return ChangeRecordRepository(db)


def get_rollback_engine(
    db: Session = Depends(get_session_dependency),
    registry: EntityTypeRegistry = Depends(get_entity_registry),
    settings: Settings = Depends(get_settings),
    actor_id: Optional[int] = Depends(get_actor_id),
) -> RollbackEngine:
    return RollbackEngine(db, registry, settings=settings.rollback, user_id=actor_id)


def get_batch_coordinator(engine: RollbackEngine = Depends(get_rollback_engine)) -> BatchCoordinator:
    return BatchCoordinator(engine)
