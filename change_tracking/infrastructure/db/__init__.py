from .connection import (
    DatabaseManager,
    database_manager,
    get_session_dependency,
)

from .registry import EntityTypeRegistry, SqlCollection, build_default_registry
from .repositories import BaseRepository, ChangeRecordRepository
from .models.base import BaseModel, TimestampMixin

__all__ = [
    # Connection
    "DatabaseManager",
    "database_manager",
    "get_session_dependency",

    # Registry
    "EntityTypeRegistry",
    "SqlCollection",
    "build_default_registry",

    # Repository
    "BaseRepository",
    "ChangeRecordRepository",

    # Models
    "BaseModel",
    "TimestampMixin",
]
