from .base import BaseRepository
from .change_record_repository import ChangeRecordRepository

__all__ = [
    "BaseRepository",
    "ChangeRecordRepository",
]
