from .change_history import ChangeRecord, ChangeRecordRead, BatchRead

__all__ = [
    "ChangeRecord",
    "ChangeRecordRead",
    "BatchRead",
]
