from .rollback_service import RollbackEngine, RollbackAttempt
from .batch_service import Batch, BatchCoordinator, group_by_batch
from .change_recorder import ChangeRecorder, FieldChange, detect_changes, generate_batch_id

__all__ = [
    "RollbackEngine",
    "RollbackAttempt",
    "Batch",
    "BatchCoordinator",
    "group_by_batch",
    "ChangeRecorder",
    "FieldChange",
    "detect_changes",
    "generate_batch_id",
]
