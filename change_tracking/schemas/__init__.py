from .rollback import AppliedRollback, RollbackResult

__all__ = [
    "AppliedRollback",
    "RollbackResult",
]
