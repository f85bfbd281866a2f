from enum import Enum


class EntityType(str, Enum):
    """Business entity types whose changes can be rolled back."""
    CLIENT = "client"
    CONTRACT = "contract"
    SERVICE = "service"
    LICENSE_POOL = "license_pool"
    HARDWARE_ASSET = "hardware_asset"


class ChangeAction(str, Enum):
    """Row-level mutation kinds.

    Used both for the mutation that happened (``ChangeRecord.action``) and for
    the mutation a rollback performs (``ChangeRecord.inverse_action``).
    """
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"

    @property
    def inverse(self) -> "ChangeAction":
        if self is ChangeAction.CREATE:
            return ChangeAction.DELETE
        if self is ChangeAction.DELETE:
            return ChangeAction.CREATE
        return ChangeAction.UPDATE


class RollbackState(str, Enum):
    """Lifecycle of a single rollback attempt."""
    PENDING = "PENDING"
    RESOLVING = "RESOLVING"
    APPLYING = "APPLYING"
    COMMITTED = "COMMITTED"
    FAILED = "FAILED"
