from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.status import HTTP_400_BAD_REQUEST
from typing import Any, Dict, Optional, Union


class AppException(Exception):
    def __init__(self, message: str,
                 error_code: Optional[str] = None,
                 status_code: int = HTTP_400_BAD_REQUEST,
                 details: Optional[Dict[str, Any]] = None,):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.status_code}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', status_code={self.status_code})"


class NotFoundError(AppException):
    """Exception raised when a resource is not found."""

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[Union[str, int]] = None,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        error_code: str = "NOT_FOUND",
    ):
        self.resource = resource
        self.resource_id = resource_id

        if not message:
            if resource_id is not None:
                message = f"{resource} with ID '{resource_id}' not found"
            else:
                message = f"{resource} not found"

        exception_details = details or {}
        exception_details.update({
            "resource": resource,
            "resource_id": resource_id,
        })

        super().__init__(
            message=message,
            error_code=error_code,
            details=exception_details,
            status_code=404,
        )


class DatabaseError(AppException):
    """Exception raised for database-related errors."""

    def __init__(
        self,
        message: str = "Database error occurred",
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.operation = operation

        exception_details = details or {}
        if operation:
            exception_details["operation"] = operation

        super().__init__(
            message=message,
            error_code="DATABASE_ERROR",
            details=exception_details,
            status_code=500,
        )


class ChangeRecordNotFound(NotFoundError):
    """Raised when a change id or batch id has no stored records."""

    def __init__(self, change_id: Optional[int] = None, batch_id: Optional[str] = None):
        if batch_id is not None:
            super().__init__(
                resource="Change batch",
                resource_id=batch_id,
                error_code="CHANGE_RECORD_NOT_FOUND",
            )
        else:
            super().__init__(
                resource="Change record",
                resource_id=change_id,
                error_code="CHANGE_RECORD_NOT_FOUND",
            )


# Rollback errors

class RollbackError(AppException):
    """
    Base class of the closed rollback error taxonomy.

    Every failure of a rollback is raised as one of the subclasses below so
    callers can map it to a stable status code. Nothing is retried.
    """

    error_code_value = "ROLLBACK_ERROR"
    status_code_value = 422

    def __init__(
        self,
        message: str,
        change_id: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.change_id = change_id

        exception_details = details or {}
        if change_id is not None:
            exception_details["change_id"] = change_id

        super().__init__(
            message=message,
            error_code=self.error_code_value,
            details=exception_details,
            status_code=self.status_code_value,
        )


class UnknownEntityType(RollbackError):
    error_code_value = "UNKNOWN_ENTITY_TYPE"

    def __init__(self, entity_type: Any, change_id: Optional[int] = None):
        self.entity_type = entity_type
        super().__init__(
            f"Entity type '{entity_type}' is not registered for rollback",
            change_id=change_id,
            details={"entity_type": entity_type},
        )


class MissingSnapshot(RollbackError):
    error_code_value = "MISSING_SNAPSHOT"

    def __init__(self, change_id: Optional[int] = None):
        super().__init__(
            "Cannot perform 'create' rollback without old_data snapshot",
            change_id=change_id,
        )


class MissingField(RollbackError):
    error_code_value = "MISSING_FIELD"

    def __init__(self, message: str = "Cannot perform 'update' rollback without a field",
                 change_id: Optional[int] = None, field: Optional[str] = None):
        self.field = field
        super().__init__(message, change_id=change_id, details={"field": field} if field else None)


class UnsupportedAction(RollbackError):
    error_code_value = "UNSUPPORTED_ACTION"

    def __init__(self, action: Any, change_id: Optional[int] = None):
        self.action = action
        super().__init__(
            f"Unsupported rollback action: {action!r}",
            change_id=change_id,
            details={"action": action},
        )


class EntityNotFound(RollbackError):
    error_code_value = "ENTITY_NOT_FOUND"
    status_code_value = 404

    def __init__(self, entity_type: str, entity_id: Any, change_id: Optional[int] = None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"{entity_type} with ID '{entity_id}' not found",
            change_id=change_id,
            details={"entity_type": entity_type, "entity_id": entity_id},
        )


class DuplicateKey(RollbackError):
    error_code_value = "DUPLICATE_KEY"
    status_code_value = 409

    def __init__(self, entity_type: str, entity_id: Any, change_id: Optional[int] = None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"{entity_type} with ID '{entity_id}' already exists",
            change_id=change_id,
            details={"entity_type": entity_type, "entity_id": entity_id},
        )


class ConcurrentModification(RollbackError):
    error_code_value = "CONCURRENT_MODIFICATION"
    status_code_value = 409

    def __init__(self, entity_type: str, entity_id: Any, field: str,
                 expected: Any, actual: Any, change_id: Optional[int] = None):
        super().__init__(
            f"{entity_type} '{entity_id}' field '{field}' changed since it was recorded",
            change_id=change_id,
            details={
                "entity_type": entity_type,
                "entity_id": entity_id,
                "field": field,
                "expected": expected,
                "actual": actual,
            },
        )


class RollbackNotAvailable(RollbackError):
    error_code_value = "ROLLBACK_NOT_AVAILABLE"
    status_code_value = 409

    def __init__(self, change_id: Optional[int] = None):
        super().__init__("Rollback is not available for this change", change_id=change_id)


class StorageFailure(RollbackError):
    """Wraps storage errors without exposing them to the caller."""

    error_code_value = "STORAGE_FAILURE"
    status_code_value = 500

    def __init__(self, operation: str, change_id: Optional[int] = None):
        self.operation = operation
        super().__init__(
            "Storage operation failed during rollback",
            change_id=change_id,
            details={"operation": operation},
        )


class BatchRollbackFailed(RollbackError):
    """Raised when one record of a batch fails; nothing in the batch is applied."""

    error_code_value = "BATCH_ROLLBACK_FAILED"

    def __init__(self, batch_id: Optional[str], cause: RollbackError):
        self.batch_id = batch_id
        self.cause = cause
        self.status_code_value = cause.status_code
        super().__init__(
            f"Batch rollback failed at change {cause.change_id}: {cause.message}",
            change_id=cause.change_id,
            details={
                "batch_id": batch_id,
                "failed_change_id": cause.change_id,
                "reason": cause.error_code,
                "cause": cause.details,
            },
        )


def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": {
                "code": exc.error_code,
                "message": exc.message,
                "details": exc.details,
            },
        },
    )
