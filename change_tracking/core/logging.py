import json
import logging
import logging.handlers
import socket
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from .config import Settings, get_settings


class JSONFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.hostname = self._get_hostname()

    def _get_hostname(self) -> str:
        """Get the hostname of the current machine."""
        try:
            return socket.gethostname()
        except OSError:
            return "unknown"

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "hostname": self.hostname,
            "process_id": record.process,
            "thread_id": record.thread,
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            log_entry.update(record.extra_fields)

        return json.dumps(log_entry, default=str, ensure_ascii=False)


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Setup application logging configuration."""
    settings = settings or get_settings()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.logging.level.upper(), logging.INFO))

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if settings.logging.json_format:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            fmt=settings.logging.format,
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if settings.logging.file:
        file_path = Path(settings.logging.file)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=file_path,
            maxBytes=settings.logging.max_bytes,
            backupCount=settings.logging.backup_count,
            encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.INFO)
    logging.getLogger("fastapi").setLevel(logging.INFO)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.database_echo else logging.WARNING
    )


def get_logger(name: str) -> logging.Logger:
    """Get a module or service logger."""
    return logging.getLogger(name)


class StructuredLogger:
    """Wrapper for structured logging with predefined fields."""

    def __init__(self, name: str, **default_fields):
        self.logger = logging.getLogger(name)
        self.default_fields = default_fields

    def _log(self, level: int, message: str, **fields):
        extra_fields = {**self.default_fields, **fields}
        self.logger.log(level, message, extra={"extra_fields": extra_fields})

    def info(self, message: str, **fields):
        self._log(logging.INFO, message, **fields)


def audit_log(
    action: str,
    resource: str,
    user_id: Optional[int] = None,
    details: Optional[Dict[str, Any]] = None,
    success: bool = True,
):
    """
    Log audit events for security and compliance.

    Args:
        action: Action performed (e.g., 'ROLLBACK', 'ROLLBACK_BATCH')
        resource: Resource affected (e.g., 'client', 'contract')
        user_id: ID of the user performing the action
        details: Additional details about the action
        success: Whether the action was successful
    """
    audit_logger = StructuredLogger("audit")

    audit_logger.info(
        "Audit event",
        action=action,
        resource=resource,
        user_id=user_id,
        success=success,
        details=details or {},
        event_type="audit"
    )
