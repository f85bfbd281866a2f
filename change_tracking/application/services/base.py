"""
Base service class providing common functionality for all services.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from sqlmodel import Session

from change_tracking.core.logging import get_logger


class BaseService(ABC):
    """Base class for all services."""

    def __init__(self, db_session: Session):
        self.db_session = db_session
        self.logger = get_logger(f"change_tracking.services.{self.get_service_name()}")

    def log_operation(self, operation: str, details: Optional[Dict[str, Any]] = None) -> None:
        """Log service operation."""
        log_msg = f"Service operation: {operation}"
        if details:
            log_msg += f" - Details: {details}"
        self.logger.info(log_msg)

    @abstractmethod
    def get_service_name(self) -> str:
        """Return the service name."""
        pass
