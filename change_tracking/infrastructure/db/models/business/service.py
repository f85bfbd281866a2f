from typing import Optional

from sqlmodel import Field

from change_tracking.infrastructure.db.models.base import BaseModelWithTimestamp


class ServiceBase(BaseModelWithTimestamp):
    """Base model for catalogue services."""
    name: str = Field(max_length=255, index=True)
    category: str = Field(max_length=100)
    description: Optional[str] = Field(default=None)
    delivery_model: str = Field(default="remote", max_length=50)
    base_price: Optional[float] = Field(default=None)
    is_active: bool = Field(default=True)


class Service(ServiceBase, table=True):
    """Service model for database storage."""
    __tablename__ = "services"
