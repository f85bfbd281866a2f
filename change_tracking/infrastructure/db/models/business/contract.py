from datetime import date
from typing import Optional

from sqlmodel import Field

from change_tracking.infrastructure.db.models.base import BaseModelWithTimestamp


class ContractBase(BaseModelWithTimestamp):
    """Base model for client contracts."""
    client_id: int = Field(foreign_key="clients.id", index=True)
    name: str = Field(max_length=255)
    start_date: date
    end_date: date
    status: str = Field(default="active", max_length=20, index=True)
    auto_renewal: bool = Field(default=False)
    renewal_terms: Optional[str] = Field(default=None)
    total_value: Optional[float] = Field(default=None)
    notes: Optional[str] = Field(default=None)


class Contract(ContractBase, table=True):
    """Contract model for database storage."""
    __tablename__ = "contracts"
