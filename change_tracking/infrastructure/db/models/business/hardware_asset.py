from datetime import date
from typing import Optional

from sqlmodel import Field

from change_tracking.infrastructure.db.models.base import BaseModelWithTimestamp


class HardwareAssetBase(BaseModelWithTimestamp):
    """Base model for hardware assets."""
    name: str = Field(max_length=255)
    category: str = Field(max_length=100)
    manufacturer: Optional[str] = Field(default=None, max_length=100)
    model: Optional[str] = Field(default=None, max_length=100)
    serial_number: Optional[str] = Field(default=None, max_length=100, index=True)
    purchase_date: Optional[date] = Field(default=None)
    purchase_cost: Optional[float] = Field(default=None)
    warranty_expiry: Optional[date] = Field(default=None)
    location: Optional[str] = Field(default=None, max_length=255)
    status: str = Field(default="available", max_length=20)
    notes: Optional[str] = Field(default=None)


class HardwareAsset(HardwareAssetBase, table=True):
    """Hardware asset model for database storage."""
    __tablename__ = "hardware_assets"
