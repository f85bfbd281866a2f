from datetime import date
from typing import Optional

from sqlmodel import Field

from change_tracking.infrastructure.db.models.base import BaseModelWithTimestamp


class LicensePoolBase(BaseModelWithTimestamp):
    """Base model for license pools."""
    name: str = Field(max_length=255)
    vendor: str = Field(max_length=255)
    product_name: str = Field(max_length=255)
    license_type: Optional[str] = Field(default=None, max_length=50)
    total_licenses: int = Field(default=0)
    available_licenses: int = Field(default=0)
    renewal_date: Optional[date] = Field(default=None)
    is_active: bool = Field(default=True)


class LicensePool(LicensePoolBase, table=True):
    """License pool model for database storage."""
    __tablename__ = "license_pools"
