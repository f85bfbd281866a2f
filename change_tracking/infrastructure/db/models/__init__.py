"""
Database models package.
"""

from .base import BaseModel, TimestampMixin, BaseModelWithTimestamp
from .audit import ChangeRecord, ChangeRecordRead, BatchRead
from .business import Client, Contract, Service, LicensePool, HardwareAsset

__all__ = [
    "BaseModel",
    "BaseModelWithTimestamp",
    "TimestampMixin",

    "ChangeRecord",
    "ChangeRecordRead",
    "BatchRead",

    "Client",
    "Contract",
    "Service",
    "LicensePool",
    "HardwareAsset",
]
