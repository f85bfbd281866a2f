from .client import Client
from .contract import Contract
from .service import Service
from .license_pool import LicensePool
from .hardware_asset import HardwareAsset

__all__ = [
    "Client",
    "Contract",
    "Service",
    "LicensePool",
    "HardwareAsset",
]
