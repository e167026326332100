"""Shared schema exports."""

from .account import Account, User
from .enums import SupplierType, UserRole, VehicleType
from .fleet import Supplier, Vehicle

__all__ = [
    "Account",
    "User",
    "UserRole",
    "Vehicle",
    "VehicleType",
    "Supplier",
    "SupplierType",
]
