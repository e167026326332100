"""Row models for account-owned fleet entities."""

from __future__ import annotations

from datetime import datetime
from pydantic import BaseModel

from .enums import SupplierType, VehicleType


class Vehicle(BaseModel):
    id: str
    account_id: str
    plate: str
    model: str
    year: int
    type: VehicleType
    current_odometer: int = 0
    created_at: datetime


class Supplier(BaseModel):
    id: str
    account_id: str
    name: str
    type: SupplierType
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    created_at: datetime
