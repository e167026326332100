"""Closed-set enumerations persisted as Postgres enum types."""

from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    owner = "owner"
    manager = "manager"
    driver = "driver"


class VehicleType(str, Enum):
    car = "car"
    van = "van"
    motorcycle = "motorcycle"
    truck = "truck"


class SupplierType(str, Enum):
    fuel = "fuel"
    repair = "repair"
