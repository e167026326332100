"""Display labels for closed-set enum values (pt-BR, as shown in the UI)."""

from __future__ import annotations

from enum import Enum

from fleet_schemas import SupplierType, UserRole, VehicleType

VEHICLE_TYPE_LABELS: dict[VehicleType, str] = {
    VehicleType.car: "Carro",
    VehicleType.van: "Van",
    VehicleType.motorcycle: "Motocicleta",
    VehicleType.truck: "Caminhão",
}

SUPPLIER_TYPE_LABELS: dict[SupplierType, str] = {
    SupplierType.fuel: "Posto de Combustível",
    SupplierType.repair: "Oficina",
}

USER_ROLE_LABELS: dict[UserRole, str] = {
    UserRole.owner: "Proprietário",
    UserRole.manager: "Gerente",
    UserRole.driver: "Motorista",
}

_LABELS: dict[type[Enum], dict] = {
    VehicleType: VEHICLE_TYPE_LABELS,
    SupplierType: SUPPLIER_TYPE_LABELS,
    UserRole: USER_ROLE_LABELS,
}


def vehicle_type_label(value: VehicleType | str) -> str:
    return VEHICLE_TYPE_LABELS[VehicleType(value)]


def supplier_type_label(value: SupplierType | str) -> str:
    return SUPPLIER_TYPE_LABELS[SupplierType(value)]


def user_role_label(value: UserRole | str) -> str:
    return USER_ROLE_LABELS[UserRole(value)]


def enum_options() -> dict[str, list[dict[str, str]]]:
    """Return ``{enum_name: [{value, label}, ...]}`` for every labelled enum, in declaration order."""
    return {
        enum_type.__name__: [
            {"value": member.value, "label": labels[member]} for member in enum_type
        ]
        for enum_type, labels in _LABELS.items()
    }
