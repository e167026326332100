"""Table contracts for the account-owned entity kinds."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping

from fleet_schemas import SupplierType, VehicleType

# Managed by the store; never accepted from callers.
SYSTEM_COLUMNS = frozenset({"id", "account_id", "created_at"})

# Newest first; ``seq`` is an identity column that breaks created_at ties.
NEWEST_FIRST: tuple[tuple[str, bool], ...] = (("created_at", True), ("seq", True))


class EntityKind(str, Enum):
    vehicles = "vehicles"
    suppliers = "suppliers"


@dataclass(frozen=True, slots=True)
class TableSpec:
    """Column layout and write constraints of one scoped table."""

    table: str
    columns: tuple[str, ...]
    required: frozenset[str]
    enums: Mapping[str, type[Enum]] = field(default_factory=dict)

    @property
    def writable(self) -> tuple[str, ...]:
        return tuple(column for column in self.columns if column not in SYSTEM_COLUMNS)


TABLES: dict[EntityKind, TableSpec] = {
    EntityKind.vehicles: TableSpec(
        table="vehicles",
        columns=(
            "id",
            "account_id",
            "plate",
            "model",
            "year",
            "type",
            "current_odometer",
            "created_at",
        ),
        required=frozenset({"plate", "model", "year", "type"}),
        enums={"type": VehicleType},
    ),
    EntityKind.suppliers: TableSpec(
        table="suppliers",
        columns=(
            "id",
            "account_id",
            "name",
            "type",
            "phone",
            "email",
            "address",
            "created_at",
        ),
        required=frozenset({"name", "type"}),
        enums={"type": SupplierType},
    ),
}


def table_spec(kind: EntityKind | str) -> TableSpec:
    return TABLES[EntityKind(kind)]
