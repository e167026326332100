"""Field contracts applied to drafts before anything reaches the store."""

from __future__ import annotations

from datetime import date
from typing import Any, Mapping, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StrictInt, field_validator
from pydantic import ValidationError as PydanticValidationError

from fleet_schemas import SupplierType, VehicleType

from .errors import ValidationError

MIN_VEHICLE_YEAR = 1990
# Upper bound of the integer odometer column.
MAX_ODOMETER = 2_147_483_647


class VehicleDraft(BaseModel):
    """Validated inputs required to register or replace a vehicle."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    plate: str = Field(min_length=1)
    model: str = Field(min_length=1)
    year: StrictInt
    type: VehicleType
    current_odometer: StrictInt = Field(default=0, ge=0, le=MAX_ODOMETER)

    @field_validator("year")
    @classmethod
    def _year_in_range(cls, value: int) -> int:
        ceiling = date.today().year + 1
        if not MIN_VEHICLE_YEAR <= value <= ceiling:
            raise ValueError(f"year must be between {MIN_VEHICLE_YEAR} and {ceiling}")
        return value


class SupplierDraft(BaseModel):
    """Validated inputs required to register or replace a supplier.

    Blank optional fields collapse to ``None`` so the store never keeps an
    empty string that means "not provided".
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    name: str = Field(min_length=1)
    type: SupplierType
    phone: str | None = None
    email: EmailStr | None = None
    address: str | None = None

    @field_validator("phone", "email", "address", mode="before")
    @classmethod
    def _blank_as_absent(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


DraftT = TypeVar("DraftT", bound=BaseModel)


def parse_draft(contract: type[DraftT], draft: DraftT | Mapping[str, Any]) -> DraftT:
    """Coerce ``draft`` into ``contract`` or raise a field-scoped ``ValidationError``."""
    if isinstance(draft, contract):
        return draft
    try:
        return contract.model_validate(draft)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "payload"
        raise ValidationError(field, first["msg"]) from exc


def draft_payload(draft: BaseModel) -> dict[str, Any]:
    """Serialise a draft into the column/value mapping written by the store."""
    return draft.model_dump(mode="json")
