"""HTTP route definitions for the fleet service."""

from __future__ import annotations

import logging

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Body, Depends, Header, HTTPException, Request, Response, status
from pydantic import BaseModel

from fleet_schemas import Supplier, SupplierType, UserRole, Vehicle, VehicleType

from ..domain.errors import FleetError, NotFound, NotProvisioned, StoreError, ValidationError
from ..domain.labels import enum_options, supplier_type_label, user_role_label, vehicle_type_label
from ..domain.repositories import Caller
from ..domain.service import FleetService
from ..metrics import MUTATIONS, REQUEST_FAILURES
from ..security.identity import IdentityResolver

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1")


class VehicleResponse(BaseModel):
    """Serialised representation of a `Vehicle` row."""

    id: str
    account_id: str
    plate: str
    model: str
    year: int
    type: VehicleType
    type_label: str
    current_odometer: int
    created_at: datetime

    @classmethod
    def from_domain(cls, vehicle: Vehicle) -> "VehicleResponse":
        return cls(
            id=vehicle.id,
            account_id=vehicle.account_id,
            plate=vehicle.plate,
            model=vehicle.model,
            year=vehicle.year,
            type=vehicle.type,
            type_label=vehicle_type_label(vehicle.type),
            current_odometer=vehicle.current_odometer,
            created_at=vehicle.created_at,
        )


class SupplierResponse(BaseModel):
    """Serialised representation of a `Supplier` row."""

    id: str
    account_id: str
    name: str
    type: SupplierType
    type_label: str
    phone: str | None
    email: str | None
    address: str | None
    created_at: datetime

    @classmethod
    def from_domain(cls, supplier: Supplier) -> "SupplierResponse":
        return cls(
            id=supplier.id,
            account_id=supplier.account_id,
            name=supplier.name,
            type=supplier.type,
            type_label=supplier_type_label(supplier.type),
            phone=supplier.phone,
            email=supplier.email,
            address=supplier.address,
            created_at=supplier.created_at,
        )


class ProfileResponse(BaseModel):
    """The authenticated user and the account it belongs to."""

    user_id: str
    email: str
    role: UserRole
    role_label: str
    account_id: str
    account_name: str
    timezone: str


class StatsResponse(BaseModel):
    vehicles: int
    suppliers: int


class EnumOption(BaseModel):
    value: str
    label: str


identity = IdentityResolver()


def get_service(request: Request) -> FleetService:
    """Resolve the `FleetService` stored on the FastAPI application state."""
    service: FleetService = request.app.state.fleet_service
    return service


def get_caller(authorization: str | None = Header(default=None)) -> Caller:
    """Require an authenticated principal on the request."""
    principal_id = identity.current_principal_id(authorization)
    if principal_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "unauthenticated", "message": "authentication required"},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return Caller(principal_id=principal_id)


@router.get("/me", response_model=ProfileResponse)
def get_profile(
    caller: Caller = Depends(get_caller),
    service: FleetService = Depends(get_service),
) -> ProfileResponse:
    """Return the caller's user and account details."""
    try:
        profile = service.profile(caller)
    except FleetError as exc:
        raise _http_error(exc) from exc
    return ProfileResponse(
        user_id=profile.user.id,
        email=profile.user.email,
        role=profile.user.role,
        role_label=user_role_label(profile.user.role),
        account_id=profile.account.id,
        account_name=profile.account.name,
        timezone=profile.account.timezone,
    )


@router.get("/dashboard/stats", response_model=StatsResponse)
def get_stats(
    caller: Caller = Depends(get_caller),
    service: FleetService = Depends(get_service),
) -> StatsResponse:
    """Return how many vehicles and suppliers the caller's account has."""
    try:
        stats = service.stats(caller)
    except FleetError as exc:
        raise _http_error(exc) from exc
    return StatsResponse(vehicles=stats.vehicles, suppliers=stats.suppliers)


@router.get("/meta/enums", response_model=dict[str, list[EnumOption]])
def list_enum_options(caller: Caller = Depends(get_caller)) -> dict[str, list[dict[str, str]]]:
    """Return the selectable values and display labels of every closed-set field."""
    return enum_options()


@router.get("/vehicles", response_model=list[VehicleResponse])
def list_vehicles(
    caller: Caller = Depends(get_caller),
    service: FleetService = Depends(get_service),
) -> list[VehicleResponse]:
    """List the account's vehicles, newest first."""
    try:
        vehicles = service.vehicles.list(caller)
    except FleetError as exc:
        raise _http_error(exc) from exc
    return [VehicleResponse.from_domain(vehicle) for vehicle in vehicles]


@router.post("/vehicles", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
def create_vehicle(
    payload: dict[str, Any] = Body(...),
    caller: Caller = Depends(get_caller),
    service: FleetService = Depends(get_service),
) -> VehicleResponse:
    """Register a vehicle in the caller's account."""
    try:
        vehicle = service.vehicles.create(caller, payload)
    except FleetError as exc:
        raise _http_error(exc) from exc
    MUTATIONS.labels(kind="vehicles", operation="create").inc()
    return VehicleResponse.from_domain(vehicle)


@router.get("/vehicles/{vehicle_id}", response_model=VehicleResponse)
def get_vehicle(
    vehicle_id: str,
    caller: Caller = Depends(get_caller),
    service: FleetService = Depends(get_service),
) -> VehicleResponse:
    try:
        vehicle = service.vehicles.get(caller, vehicle_id)
    except FleetError as exc:
        raise _http_error(exc) from exc
    return VehicleResponse.from_domain(vehicle)


@router.put("/vehicles/{vehicle_id}", response_model=VehicleResponse)
def update_vehicle(
    vehicle_id: str,
    payload: dict[str, Any] = Body(...),
    caller: Caller = Depends(get_caller),
    service: FleetService = Depends(get_service),
) -> VehicleResponse:
    """Replace a vehicle's fields."""
    try:
        vehicle = service.vehicles.update(caller, vehicle_id, payload)
    except FleetError as exc:
        raise _http_error(exc) from exc
    MUTATIONS.labels(kind="vehicles", operation="update").inc()
    return VehicleResponse.from_domain(vehicle)


@router.delete("/vehicles/{vehicle_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_vehicle(
    vehicle_id: str,
    caller: Caller = Depends(get_caller),
    service: FleetService = Depends(get_service),
) -> Response:
    try:
        service.vehicles.remove(caller, vehicle_id)
    except FleetError as exc:
        raise _http_error(exc) from exc
    MUTATIONS.labels(kind="vehicles", operation="delete").inc()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/suppliers", response_model=list[SupplierResponse])
def list_suppliers(
    caller: Caller = Depends(get_caller),
    service: FleetService = Depends(get_service),
) -> list[SupplierResponse]:
    """List the account's suppliers, newest first."""
    try:
        suppliers = service.suppliers.list(caller)
    except FleetError as exc:
        raise _http_error(exc) from exc
    return [SupplierResponse.from_domain(supplier) for supplier in suppliers]


@router.post("/suppliers", response_model=SupplierResponse, status_code=status.HTTP_201_CREATED)
def create_supplier(
    payload: dict[str, Any] = Body(...),
    caller: Caller = Depends(get_caller),
    service: FleetService = Depends(get_service),
) -> SupplierResponse:
    """Register a supplier in the caller's account."""
    try:
        supplier = service.suppliers.create(caller, payload)
    except FleetError as exc:
        raise _http_error(exc) from exc
    MUTATIONS.labels(kind="suppliers", operation="create").inc()
    return SupplierResponse.from_domain(supplier)


@router.get("/suppliers/{supplier_id}", response_model=SupplierResponse)
def get_supplier(
    supplier_id: str,
    caller: Caller = Depends(get_caller),
    service: FleetService = Depends(get_service),
) -> SupplierResponse:
    try:
        supplier = service.suppliers.get(caller, supplier_id)
    except FleetError as exc:
        raise _http_error(exc) from exc
    return SupplierResponse.from_domain(supplier)


@router.put("/suppliers/{supplier_id}", response_model=SupplierResponse)
def update_supplier(
    supplier_id: str,
    payload: dict[str, Any] = Body(...),
    caller: Caller = Depends(get_caller),
    service: FleetService = Depends(get_service),
) -> SupplierResponse:
    """Replace a supplier's fields; blank optional fields are cleared."""
    try:
        supplier = service.suppliers.update(caller, supplier_id, payload)
    except FleetError as exc:
        raise _http_error(exc) from exc
    MUTATIONS.labels(kind="suppliers", operation="update").inc()
    return SupplierResponse.from_domain(supplier)


@router.delete("/suppliers/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_supplier(
    supplier_id: str,
    caller: Caller = Depends(get_caller),
    service: FleetService = Depends(get_service),
) -> Response:
    try:
        service.suppliers.remove(caller, supplier_id)
    except FleetError as exc:
        raise _http_error(exc) from exc
    MUTATIONS.labels(kind="suppliers", operation="delete").inc()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def _http_error(exc: FleetError) -> HTTPException:
    REQUEST_FAILURES.labels(code=exc.code).inc()
    detail: dict[str, Any] = {"code": exc.code, "message": exc.message}
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    if isinstance(exc, ValidationError):
        status_code = 422
        detail.update(field=exc.field, reason=exc.reason)
    elif isinstance(exc, NotProvisioned):
        status_code = status.HTTP_403_FORBIDDEN
    elif isinstance(exc, NotFound):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, StoreError):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        logger.error("store failure surfaced to client: %s", exc.cause)
    return HTTPException(status_code=status_code, detail=detail)
