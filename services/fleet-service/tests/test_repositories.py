"""Entity repository behaviour across two tenants."""

from __future__ import annotations

from datetime import date

import pytest

from app.domain.contracts import MAX_ODOMETER, SupplierDraft, VehicleDraft
from app.domain.errors import NotFound, NotProvisioned, StoreError, ValidationError
from app.domain.repositories import Caller
from fleet_schemas import SupplierType, VehicleType

from conftest import account_of

CIVIC = {"plate": "ABC-1234", "model": "Civic", "year": 2020, "type": "car", "current_odometer": 15000}


@pytest.fixture
def tenants(provision):
    return provision("Conta X"), provision("Conta Y")


def test_created_vehicle_is_listed_first_only_for_its_account(service, tenants):
    account_x, account_y = tenants
    service.vehicles.create(account_x, {**CIVIC, "plate": "OLD-0001"})
    civic = service.vehicles.create(account_x, CIVIC)

    listed = service.vehicles.list(account_x)
    assert [vehicle.id for vehicle in listed][0] == civic.id
    assert listed[0].plate == "ABC-1234"
    assert listed[0].type is VehicleType.car
    assert service.vehicles.list(account_y) == []


def test_foreign_account_cannot_touch_entity(service, tenants):
    account_x, account_y = tenants
    civic = service.vehicles.create(account_x, CIVIC)

    with pytest.raises(NotFound):
        service.vehicles.get(account_y, civic.id)
    with pytest.raises(NotFound):
        service.vehicles.update(account_y, civic.id, {**CIVIC, "model": "Corolla"})
    with pytest.raises(NotFound):
        service.vehicles.remove(account_y, civic.id)

    assert service.vehicles.get(account_x, civic.id).model == "Civic"


def test_create_then_get_returns_normalised_draft(service, tenants):
    account_x, _ = tenants
    created = service.suppliers.create(
        account_x,
        {"name": "Posto Shell Centro", "type": "fuel", "phone": "", "email": "", "address": "Rua A, 10"},
    )

    fetched = service.suppliers.get(account_x, created.id)
    assert fetched == created
    assert fetched.phone is None
    assert fetched.email is None
    assert fetched.address == "Rua A, 10"
    assert fetched.type is SupplierType.fuel


def test_update_reflects_fields_and_keeps_account(service, rows, tenants):
    account_x, account_y = tenants
    civic = service.vehicles.create(account_x, CIVIC)

    updated = service.vehicles.update(
        account_x,
        civic.id,
        {**CIVIC, "model": "Civic Touring", "current_odometer": 16500, "account_id": account_of(rows, account_y)},
    )

    fetched = service.vehicles.get(account_x, civic.id)
    assert fetched == updated
    assert fetched.model == "Civic Touring"
    assert fetched.current_odometer == 16500
    assert fetched.account_id == account_of(rows, account_x)
    assert fetched.created_at == civic.created_at


def test_update_clears_blank_optional_supplier_fields(service, tenants):
    account_x, _ = tenants
    supplier = service.suppliers.create(
        account_x, {"name": "Oficina do Zé", "type": "repair", "phone": "(11) 99999-9999"}
    )
    updated = service.suppliers.update(
        account_x, supplier.id, {"name": "Oficina do Zé", "type": "repair", "phone": ""}
    )
    assert updated.phone is None


def test_remove_then_get_and_remove_again_are_not_found(service, tenants):
    account_x, _ = tenants
    civic = service.vehicles.create(account_x, CIVIC)

    service.vehicles.remove(account_x, civic.id)
    with pytest.raises(NotFound):
        service.vehicles.get(account_x, civic.id)
    with pytest.raises(NotFound):
        service.vehicles.remove(account_x, civic.id)


INVALID_VEHICLE_FIELDS = [
    ({"year": 1989}, "year"),
    ({"year": date.today().year + 2}, "year"),
    ({"current_odometer": -1}, "current_odometer"),
    ({"type": "bus"}, "type"),
    ({"plate": ""}, "plate"),
    ({"model": "   "}, "model"),
    ({"year": "2020"}, "year"),
    ({"current_odometer": MAX_ODOMETER + 1}, "current_odometer"),
]


@pytest.mark.parametrize("override, field", INVALID_VEHICLE_FIELDS)
def test_vehicle_create_rejects_invalid_fields_before_any_store_call(service, rows, tenants, override, field):
    account_x, _ = tenants
    rows.calls.clear()
    with pytest.raises(ValidationError) as excinfo:
        service.vehicles.create(account_x, {**CIVIC, **override})
    assert excinfo.value.field == field
    assert rows.calls == []


@pytest.mark.parametrize("override, field", INVALID_VEHICLE_FIELDS)
def test_vehicle_update_rejects_invalid_fields_before_any_store_call(service, rows, tenants, override, field):
    account_x, _ = tenants
    civic = service.vehicles.create(account_x, CIVIC)
    rows.calls.clear()
    with pytest.raises(ValidationError) as excinfo:
        service.vehicles.update(account_x, civic.id, {**CIVIC, **override})
    assert excinfo.value.field == field
    assert rows.calls == []
    assert service.vehicles.get(account_x, civic.id) == civic


def test_vehicle_odometer_accepts_column_maximum(service, tenants):
    account_x, _ = tenants
    vehicle = service.vehicles.create(account_x, {**CIVIC, "current_odometer": MAX_ODOMETER})
    assert vehicle.current_odometer == MAX_ODOMETER


def test_vehicle_year_bounds_are_inclusive(service, tenants):
    account_x, _ = tenants
    service.vehicles.create(account_x, {**CIVIC, "year": 1990})
    service.vehicles.create(account_x, {**CIVIC, "year": date.today().year + 1})
    assert len(service.vehicles.list(account_x)) == 2


def test_supplier_email_validation(service, tenants):
    account_x, _ = tenants
    with pytest.raises(ValidationError) as excinfo:
        service.suppliers.create(account_x, {"name": "Posto", "type": "fuel", "email": "not-an-email"})
    assert excinfo.value.field == "email"

    omitted = service.suppliers.create(account_x, {"name": "Posto", "type": "fuel"})
    blank = service.suppliers.create(account_x, {"name": "Posto", "type": "fuel", "email": ""})
    valid = service.suppliers.create(
        account_x, {"name": "Posto", "type": "fuel", "email": "contato@fornecedor.com"}
    )
    assert omitted.email is None
    assert blank.email is None
    assert valid.email == "contato@fornecedor.com"


def test_supplier_type_outside_closed_set(service, tenants):
    account_x, _ = tenants
    with pytest.raises(ValidationError) as excinfo:
        service.suppliers.create(account_x, {"name": "Padaria", "type": "bakery"})
    assert excinfo.value.field == "type"


def test_repository_accepts_prebuilt_drafts(service, tenants):
    account_x, _ = tenants
    vehicle = service.vehicles.create(
        account_x, VehicleDraft(plate="TRK-0001", model="Actros", year=2019, type=VehicleType.truck)
    )
    supplier = service.suppliers.create(account_x, SupplierDraft(name="Oficina", type=SupplierType.repair))
    assert vehicle.current_odometer == 0
    assert supplier.type is SupplierType.repair


def test_unprovisioned_principal_is_rejected(service):
    stranger = Caller(principal_id="5b0c7d2e-0f6a-4d8e-9a59-2f1b3c4d5e6f")
    with pytest.raises(NotProvisioned):
        service.vehicles.list(stranger)
    with pytest.raises(NotProvisioned):
        service.suppliers.create(stranger, {"name": "Posto", "type": "fuel"})


def test_store_fault_propagates_without_retry(service, rows, tenants):
    account_x, _ = tenants
    rows.fail_with = StoreError(ConnectionError("connection reset"))
    rows.calls.clear()

    with pytest.raises(StoreError) as excinfo:
        service.vehicles.list(account_x)
    assert isinstance(excinfo.value.cause, ConnectionError)
    assert rows.calls == [("select", "users")]


def test_dashboard_stats_count_only_own_account(service, tenants):
    account_x, account_y = tenants
    service.vehicles.create(account_x, CIVIC)
    service.suppliers.create(account_x, {"name": "Posto", "type": "fuel"})
    service.suppliers.create(account_y, {"name": "Oficina", "type": "repair"})

    stats = service.stats(account_x)
    assert (stats.vehicles, stats.suppliers) == (1, 1)
    stats = service.stats(account_y)
    assert (stats.vehicles, stats.suppliers) == (0, 1)
