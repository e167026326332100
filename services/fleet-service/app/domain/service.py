"""Fleet service bundling the entity repositories with account-level views."""

from __future__ import annotations

from dataclasses import dataclass

from fleet_schemas import Account, User

from ..store import AccountScopedStore
from .entities import EntityKind
from .repositories import Caller, SupplierRepository, VehicleRepository


@dataclass(slots=True)
class DashboardStats:
    """Entity totals for one account."""

    vehicles: int
    suppliers: int


@dataclass(slots=True)
class Profile:
    user: User
    account: Account


class FleetService:
    """Entry point used by the HTTP layer for every fleet workflow."""

    def __init__(self, store: AccountScopedStore) -> None:
        """Wire the repositories onto a shared account-scoped store."""
        self._store = store
        self.vehicles = VehicleRepository(store)
        self.suppliers = SupplierRepository(store)

    def profile(self, caller: Caller) -> Profile:
        """Return the caller's user row and the account it belongs to."""
        user, account = self._store.get_profile(caller.principal_id)
        return Profile(user=user, account=account)

    def stats(self, caller: Caller) -> DashboardStats:
        """Count the vehicles and suppliers registered in the caller's account."""
        account_id = self._store.resolve_account_id(caller.principal_id)
        return DashboardStats(
            vehicles=self._store.scoped_count(EntityKind.vehicles, account_id),
            suppliers=self._store.scoped_count(EntityKind.suppliers, account_id),
        )
