"""Typed CRUD surfaces over the account-scoped store, one per entity kind."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Generic, List, Mapping, TypeVar

from pydantic import BaseModel

from fleet_schemas import Supplier, Vehicle

from ..store import AccountScopedStore
from .contracts import SupplierDraft, VehicleDraft, draft_payload, parse_draft
from .entities import EntityKind
from .errors import NotFound

EntityT = TypeVar("EntityT", bound=BaseModel)


@dataclass(frozen=True, slots=True)
class Caller:
    """Explicit request context: the authenticated principal behind an operation."""

    principal_id: str


class EntityRepository(Generic[EntityT]):
    """CRUD operations for one entity kind, validated before any store call.

    Subclasses bind ``kind``, the row ``entity`` model and the draft
    ``contract``. Every operation resolves the caller's account afresh; no
    result is cached between calls.
    """

    kind: ClassVar[EntityKind]
    entity: ClassVar[type[BaseModel]]
    contract: ClassVar[type[BaseModel]]

    def __init__(self, store: AccountScopedStore) -> None:
        self._store = store

    def list(self, caller: Caller) -> List[EntityT]:
        """Return every entity in the caller's account, newest first."""
        account_id = self._store.resolve_account_id(caller.principal_id)
        rows = self._store.scoped_query(self.kind, account_id)
        return [self.entity.model_validate(row) for row in rows]

    def get(self, caller: Caller, entity_id: str) -> EntityT:
        account_id = self._store.resolve_account_id(caller.principal_id)
        return self._fetch(account_id, entity_id)

    def create(self, caller: Caller, draft: BaseModel | Mapping[str, Any]) -> EntityT:
        parsed = parse_draft(self.contract, draft)
        account_id = self._store.resolve_account_id(caller.principal_id)
        entity_id = self._store.scoped_insert(self.kind, account_id, draft_payload(parsed))
        return self._fetch(account_id, entity_id)

    def update(
        self, caller: Caller, entity_id: str, draft: BaseModel | Mapping[str, Any]
    ) -> EntityT:
        """Replace the entity's fields with ``draft``; the owning account never changes."""
        parsed = parse_draft(self.contract, draft)
        account_id = self._store.resolve_account_id(caller.principal_id)
        self._store.scoped_update(self.kind, account_id, entity_id, draft_payload(parsed))
        return self._fetch(account_id, entity_id)

    def remove(self, caller: Caller, entity_id: str) -> None:
        account_id = self._store.resolve_account_id(caller.principal_id)
        self._store.scoped_delete(self.kind, account_id, entity_id)

    def _fetch(self, account_id: str, entity_id: str) -> EntityT:
        rows = self._store.scoped_query(self.kind, account_id, {"id": entity_id})
        if not rows:
            raise NotFound(self.kind.value, entity_id)
        return self.entity.model_validate(rows[0])


class VehicleRepository(EntityRepository[Vehicle]):
    kind = EntityKind.vehicles
    entity = Vehicle
    contract = VehicleDraft


class SupplierRepository(EntityRepository[Supplier]):
    kind = EntityKind.suppliers
    entity = Supplier
    contract = SupplierDraft
