from __future__ import annotations

import itertools
import uuid
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Sequence

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api import routes
from app.domain.repositories import Caller
from app.domain.service import FleetService
from app.security.tokens import issue_access_token
from app.store import AccountScopedStore

COLUMN_DEFAULTS = {"vehicles": {"current_odometer": 0}}


class InMemoryRowStore:
    """In-memory row store mimicking the Postgres-backed behaviour."""

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self.calls: list[tuple[str, str]] = []
        self.fail_with: Exception | None = None
        self._seq = itertools.count(1)

    def select(
        self,
        table: str,
        *,
        columns: Sequence[str],
        filters: Mapping[str, Any],
        order_by: Sequence[tuple[str, bool]] = (),
    ) -> list[dict[str, Any]]:
        self._record("select", table)
        rows = [row for row in self.tables[table] if _matches(row, filters)]
        for column, descending in reversed(order_by):
            rows.sort(key=lambda row: row[column], reverse=descending)
        return [{column: row.get(column) for column in columns} for row in rows]

    def insert(
        self, table: str, values: Mapping[str, Any], *, returning: Sequence[str]
    ) -> dict[str, Any]:
        self._record("insert", table)
        row = {
            **COLUMN_DEFAULTS.get(table, {}),
            "id": str(uuid.uuid4()),
            "seq": next(self._seq),
            "created_at": datetime.now(timezone.utc),
            **values,
        }
        self.tables[table].append(row)
        return {column: row[column] for column in returning}

    def update(self, table: str, filters: Mapping[str, Any], values: Mapping[str, Any]) -> int:
        self._record("update", table)
        matched = [row for row in self.tables[table] if _matches(row, filters)]
        for row in matched:
            row.update(values)
        return len(matched)

    def delete(self, table: str, filters: Mapping[str, Any]) -> int:
        self._record("delete", table)
        kept = [row for row in self.tables[table] if not _matches(row, filters)]
        removed = len(self.tables[table]) - len(kept)
        self.tables[table] = kept
        return removed

    def count(self, table: str, filters: Mapping[str, Any]) -> int:
        self._record("count", table)
        return sum(1 for row in self.tables[table] if _matches(row, filters))

    def _record(self, operation: str, table: str) -> None:
        self.calls.append((operation, table))
        if self.fail_with is not None:
            raise self.fail_with


def _matches(row: Mapping[str, Any], filters: Mapping[str, Any]) -> bool:
    return all(row.get(column) == value for column, value in filters.items())


@pytest.fixture
def rows() -> InMemoryRowStore:
    return InMemoryRowStore()


@pytest.fixture
def store(rows: InMemoryRowStore) -> AccountScopedStore:
    return AccountScopedStore(rows)


@pytest.fixture
def service(store: AccountScopedStore) -> FleetService:
    return FleetService(store)


@pytest.fixture
def provision(rows: InMemoryRowStore) -> Callable[..., Caller]:
    """Create an account with one user and return that user's caller context."""

    def _provision(name: str = "Frota Teste", role: str = "owner") -> Caller:
        account_id = str(uuid.uuid4())
        principal_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        rows.tables["accounts"].append(
            {"id": account_id, "name": name, "timezone": "America/Sao_Paulo", "created_at": now}
        )
        rows.tables["users"].append(
            {
                "id": principal_id,
                "account_id": account_id,
                "email": f"{role}@{name.lower().replace(' ', '-')}.com.br",
                "role": role,
                "created_at": now,
            }
        )
        return Caller(principal_id=principal_id)

    return _provision


def account_of(rows: InMemoryRowStore, caller: Caller) -> str:
    return next(user["account_id"] for user in rows.tables["users"] if user["id"] == caller.principal_id)


@pytest.fixture
def api_client(service: FleetService):
    """Provide a FastAPI test client with isolated state."""
    app = FastAPI()
    app.include_router(routes.router)
    app.state.fleet_service = service

    with TestClient(app) as client:
        yield client


def auth_headers(caller: Caller) -> dict[str, str]:
    token, _ = issue_access_token(subject=caller.principal_id)
    return {"Authorization": f"Bearer {token}"}
