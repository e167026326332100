"""Row storage and the account-scoped facade every entity read/write goes through."""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from enum import Enum
from typing import Any, Iterator, Mapping, Protocol, Sequence

import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from fleet_schemas import Account, User

from .domain.entities import NEWEST_FIRST, EntityKind, TableSpec, table_spec
from .domain.errors import NotFound, NotProvisioned, StoreError, ValidationError

logger = logging.getLogger(__name__)

USERS_TABLE = "users"
ACCOUNTS_TABLE = "accounts"
USER_COLUMNS = ("id", "account_id", "email", "role", "created_at")
ACCOUNT_COLUMNS = ("id", "name", "timezone", "created_at")

OrderBy = Sequence[tuple[str, bool]]


class RowStore(Protocol):
    """Generic table-qualified row access with equality filters."""

    def select(
        self,
        table: str,
        *,
        columns: Sequence[str],
        filters: Mapping[str, Any],
        order_by: OrderBy = (),
    ) -> list[dict[str, Any]]: ...

    def insert(
        self, table: str, values: Mapping[str, Any], *, returning: Sequence[str]
    ) -> dict[str, Any]: ...

    def update(self, table: str, filters: Mapping[str, Any], values: Mapping[str, Any]) -> int: ...

    def delete(self, table: str, filters: Mapping[str, Any]) -> int: ...

    def count(self, table: str, filters: Mapping[str, Any]) -> int: ...


class PostgresRowStore:
    """Postgres-backed ``RowStore``.

    When a filter carries ``account_id`` the value is also published as the
    transaction-local ``app.account_id`` setting so that the row-level
    policies in ``db/schema.sql`` enforce the same boundary server-side.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool

    def select(
        self,
        table: str,
        *,
        columns: Sequence[str],
        filters: Mapping[str, Any],
        order_by: OrderBy = (),
    ) -> list[dict[str, Any]]:
        query = sql.SQL("SELECT {columns} FROM {table}{where}{order}").format(
            columns=sql.SQL(", ").join(map(sql.Identifier, columns)),
            table=sql.Identifier(table),
            where=self._where(filters),
            order=self._order(order_by),
        )
        with self._cursor(table, filters) as cur:
            cur.execute(query, self._params(filters))
            return [self._normalise(row) for row in cur.fetchall()]

    def insert(
        self, table: str, values: Mapping[str, Any], *, returning: Sequence[str]
    ) -> dict[str, Any]:
        query = sql.SQL("INSERT INTO {table} ({columns}) VALUES ({values}) RETURNING {returning}").format(
            table=sql.Identifier(table),
            columns=sql.SQL(", ").join(map(sql.Identifier, values)),
            values=sql.SQL(", ").join(sql.Placeholder() * len(values)),
            returning=sql.SQL(", ").join(map(sql.Identifier, returning)),
        )
        with self._cursor(table, values) as cur:
            cur.execute(query, list(values.values()))
            row = cur.fetchone()
        return self._normalise(row)

    def update(self, table: str, filters: Mapping[str, Any], values: Mapping[str, Any]) -> int:
        assignments = sql.SQL(", ").join(
            sql.SQL("{} = %s").format(sql.Identifier(column)) for column in values
        )
        query = sql.SQL("UPDATE {table} SET {assignments}{where}").format(
            table=sql.Identifier(table),
            assignments=assignments,
            where=self._where(filters),
        )
        with self._cursor(table, filters) as cur:
            cur.execute(query, [*values.values(), *self._params(filters)])
            return cur.rowcount

    def delete(self, table: str, filters: Mapping[str, Any]) -> int:
        query = sql.SQL("DELETE FROM {table}{where}").format(
            table=sql.Identifier(table),
            where=self._where(filters),
        )
        with self._cursor(table, filters) as cur:
            cur.execute(query, self._params(filters))
            return cur.rowcount

    def count(self, table: str, filters: Mapping[str, Any]) -> int:
        query = sql.SQL("SELECT count(*) AS total FROM {table}{where}").format(
            table=sql.Identifier(table),
            where=self._where(filters),
        )
        with self._cursor(table, filters) as cur:
            cur.execute(query, self._params(filters))
            row = cur.fetchone()
        return int(row["total"]) if row else 0

    @contextmanager
    def _cursor(self, table: str, scope: Mapping[str, Any]) -> Iterator[psycopg.Cursor]:
        """Yield a dict-row cursor inside one committed transaction.

        Any driver or pool failure leaves as ``StoreError``.
        """
        try:
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    account_id = scope.get("account_id")
                    if account_id is not None:
                        cur.execute(
                            "SELECT set_config('app.account_id', %s, true)", (str(account_id),)
                        )
                    yield cur
                conn.commit()
        except psycopg.Error as exc:
            logger.warning("row store failure on %s: %s", table, exc)
            raise StoreError(exc) from exc

    def _where(self, filters: Mapping[str, Any]) -> sql.Composable:
        if not filters:
            return sql.SQL("")
        clauses = [
            sql.SQL("{} IS NULL").format(sql.Identifier(column))
            if value is None
            else sql.SQL("{} = %s").format(sql.Identifier(column))
            for column, value in filters.items()
        ]
        return sql.SQL(" WHERE ") + sql.SQL(" AND ").join(clauses)

    def _params(self, filters: Mapping[str, Any]) -> list[Any]:
        return [value for value in filters.values() if value is not None]

    def _order(self, order_by: OrderBy) -> sql.Composable:
        if not order_by:
            return sql.SQL("")
        terms = [
            sql.SQL("{} DESC" if descending else "{} ASC").format(sql.Identifier(column))
            for column, descending in order_by
        ]
        return sql.SQL(" ORDER BY ") + sql.SQL(", ").join(terms)

    def _normalise(self, row: Mapping[str, Any]) -> dict[str, Any]:
        """Render uuid columns as strings to match the domain id type."""
        return {key: str(value) if isinstance(value, uuid.UUID) else value for key, value in row.items()}


def _canonical_uuid(value: Any) -> str | None:
    """Return the lowercase hyphenated form of ``value``, or ``None`` if it is not a UUID.

    ``uuid.UUID`` also parses braces, ``urn:uuid:`` prefixes and misplaced
    hyphens, none of which the Postgres ``uuid`` type accepts as input.
    """
    try:
        return str(uuid.UUID(str(value)))
    except ValueError:
        return None


class AccountScopedStore:
    """Confines every entity read and write to a single account.

    Call sites never add the account filter themselves: it is applied here,
    after any caller-supplied filter, so a malformed or hostile filter can
    narrow a result but never widen it past the account boundary.
    """

    def __init__(self, rows: RowStore) -> None:
        self._rows = rows

    def resolve_account_id(self, principal_id: str) -> str:
        """Return the account the principal belongs to.

        Raises ``NotProvisioned`` when no user row links the principal to an
        account; callers must not fall back to any other account.
        """
        user = self._find_user(principal_id, columns=("account_id",))
        if user is None or not user.get("account_id"):
            raise NotProvisioned(principal_id)
        return str(user["account_id"])

    def get_profile(self, principal_id: str) -> tuple[User, Account]:
        user_row = self._find_user(principal_id, columns=USER_COLUMNS)
        if user_row is None:
            raise NotProvisioned(principal_id)
        accounts = self._rows.select(
            ACCOUNTS_TABLE,
            columns=ACCOUNT_COLUMNS,
            filters={"id": user_row["account_id"]},
        )
        if not accounts:
            raise NotProvisioned(principal_id)
        return User.model_validate(user_row), Account.model_validate(accounts[0])

    def scoped_query(
        self,
        kind: EntityKind | str,
        account_id: str,
        filters: Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Return the account's rows of ``kind`` matching ``filters``, newest first."""
        spec = table_spec(kind)
        scope = self._scope(spec, account_id, filters or {})
        if scope is None:
            return []
        return self._rows.select(
            spec.table, columns=spec.columns, filters=scope, order_by=NEWEST_FIRST
        )

    def scoped_count(self, kind: EntityKind | str, account_id: str) -> int:
        spec = table_spec(kind)
        return self._rows.count(spec.table, {"account_id": account_id})

    def scoped_insert(
        self, kind: EntityKind | str, account_id: str, payload: Mapping[str, Any]
    ) -> str:
        """Insert ``payload`` into the account and return the generated id.

        ``account_id`` is always forced to the caller's account; any value in
        the payload is discarded along with other store-managed columns.
        """
        spec = table_spec(kind)
        values = self._writable_values(spec, payload, partial=False)
        values["account_id"] = account_id
        row = self._rows.insert(spec.table, values, returning=("id",))
        entity_id = str(row["id"])
        logger.info("%s %s created in account %s", spec.table, entity_id, account_id)
        return entity_id

    def scoped_update(
        self,
        kind: EntityKind | str,
        account_id: str,
        entity_id: str,
        payload: Mapping[str, Any],
    ) -> None:
        """Update row ``entity_id`` if, and only if, it belongs to ``account_id``.

        A row owned by another account yields ``NotFound`` rather than a
        permission error so tenants cannot discover each other's ids.
        """
        spec = table_spec(kind)
        values = self._writable_values(spec, payload, partial=True)
        row_id = _canonical_uuid(entity_id)
        if row_id is None:
            raise NotFound(spec.table, entity_id)
        scope = {"id": row_id, "account_id": account_id}
        if values:
            affected = self._rows.update(spec.table, scope, values)
        else:
            affected = self._rows.count(spec.table, scope)
        if affected == 0:
            raise NotFound(spec.table, entity_id)
        logger.info("%s %s updated in account %s", spec.table, entity_id, account_id)

    def scoped_delete(self, kind: EntityKind | str, account_id: str, entity_id: str) -> None:
        """Delete row ``entity_id`` from the account. Deleting twice is ``NotFound``."""
        spec = table_spec(kind)
        row_id = _canonical_uuid(entity_id)
        if row_id is None:
            raise NotFound(spec.table, entity_id)
        affected = self._rows.delete(spec.table, {"id": row_id, "account_id": account_id})
        if affected == 0:
            raise NotFound(spec.table, entity_id)
        logger.info("%s %s deleted from account %s", spec.table, entity_id, account_id)

    def _find_user(self, principal_id: str, *, columns: Sequence[str]) -> dict[str, Any] | None:
        user_id = _canonical_uuid(principal_id) if principal_id else None
        if user_id is None:
            return None
        rows = self._rows.select(USERS_TABLE, columns=columns, filters={"id": user_id})
        return rows[0] if rows else None

    def _scope(
        self, spec: TableSpec, account_id: str, filters: Mapping[str, Any]
    ) -> dict[str, Any] | None:
        """Build the effective filter, or ``None`` when nothing can match."""
        scope: dict[str, Any] = {}
        for column, value in filters.items():
            if column not in spec.columns:
                raise ValidationError(column, "unknown filter column")
            if column == "account_id":
                continue
            if column == "id":
                value = _canonical_uuid(value)
                if value is None:
                    return None
            enum_type = spec.enums.get(column)
            if enum_type is not None:
                value = _enum_value(value)
                if value not in _enum_values(enum_type):
                    return None
            scope[column] = value
        scope["account_id"] = account_id
        return scope

    def _writable_values(
        self, spec: TableSpec, payload: Mapping[str, Any], *, partial: bool
    ) -> dict[str, Any]:
        values = {column: payload[column] for column in spec.writable if column in payload}
        ignored = set(payload) - set(values)
        if ignored:
            logger.debug("ignoring non-writable %s columns: %s", spec.table, sorted(ignored))

        for column in sorted(spec.required):
            if column not in values:
                if partial:
                    continue
                raise ValidationError(column, "field required")
            if values[column] is None or values[column] == "":
                raise ValidationError(column, "field required")

        for column, enum_type in spec.enums.items():
            if column in values:
                value = _enum_value(values[column])
                allowed = _enum_values(enum_type)
                if value not in allowed:
                    raise ValidationError(column, f"must be one of: {', '.join(allowed)}")
                values[column] = value
        return values


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _enum_values(enum_type: type[Enum]) -> tuple[str, ...]:
    return tuple(member.value for member in enum_type)
