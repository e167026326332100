"""Failure taxonomy surfaced by the store and the entity repositories."""

from __future__ import annotations


class FleetError(Exception):
    """Base class for every failure that crosses the repository boundary."""

    code = "fleet_error"
    message = "unexpected error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(FleetError):
    """A draft or payload violates the entity's field contract.

    Raised before any round trip to the store, so no partial write can
    follow from it.
    """

    code = "validation_error"

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"invalid value for '{field}': {reason}")


class NotProvisioned(FleetError):
    """The principal authenticated but is not linked to any account."""

    code = "not_provisioned"
    message = "user must be associated with an account"

    def __init__(self, principal_id: str) -> None:
        self.principal_id = principal_id
        super().__init__()


class NotFound(FleetError):
    """Row is absent or belongs to another account; the two are indistinguishable."""

    code = "not_found"

    def __init__(self, kind: str, entity_id: str) -> None:
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind.rstrip('s')} not found")


class StoreError(FleetError):
    """Transport or remote fault from the row store. Never retried here."""

    code = "store_error"
    message = "storage backend unavailable, try again later"

    def __init__(self, cause: BaseException | str) -> None:
        self.cause = cause
        super().__init__()
