"""Tenant and principal rows shared across services."""

from __future__ import annotations

from datetime import datetime
from pydantic import BaseModel

from .enums import UserRole


class Account(BaseModel):
    id: str
    name: str
    timezone: str
    created_at: datetime


class User(BaseModel):
    """A principal bound to exactly one account; ``id`` comes from the identity provider."""

    id: str
    account_id: str
    email: str
    role: UserRole = UserRole.owner
    created_at: datetime
