"""Bearer token helpers shared with the identity provider."""

from __future__ import annotations

import time
from typing import Any

import jwt

from ..config import get_settings


def issue_access_token(*, subject: str, email: str | None = None) -> tuple[str, int]:
    """Create a signed JWT for a principal.

    Parameters
    ----------
    subject:
        Principal identifier embedded in the ``sub`` claim; it must equal the
        ``users.id`` row that links the principal to an account.
    email:
        Optional email claim, informational only.

    Returns
    -------
    tuple[str, int]
        The encoded JWT string and its TTL in seconds.
    """

    settings = get_settings()
    now = int(time.time())
    expires_in = settings.jwt_ttl_seconds
    payload: dict[str, Any] = {
        "iss": settings.jwt_issuer,
        "sub": subject,
        "iat": now,
        "exp": now + expires_in,
    }
    if email:
        payload["email"] = email

    token = jwt.encode(payload, settings.jwt_secret, algorithm="HS256")
    return token, expires_in


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and verify a JWT returning its payload.

    Raises
    ------
    jwt.PyJWTError
        Propagated when the token is invalid, expired, or signed by another issuer.
    """

    settings = get_settings()
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=["HS256"],
        issuer=settings.jwt_issuer,
        options={"require": ["sub", "exp"]},
    )
