"""Maps an incoming request to the authenticated principal, if any."""

from __future__ import annotations

import logging

import jwt

from .tokens import decode_access_token

logger = logging.getLogger(__name__)

BEARER_PREFIX = "bearer "


class IdentityResolver:
    """Client-side view of the external identity provider."""

    def current_principal_id(self, authorization: str | None) -> str | None:
        """Return the principal id carried by an ``Authorization: Bearer`` header.

        Missing, malformed, expired or foreign-issuer tokens all resolve to
        ``None``; deciding what an anonymous caller may do is up to the caller.
        """
        if not authorization or not authorization.lower().startswith(BEARER_PREFIX):
            return None
        token = authorization[len(BEARER_PREFIX):].strip()
        if not token:
            return None
        try:
            claims = decode_access_token(token)
        except jwt.PyJWTError as exc:
            logger.info("rejected bearer token: %s", exc)
            return None
        subject = claims.get("sub")
        return str(subject) if subject else None
