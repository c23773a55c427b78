"""
auth/gate.py -- Framework-free access gate: bearer extraction and role checks.

AccessGate.authenticate() turns a raw Authorization header into an Identity
or raises Unauthorized. authorize() is a pure predicate over an Identity
that authenticate() already produced.

Nothing outside this package calls authorize() directly. Routes get role
checks through auth.dependencies.require_roles(), whose dependency chain
runs authenticate() first, so a role check never sees an unverified caller.

Layer rule: no imports from api/ or pricing/, and no FastAPI imports --
auth/dependencies.py is the FastAPI adapter.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from auth.models import Identity, Role
from auth.tokens import TokenService
from core.errors import Forbidden, InvalidToken, Unauthorized

logger = logging.getLogger("freightgate.gate")

_BEARER = "bearer"


def extract_bearer(authorization: str | None) -> str | None:
    """Return the credential from an 'Authorization: Bearer <token>' value, or None."""
    if not authorization:
        return None
    scheme, _, credential = authorization.strip().partition(" ")
    if scheme.lower() != _BEARER:
        return None
    credential = credential.strip()
    return credential or None


class AccessGate:
    def __init__(self, tokens: TokenService) -> None:
        self.tokens = tokens

    def authenticate(self, authorization: str | None) -> Identity:
        """Verify the bearer credential in an Authorization header value."""
        token = extract_bearer(authorization)
        if token is None:
            raise Unauthorized()
        try:
            return self.tokens.verify(token)
        except InvalidToken as exc:
            logger.info("Rejected token: %s", exc.message)
            raise Unauthorized("Invalid token. Please log in again.") from exc

    def authorize(self, identity: Identity, allowed_roles: Iterable[Role]) -> Identity:
        """Return identity unchanged if its role is allowed, else raise Forbidden."""
        allowed = frozenset(Role(r) for r in allowed_roles)
        if identity.role not in allowed:
            logger.warning(
                "Forbidden access attempt by user %s (role=%s); allowed=%s",
                identity.user_id,
                identity.role.value,
                sorted(r.value for r in allowed),
            )
            raise Forbidden()
        return identity
