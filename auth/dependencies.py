"""
auth/dependencies.py -- FastAPI Depends() helpers around the AccessGate.

get_identity() is the authentication step: it reads the Authorization
header, verifies the bearer token and attaches the Identity to
request.state.identity for downstream handlers.

require_roles(*roles) builds the authorization step. The returned dependency
declares Depends(get_identity) as a parameter, so FastAPI always resolves
authentication first and a role check cannot run on its own.

Both raise domain errors (Unauthorized / Forbidden); api/main.py maps them
to 401 / 403 responses.

Layer rule: auth/dependencies.py may import from fastapi because it is part
of the FastAPI dependency injection system. No imports from api/ or pricing/.
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import Depends, Request

from auth.gate import AccessGate
from auth.models import Identity, Role


def get_identity(request: Request) -> Identity:
    """Require a valid bearer token. Raises Unauthorized otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(identity: Identity = Depends(get_identity)): ...
    """
    gate: AccessGate = request.app.state.gate
    identity = gate.authenticate(request.headers.get("Authorization"))
    request.state.identity = identity
    return identity


def require_roles(*roles: Role | str) -> Callable[..., Identity]:
    """Return a dependency that admits only callers whose role is in roles.

    Use as a FastAPI dependency:
        @router.post("/pricing")
        def route(identity: Identity = Depends(require_roles(Role.admin))): ...
    """
    if not roles:
        raise ValueError("require_roles() needs at least one role")
    allowed = frozenset(Role(r) for r in roles)

    def _require(request: Request, identity: Identity = Depends(get_identity)) -> Identity:
        gate: AccessGate = request.app.state.gate
        return gate.authorize(identity, allowed)

    _require.__name__ = "require_" + "_".join(sorted(r.value for r in allowed))
    return _require
