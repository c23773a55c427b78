"""
api/routes/v1/auth.py -- Registration, login and identity endpoints.

Routes:
  POST /api/v1/auth/register  -- create an account; 201 UserResponse (no hash)
  POST /api/v1/auth/login     -- exchange email/password for a bearer token
  GET  /api/v1/auth/me        -- identity of the caller (any role)

Error mapping is done once in api/main.py. Handlers here let domain errors
propagate: InvalidRole -> 400, DuplicateEmail -> 409, InvalidCredentials -> 401,
StoreUnavailable -> 503.

Security:
  Login returns the same invalid_credentials error for an unknown email and a
  wrong password; CredentialService equalizes the bcrypt cost of both paths.
  Cache-Control: no-store on login responses so proxies never keep tokens.

Register and login are plain `def` handlers: bcrypt is CPU-bound and the
store is synchronous, so FastAPI runs them in its worker thread pool.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from api.models import LoginRequest, LoginResponse, MeResponse, RegisterRequest, UserResponse
from auth.dependencies import get_identity
from auth.models import Identity
from auth.service import CredentialService
from auth.store import UserStore

# Auth policy:
# - POST /api/v1/auth/register: public
# - POST /api/v1/auth/login:    public -- login endpoint must be unauthenticated
# - GET  /api/v1/auth/me:       requires a valid token (get_identity)
router = APIRouter()


@router.post("/auth/register", response_model=UserResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> UserResponse:
    """Create a user. The password is hashed before it reaches the store."""
    service: CredentialService = request.app.state.credentials
    user = service.register(body.email, body.password, body.role)
    return UserResponse.from_user(user)


@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, response: Response, body: LoginRequest) -> LoginResponse:
    """Authenticate with email and password; return a signed bearer token."""
    service: CredentialService = request.app.state.credentials
    user, token = service.login(body.email, body.password)
    response.headers["Cache-Control"] = "no-store"
    return LoginResponse(
        access_token=token,
        token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
        expires_in=service.tokens.expire_seconds,
        role=user.role,
    )


@router.get("/auth/me", response_model=MeResponse)
def me(request: Request, identity: Identity = Depends(get_identity)) -> MeResponse:
    """Return the verified identity. The email is looked up for display only."""
    user_store: UserStore = request.app.state.user_store
    return MeResponse.from_identity(identity, user_store.get_by_id(identity.user_id))
