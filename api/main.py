"""
api/main.py -- FastAPI application factory for Freightgate.

create_app() builds every component explicitly and hangs it on app.state:

  app.state.settings     -- Settings (validated; a missing secret never gets here)
  app.state.user_store   -- UserStore (credential store)
  app.state.tokens       -- TokenService (issuer/verifier)
  app.state.credentials  -- CredentialService (register/login)
  app.state.gate         -- AccessGate (read by auth.dependencies)
  app.state.pricing      -- PricingService over PricingStore

No module-level app lives here; asgi.py calls create_app(get_settings()).
Tests call create_app() with their own Settings and in-memory stores.

Middleware stack (outermost to innermost):
  1. log_requests     -- one access-log line per request with latency
  2. security_headers -- browser hardening headers on every response
  3. CORSMiddleware   -- adds CORS headers for allowed browser origins

Exception handlers translate the core's typed failures into one
ErrorResponse envelope with a fixed status per failure kind.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.pricing import router as pricing_router
from auth.gate import AccessGate
from auth.passwords import PasswordHasher
from auth.service import CredentialService
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import Settings
from core.errors import (
    DuplicateEmail,
    Forbidden,
    FreightgateError,
    InvalidCredentials,
    InvalidPricingRule,
    InvalidRole,
    PricingRuleExists,
    PricingRuleNotFound,
    StoreUnavailable,
    Unauthorized,
)
from pricing.service import PricingService
from pricing.store import PricingStore

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("freightgate.api")

# ---------------------------------------------------------------------------
# Failure kind -> HTTP status
#
# Looked up by exact class first, then by MRO, so a subclass inherits its
# parent's status unless it is listed itself.
# ---------------------------------------------------------------------------

_STATUS_BY_ERROR: dict[type[FreightgateError], int] = {
    InvalidRole: 400,
    InvalidPricingRule: 400,
    InvalidCredentials: 401,
    Unauthorized: 401,
    Forbidden: 403,
    PricingRuleNotFound: 404,
    DuplicateEmail: 409,
    PricingRuleExists: 409,
    StoreUnavailable: 503,
}


def _status_for(exc: FreightgateError) -> int:
    for cls in type(exc).__mro__:
        if cls in _STATUS_BY_ERROR:
            return _STATUS_BY_ERROR[cls]
    return 500


def _error_response(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(),
    )


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_app(
    settings: Settings,
    user_store: UserStore | None = None,
    pricing_store: PricingStore | None = None,
) -> FastAPI:
    """Assemble the application from settings.

    Stores may be passed in (tests share in-memory databases this way);
    otherwise both are opened on settings.database_url. Stores created here
    are closed on shutdown; injected stores belong to the caller.
    """
    if settings.debug:
        logging.getLogger("freightgate").setLevel(logging.DEBUG)

    owned: list = []
    if user_store is None:
        user_store = UserStore(settings.database_url)
        owned.append(user_store)
    if pricing_store is None:
        pricing_store = PricingStore(settings.database_url)
        owned.append(pricing_store)

    # Fails fast on a missing secret, before the app object exists.
    tokens = TokenService(settings.jwt_secret_key, settings.token_expire_seconds)
    hasher = PasswordHasher(rounds=settings.bcrypt_rounds)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Freightgate API starting up (token lifetime %ss)", settings.token_expire_seconds)
        yield
        for store in owned:
            store.close()
        logger.info("Freightgate API shutdown complete")

    app = FastAPI(
        title="Freightgate API",
        description="Freight pricing behind email/password login and role-based access control.",
        version=VERSION,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.user_store = user_store
    app.state.tokens = tokens
    app.state.credentials = CredentialService(user_store, hasher, tokens)
    app.state.gate = AccessGate(tokens)
    app.state.pricing = PricingService(
        pricing_store,
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
    )

    _install_middleware(app)
    _install_exception_handlers(app)

    app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
    app.include_router(pricing_router, prefix="/api/v1", tags=["Pricing"])

    @app.get("/api/v1/health", tags=["Health"])
    def health(request: Request) -> HealthResponse:
        """Return liveness plus a database round-trip check. No auth required."""
        db_ok = request.app.state.user_store.ping()
        return HealthResponse(
            status="healthy" if db_ok else "degraded",
            version=VERSION,
            components={"app": "ok", "database": "ok" if db_ok else "error"},
        )

    return app


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

# Sent on every response. The API serves JSON only, so nothing may be framed
# or content-sniffed.
_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}


def _install_middleware(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost", "http://localhost:3000", "http://127.0.0.1"],
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=3600,
    )

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in _SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s %d %.1fms %s",
            request.method,
            request.url.path,
            response.status_code,
            ms,
            request.client.host if request.client else "unknown",
        )
        return response


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(FreightgateError)
    async def domain_error_handler(request: Request, exc: FreightgateError) -> JSONResponse:
        """Map a typed failure to its fixed status.

        StoreUnavailable is logged with its cause but answered generically.
        Unauthorized carries WWW-Authenticate so clients know to send a bearer token.
        """
        status_code = _status_for(exc)
        if isinstance(exc, StoreUnavailable):
            logger.error("Store unavailable on %s %s: %r", request.method, request.url.path, exc.__cause__)
        response = _error_response(status_code, exc.code, exc.message, exc.detail)
        if isinstance(exc, Unauthorized):
            response.headers["WWW-Authenticate"] = "Bearer"
        if isinstance(exc, InvalidCredentials):
            response.headers["Cache-Control"] = "no-store"
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Return 422 with structured error when request body or query params fail validation.

        The rejected input is dropped from each error so a bad password is
        never echoed back.
        """
        errors = [{k: v for k, v in err.items() if k != "input"} for err in exc.errors()]
        return _error_response(422, "validation_error", "Request validation failed.", str(errors))

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        """Wrap framework HTTP errors (404 on unknown paths, 405, ...) in the same envelope."""
        return _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail))

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unexpected server errors.

        The raw exception goes to the log only, never to the response body.
        """
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return _error_response(500, "internal_error", "An unexpected error occurred.")
