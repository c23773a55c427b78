"""
API request and response models for Freightgate REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
pricing/models.py, which own the internal domain representation. Route
handlers map between the two.

UserResponse has no password_hash field. That omission is how the boundary
strips the hash from every user body: build responses through
UserResponse.from_user() and the field cannot leak.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.models import Identity, Role, User
from pricing.models import CargoType, PricingPage, PricingRule

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Deliberately loose: one "@", something on each side, a dot in the domain.
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

# bcrypt only reads the first 72 bytes of a password.
_BCRYPT_MAX_BYTES = 72


def _normalize_email(value: object) -> object:
    return value.strip().lower() if isinstance(value, str) else value


# ---------------------------------------------------------------------------
# Auth -- request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register.

    role is a plain string, not the Role enum: an unknown role must reach
    CredentialService and come back as invalid_role (400), not as a generic
    422 validation error.
    """

    email: str = Field(min_length=3, max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=6, max_length=_BCRYPT_MAX_BYTES)
    role: str = Field(min_length=1, max_length=30)

    @field_validator("email", mode="before")
    @classmethod
    def lowercase_email(cls, value: object) -> object:
        """Trim and lowercase before the pattern check. Passwords are never trimmed."""
        return _normalize_email(value)

    @field_validator("password")
    @classmethod
    def fits_bcrypt(cls, value: str) -> str:
        """Reject passwords bcrypt would silently truncate (multi-byte characters count extra)."""
        if len(value.encode("utf-8")) > _BCRYPT_MAX_BYTES:
            raise ValueError(f"password must be at most {_BCRYPT_MAX_BYTES} bytes")
        return value


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login.

    No format checks beyond length: a malformed email simply fails to log in
    with the same invalid_credentials error as any other wrong email.
    """

    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)

    @field_validator("email", mode="before")
    @classmethod
    def lowercase_email(cls, value: object) -> object:
        return _normalize_email(value)


# ---------------------------------------------------------------------------
# Auth -- response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """A user record as seen outside the trust boundary (no password hash)."""

    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    role: Role
    created_at: str
    updated_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            role=user.role,
            created_at=user.created_at or "",
            updated_at=user.updated_at or "",
        )


class LoginResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    role: Role


class MeResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: int
    role: Role
    email: Optional[str] = None

    @classmethod
    def from_identity(cls, identity: Identity, user: Optional[User]) -> "MeResponse":
        return cls(user_id=identity.user_id, role=identity.role, email=user.email if user else None)


# ---------------------------------------------------------------------------
# Pricing -- request models
# ---------------------------------------------------------------------------


class PricingRuleCreate(BaseModel):
    """Request body for POST /api/v1/pricing."""

    cargo_type: CargoType
    base_price: float = Field(ge=0, allow_inf_nan=False)
    weight_multiplier: float = Field(ge=0, allow_inf_nan=False)
    distance_multiplier: float = Field(ge=0, allow_inf_nan=False)


class PricingRuleUpdate(BaseModel):
    """Request body for PUT /api/v1/pricing/{cargo_type}.

    All fields optional for an existing rule. When the cargo type has no rule
    yet, all three are required (the rule is created).
    """

    base_price: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    weight_multiplier: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    distance_multiplier: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)


class CostRequest(BaseModel):
    """Request body for POST /api/v1/pricing/calculate."""

    weight: float = Field(ge=0, allow_inf_nan=False)
    distance: float = Field(ge=0, allow_inf_nan=False)
    cargo_type: CargoType


# ---------------------------------------------------------------------------
# Pricing -- response models
# ---------------------------------------------------------------------------


class PricingRuleResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    cargo_type: CargoType
    base_price: float
    weight_multiplier: float
    distance_multiplier: float
    created_at: str
    updated_at: str

    @classmethod
    def from_rule(cls, rule: PricingRule) -> "PricingRuleResponse":
        return cls(
            id=rule.id,
            cargo_type=rule.cargo_type,
            base_price=rule.base_price,
            weight_multiplier=rule.weight_multiplier,
            distance_multiplier=rule.distance_multiplier,
            created_at=rule.created_at,
            updated_at=rule.updated_at,
        )


class PricingPageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    data: list[PricingRuleResponse]
    current_page: int
    total_pages: int
    total_records: int

    @classmethod
    def from_page(cls, page: PricingPage) -> "PricingPageResponse":
        return cls(
            data=[PricingRuleResponse.from_rule(r) for r in page.data],
            current_page=page.current_page,
            total_pages=page.total_pages,
            total_records=page.total_records,
        )


class CostResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    cost: float


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
