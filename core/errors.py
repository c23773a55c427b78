"""
core/errors.py -- Typed failure taxonomy shared by auth/, pricing/ and api/.

Every failure the core can produce is a subclass of FreightgateError with a
stable machine-readable `code` and a client-safe `message`. The api/ layer
maps each class to one HTTP status (see api/main.py) without inspecting
anything else, so the message text must never carry internal state.

Layer rule: core/ is the kernel. No imports from api/, auth/, or pricing/.
"""

from __future__ import annotations


class FreightgateError(Exception):
    """Base class for all domain failures."""

    code: str = "error"
    message: str = "Request failed."

    def __init__(self, message: str | None = None, detail: str | None = None) -> None:
        self.message = message or self.message
        self.detail = detail
        super().__init__(self.message)


class ConfigurationError(FreightgateError):
    """A component was constructed without required configuration."""

    code = "configuration_error"
    message = "Component is misconfigured."


# ---------------------------------------------------------------------------
# Credential lifecycle
# ---------------------------------------------------------------------------


class InvalidRole(FreightgateError):
    code = "invalid_role"
    message = "Invalid role. Must be admin, shipper, or carrier."


class DuplicateEmail(FreightgateError):
    code = "duplicate_email"
    message = "A user with that email already exists."


class InvalidCredentials(FreightgateError):
    """Login failed. Raised identically for unknown email and wrong password."""

    code = "invalid_credentials"
    message = "Invalid credentials."


# ---------------------------------------------------------------------------
# Access gate
# ---------------------------------------------------------------------------


class InvalidToken(FreightgateError):
    """Token signature, structure, claims or expiry did not check out."""

    code = "invalid_token"
    message = "Invalid token."


class Unauthorized(FreightgateError):
    code = "unauthorized"
    message = "Access denied. No token provided."


class Forbidden(FreightgateError):
    code = "forbidden"
    message = "Access denied. Insufficient permissions."


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


class UniquenessViolation(FreightgateError):
    """The store rejected an insert because a unique key already exists."""

    code = "uniqueness_violation"
    message = "Record already exists."


class StoreUnavailable(FreightgateError):
    code = "store_unavailable"
    message = "Service temporarily unavailable."


# ---------------------------------------------------------------------------
# Pricing
# ---------------------------------------------------------------------------


class PricingRuleExists(FreightgateError):
    code = "pricing_rule_exists"
    message = "A pricing rule for that cargo type already exists."


class PricingRuleNotFound(FreightgateError):
    code = "pricing_rule_not_found"
    message = "Pricing rule not found."


class InvalidPricingRule(FreightgateError):
    code = "invalid_pricing_rule"
    message = "Invalid pricing rule."
