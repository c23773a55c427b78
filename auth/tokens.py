"""
auth/tokens.py -- JWT issuance and verification.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with the process-wide
       JWT_SECRET_KEY and carry sub (user id), role, iat and exp. The server
       keeps no record of issued tokens; a token is valid until exp.

  Clock: expiry is checked against an injectable clock rather than jose's
       built-in wall-clock check, so tests can issue tokens "in the past"
       without sleeping. jose still verifies the signature and structure.

  Failure: verify() raises InvalidToken for every kind of failure. The gate
       turns that into Unauthorized; callers never learn which check failed.

Layer rule: no imports from api/ or pricing/.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from auth.models import Identity, Role
from core.errors import ConfigurationError, InvalidToken

logger = logging.getLogger("freightgate.auth")

ALGORITHM = "HS256"
DEFAULT_EXPIRE_SECONDS = 2 * 60 * 60


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Issue and verify signed, time-limited identity assertions.

    Usage:
        tokens = TokenService(settings.jwt_secret_key, settings.token_expire_seconds)
        raw = tokens.issue(user.id, user.role)
        identity = tokens.verify(raw)
    """

    def __init__(
        self,
        secret_key: str,
        expire_seconds: int = DEFAULT_EXPIRE_SECONDS,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if not secret_key:
            raise ConfigurationError("TokenService requires a signing secret.")
        if expire_seconds <= 0:
            raise ConfigurationError("Token lifetime must be positive.")
        self._secret_key = secret_key
        self.expire_seconds = expire_seconds
        self._clock = clock or _utcnow

    def issue(self, user_id: int, role: Role | str) -> str:
        """Encode a signed JWT for user_id/role valid for expire_seconds."""
        issued_at = self._clock()
        expires_at = issued_at + timedelta(seconds=self.expire_seconds)
        payload = {
            "sub": str(user_id),
            "role": Role(role).value,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        return jwt.encode(payload, self._secret_key, algorithm=ALGORITHM)

    def verify(self, token: str) -> Identity:
        """Decode and check a JWT. Returns the Identity or raises InvalidToken."""
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[ALGORITHM],
                options={"verify_exp": False, "verify_iat": False},
            )
        except JWTError as exc:
            raise InvalidToken() from exc

        try:
            user_id = int(payload["sub"])
            role = Role(payload["role"])
            expires_at = int(payload["exp"])
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidToken() from exc

        if self._clock().timestamp() >= expires_at:
            raise InvalidToken("Token has expired.")
        return Identity(user_id=user_id, role=role)
