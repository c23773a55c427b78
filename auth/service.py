"""
auth/service.py -- Registration and login orchestration.

CredentialService is the only place that combines the store, the password
hasher and the token service. It is constructed once in api.main.create_app()
and hung on app.state; nothing here reads configuration or globals.

Failure kinds are fixed so the boundary can map them to statuses without
looking inside: InvalidRole, DuplicateEmail, InvalidCredentials, and
StoreUnavailable passed through from the store.

Login is non-enumerable [timing + message]:
  - Unknown email: bcrypt still runs (against the hasher's dummy hash).
  - Wrong password: bcrypt runs against the real hash.
  Both raise InvalidCredentials with the same message. Do not split them.

Layer rule: no imports from api/ or pricing/.
"""

from __future__ import annotations

import logging

from auth.models import Role, User, normalize_email
from auth.passwords import PasswordHasher
from auth.store import UserStore
from auth.tokens import TokenService
from core.errors import DuplicateEmail, InvalidCredentials, InvalidRole, UniquenessViolation

logger = logging.getLogger("freightgate.auth")


class CredentialService:
    def __init__(self, store: UserStore, hasher: PasswordHasher, tokens: TokenService) -> None:
        self.store = store
        self.hasher = hasher
        self.tokens = tokens

    def register(self, email: str, password: str, role: str) -> User:
        """Create a user with a hashed password and return the stored record.

        The returned User still carries password_hash; stripping it is the
        response layer's job.
        """
        try:
            valid_role = Role(role)
        except ValueError as exc:
            logger.warning("Invalid role attempted: %r", role)
            raise InvalidRole() from exc

        user = User(
            email=normalize_email(email),
            password_hash=self.hasher.hash(password),
            role=valid_role,
        )
        try:
            created = self.store.insert(user)
        except UniquenessViolation as exc:
            logger.warning("Registration rejected, email already registered: %s", user.email)
            raise DuplicateEmail() from exc

        logger.info("User registered: %s (role=%s, id=%s)", created.email, created.role.value, created.id)
        return created

    def authenticate(self, email: str, password: str) -> User:
        """Return the User whose credentials match, or raise InvalidCredentials."""
        user = self.store.find_by_email(email)
        if user is None:
            # Equalize timing -- do NOT return before running bcrypt.
            self.hasher.verify_dummy(password)
            logger.warning("Failed login attempt for email: %s", normalize_email(email))
            raise InvalidCredentials()
        if not self.hasher.verify(password, user.password_hash):
            logger.warning("Failed login attempt for email: %s", user.email)
            raise InvalidCredentials()
        return user

    def login(self, email: str, password: str) -> tuple[User, str]:
        """Verify credentials and return the user with a freshly issued bearer token."""
        user = self.authenticate(email, password)
        token = self.tokens.issue(user.id, user.role)
        logger.info("Successful login: %s", user.email)
        return user, token
