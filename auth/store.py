"""
auth/store.py -- SQLAlchemy Core persistence layer for user records.

Pattern: Repository + Data Mapper (same as pricing/store.py).
UserStore is the repository; _row_to_user is the mapper. The service and
route code never touch SQL directly.

Integrity:
  UNIQUE(email) is the only arbiter of duplicate registrations. insert()
  does not look before it leaps; concurrent inserts race to the constraint
  and the loser gets UniquenessViolation.

  CHECK(role IN (...)) repeats the service's role validation at the schema
  level, so a record with an unknown role cannot be written by any path.

  Every other database error surfaces as StoreUnavailable. No retries here.

Security:
  All queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/ or pricing/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, Integer, MetaData, String, Table, Text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.models import Role, User, normalize_email
from core.db import make_engine
from core.errors import StoreUnavailable, UniquenessViolation

logger = logging.getLogger("freightgate.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_ROLE_CHECK = "role IN ({})".format(", ".join(f"'{r.value}'" for r in Role))

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("role", String(30), nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    CheckConstraint(_ROLE_CHECK, name="ck_users_role"),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _is_unique_violation(exc: IntegrityError) -> bool:
    # SQLite: "UNIQUE constraint failed: users.email"
    # PostgreSQL: "duplicate key value violates unique constraint"
    return "unique" in str(exc.orig).lower()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records keyed by normalized email.

    Usage:
        store = UserStore("sqlite:///freightgate.db")
        created = store.insert(User(email="a@x.com", password_hash=h, role=Role.admin))
        user = store.find_by_email("A@X.com ")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        try:
            _metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise StoreUnavailable() from exc

    def insert(self, user: User) -> User:
        """Insert a new user and return it with id and timestamps filled in.

        Raises UniquenessViolation if the email is already registered.
        """
        now = _now_iso()
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _users.insert().values(
                        email=normalize_email(user.email),
                        password_hash=user.password_hash,
                        role=Role(user.role).value,
                        created_at=now,
                        updated_at=now,
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            if _is_unique_violation(exc):
                raise UniquenessViolation() from exc
            logger.error("User insert rejected by schema: %s", exc.orig)
            raise StoreUnavailable() from exc
        except SQLAlchemyError as exc:
            logger.error("User insert failed: %s", exc)
            raise StoreUnavailable() from exc

        return User(
            id=result.inserted_primary_key[0],
            email=user.email,
            password_hash=user.password_hash,
            role=user.role,
            created_at=now,
            updated_at=now,
        )

    def find_by_email(self, email: str) -> User | None:
        """Look up a user by email (case-insensitive, trimmed). Returns None if not found."""
        return self._fetch_one(_users.c.email == normalize_email(email))

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        return self._fetch_one(_users.c.id == user_id)

    def has_users(self) -> bool:
        """Return True if at least one user record exists."""
        try:
            with self.engine.connect() as conn:
                row = conn.execute(_users.select().limit(1)).fetchone()
        except SQLAlchemyError as exc:
            raise StoreUnavailable() from exc
        return row is not None

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            self.has_users()
        except StoreUnavailable:
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()

    def _fetch_one(self, clause) -> User | None:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(_users.select().where(clause)).fetchone()
        except SQLAlchemyError as exc:
            logger.error("User lookup failed: %s", exc)
            raise StoreUnavailable() from exc
        return _row_to_user(row) if row is not None else None


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        password_hash=row.password_hash,
        role=Role(row.role),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
