"""
pricing/store.py -- SQLAlchemy-backed persistence for pricing rules.

Uses SQLAlchemy Core (not ORM) so the dataclasses in pricing/models.py stay
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change.

Pattern: Repository + Data Mapper. PricingStore is the repository;
_row_to_rule is the mapper. Route handlers never touch SQL directly.

UNIQUE(cargo_type) backs the one-rule-per-cargo-type policy. A duplicate
insert raises UniquenessViolation; any other database error raises
StoreUnavailable.

Usage:
    store = PricingStore("sqlite:///freightgate.db")
    rule = store.create(PricingRule(cargo_type="general", base_price=10,
                                    weight_multiplier=0.5, distance_multiplier=0.2))
    store.get_by_cargo_type("general")
    store.close()
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import CheckConstraint, Column, Float, Integer, MetaData, String, Table, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from core.db import make_engine
from core.errors import StoreUnavailable, UniquenessViolation
from pricing.models import CargoType, PricingRule

logger = logging.getLogger("freightgate.pricing")

# Fields that update/upsert may touch. cargo_type is the key, never updated.
_MUTABLE_FIELDS = ("base_price", "weight_multiplier", "distance_multiplier")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_pricing = Table(
    "pricing_rules",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("cargo_type", String(30), nullable=False, unique=True),
    Column("base_price", Float, nullable=False),
    Column("weight_multiplier", Float, nullable=False),
    Column("distance_multiplier", Float, nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    CheckConstraint("base_price >= 0", name="ck_pricing_base_price"),
    CheckConstraint("weight_multiplier >= 0", name="ck_pricing_weight_multiplier"),
    CheckConstraint("distance_multiplier >= 0", name="ck_pricing_distance_multiplier"),
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class PricingStore:
    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        try:
            metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise StoreUnavailable() from exc

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, rule: PricingRule) -> PricingRule:
        """Insert a rule. Raises UniquenessViolation if its cargo type already has one."""
        now = _now_iso()
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _pricing.insert().values(
                        cargo_type=rule.cargo_type.value,
                        base_price=rule.base_price,
                        weight_multiplier=rule.weight_multiplier,
                        distance_multiplier=rule.distance_multiplier,
                        created_at=now,
                        updated_at=now,
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            if "unique" in str(exc.orig).lower():
                raise UniquenessViolation() from exc
            raise StoreUnavailable() from exc
        except SQLAlchemyError as exc:
            logger.error("Pricing insert failed: %s", exc)
            raise StoreUnavailable() from exc
        return self.get(result.inserted_primary_key[0])

    def upsert(self, cargo_type: CargoType, fields: dict) -> PricingRule:
        """Update the rule for cargo_type, creating it when none exists.

        A new rule needs every field in _MUTABLE_FIELDS; a missing one
        raises ValueError. Unknown keys always raise ValueError.
        """
        unknown = set(fields) - set(_MUTABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown pricing fields: {sorted(unknown)!r}")

        existing = self.get_by_cargo_type(cargo_type)
        if existing is None:
            missing = [f for f in _MUTABLE_FIELDS if f not in fields]
            if missing:
                raise ValueError(f"New pricing rule requires: {', '.join(missing)}")
            return self.create(PricingRule(cargo_type=cargo_type, **fields))

        if not fields:
            return existing
        try:
            with self.engine.connect() as conn:
                conn.execute(
                    _pricing.update()
                    .where(_pricing.c.id == existing.id)
                    .values(updated_at=_now_iso(), **fields)
                )
                conn.commit()
        except SQLAlchemyError as exc:
            logger.error("Pricing update failed: %s", exc)
            raise StoreUnavailable() from exc
        return self.get(existing.id)

    def delete(self, rule_id: int) -> Optional[PricingRule]:
        """Delete a rule by id. Returns the deleted rule, or None if not found."""
        rule = self.get(rule_id)
        if rule is None:
            return None
        try:
            with self.engine.connect() as conn:
                result = conn.execute(_pricing.delete().where(_pricing.c.id == rule_id))
                conn.commit()
        except SQLAlchemyError as exc:
            logger.error("Pricing delete failed: %s", exc)
            raise StoreUnavailable() from exc
        return rule if result.rowcount > 0 else None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, rule_id: int) -> Optional[PricingRule]:
        return self._fetch_one(_pricing.c.id == rule_id)

    def get_by_cargo_type(self, cargo_type: CargoType) -> Optional[PricingRule]:
        return self._fetch_one(_pricing.c.cargo_type == CargoType(cargo_type).value)

    def list_page(self, offset: int, limit: int) -> list[PricingRule]:
        """Return up to limit rules ordered by id, skipping offset."""
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(
                    _pricing.select().order_by(_pricing.c.id).offset(offset).limit(limit)
                ).fetchall()
        except SQLAlchemyError as exc:
            raise StoreUnavailable() from exc
        return [_row_to_rule(r) for r in rows]

    def count(self) -> int:
        try:
            with self.engine.connect() as conn:
                total = conn.execute(select(func.count()).select_from(_pricing)).scalar()
        except SQLAlchemyError as exc:
            raise StoreUnavailable() from exc
        return total or 0

    def close(self) -> None:
        self.engine.dispose()

    def _fetch_one(self, clause) -> Optional[PricingRule]:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(_pricing.select().where(clause)).fetchone()
        except SQLAlchemyError as exc:
            raise StoreUnavailable() from exc
        return _row_to_rule(row) if row is not None else None


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_rule(row) -> PricingRule:
    return PricingRule(
        id=row.id,
        cargo_type=CargoType(row.cargo_type),
        base_price=row.base_price,
        weight_multiplier=row.weight_multiplier,
        distance_multiplier=row.distance_multiplier,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
