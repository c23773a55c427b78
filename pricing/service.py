"""
pricing/service.py -- Pricing rule management and shipping cost calculation.

PricingService enforces one rule per cargo type and owns the cost formula.
Role checks are NOT done here: the routes in api/routes/v1/pricing.py admit
only the roles allowed for each operation before calling in.
"""

import logging
import math
from typing import Optional

from core.errors import InvalidPricingRule, PricingRuleExists, PricingRuleNotFound, UniquenessViolation
from pricing.models import CargoType, PricingPage, PricingRule
from pricing.store import PricingStore

logger = logging.getLogger("freightgate.pricing")


def compute_cost(rule: PricingRule, weight: float, distance: float) -> float:
    """Apply a rule: base price plus per-unit weight and distance charges."""
    return rule.base_price + weight * rule.weight_multiplier + distance * rule.distance_multiplier


class PricingService:
    def __init__(self, store: PricingStore, default_page_size: int = 10, max_page_size: int = 100) -> None:
        self.store = store
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    def create_rule(
        self,
        cargo_type: CargoType,
        base_price: float,
        weight_multiplier: float,
        distance_multiplier: float,
    ) -> PricingRule:
        try:
            rule = PricingRule(
                cargo_type=cargo_type,
                base_price=base_price,
                weight_multiplier=weight_multiplier,
                distance_multiplier=distance_multiplier,
            )
        except ValueError as exc:
            raise InvalidPricingRule(str(exc)) from exc
        try:
            created = self.store.create(rule)
        except UniquenessViolation as exc:
            raise PricingRuleExists(f"Pricing rule for '{rule.cargo_type.value}' already exists.") from exc
        logger.info("Pricing rule created for %s (id=%s)", created.cargo_type.value, created.id)
        return created

    def calculate_cost(self, weight: float, distance: float, cargo_type: CargoType) -> float:
        if not (math.isfinite(weight) and math.isfinite(distance)) or weight < 0 or distance < 0:
            raise InvalidPricingRule("Weight and distance must be finite non-negative numbers.")
        rule = self.store.get_by_cargo_type(cargo_type)
        if rule is None:
            raise PricingRuleNotFound(f"Pricing rules for '{CargoType(cargo_type).value}' not found.")
        cost = compute_cost(rule, weight, distance)
        logger.info(
            "Cost calculated for cargo_type=%s weight=%s distance=%s: %s",
            rule.cargo_type.value,
            weight,
            distance,
            cost,
        )
        return cost

    def list_rules(self, page: int = 1, limit: Optional[int] = None) -> PricingPage:
        """Return one page of rules. page is 1-based; limit is clamped to max_page_size."""
        page = max(page, 1)
        limit = min(max(limit or self.default_page_size, 1), self.max_page_size)
        total = self.store.count()
        offset = (page - 1) * limit
        # Past the last record there is nothing to fetch, and the offset may not fit a SQL integer.
        rules = self.store.list_page(offset=offset, limit=limit) if offset < total else []
        return PricingPage(
            data=rules,
            current_page=page,
            total_pages=math.ceil(total / limit),
            total_records=total,
        )

    def update_rule(self, cargo_type: CargoType, fields: dict) -> PricingRule:
        """Update the rule for cargo_type, creating it if it does not exist yet.

        None values in fields are ignored. Creating a rule this way requires
        all three price fields.
        """
        changes = {k: v for k, v in fields.items() if v is not None}
        for name, value in changes.items():
            if not math.isfinite(value) or value < 0:
                raise InvalidPricingRule(f"{name} must be a finite non-negative number")
        try:
            updated = self.store.upsert(CargoType(cargo_type), changes)
        except ValueError as exc:
            raise InvalidPricingRule(str(exc)) from exc
        logger.info("Pricing rule updated for %s (id=%s)", updated.cargo_type.value, updated.id)
        return updated

    def delete_rule(self, rule_id: int) -> PricingRule:
        deleted = self.store.delete(rule_id)
        if deleted is None:
            raise PricingRuleNotFound(f"Pricing rule with ID {rule_id} not found.")
        logger.info("Pricing rule deleted for %s (id=%s)", deleted.cargo_type.value, rule_id)
        return deleted
