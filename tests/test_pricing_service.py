"""Unit tests for pricing/service.py and pricing/store.py.

Covers:
- Cost formula: base + weight * wm + distance * dm
- One rule per cargo type (PricingRuleExists on the second create)
- Missing rule -> PricingRuleNotFound for calculate and delete
- Pagination metadata, limit clamping, pages far past the end
- update_rule() updates in place and creates a missing rule (upsert)
- Infinity and NaN are rejected everywhere a number is accepted
"""

import pytest

from core.errors import InvalidPricingRule, PricingRuleExists, PricingRuleNotFound
from pricing.models import CargoType, PricingRule
from pricing.service import PricingService, compute_cost
from pricing.store import PricingStore


@pytest.fixture
def service(pricing_store: PricingStore) -> PricingService:
    return PricingService(pricing_store, default_page_size=2, max_page_size=5)


def test_compute_cost() -> None:
    rule = PricingRule(cargo_type="general", base_price=100, weight_multiplier=2, distance_multiplier=0.5)
    assert compute_cost(rule, weight=10, distance=40) == 100 + 20 + 20


def test_rule_rejects_negative_prices() -> None:
    with pytest.raises(ValueError):
        PricingRule(cargo_type="general", base_price=-1, weight_multiplier=0, distance_multiplier=0)


def test_create_and_calculate(service: PricingService) -> None:
    rule = service.create_rule(CargoType.fragile, 50, 1.5, 0.25)
    assert rule.id is not None
    assert rule.cargo_type is CargoType.fragile
    assert service.calculate_cost(weight=10, distance=100, cargo_type=CargoType.fragile) == 50 + 15 + 25


def test_duplicate_cargo_type(service: PricingService) -> None:
    service.create_rule(CargoType.general, 10, 1, 1)
    with pytest.raises(PricingRuleExists):
        service.create_rule(CargoType.general, 20, 2, 2)


def test_calculate_without_rule(service: PricingService) -> None:
    with pytest.raises(PricingRuleNotFound):
        service.calculate_cost(1, 1, CargoType.perishable)


def test_calculate_rejects_negative_inputs(service: PricingService) -> None:
    service.create_rule(CargoType.general, 10, 1, 1)
    with pytest.raises(InvalidPricingRule):
        service.calculate_cost(-1, 1, CargoType.general)


def test_list_rules_pagination(service: PricingService) -> None:
    for cargo in CargoType:
        service.create_rule(cargo, 10, 1, 1)

    first = service.list_rules(page=1)
    assert [r.cargo_type for r in first.data] == [CargoType.perishable, CargoType.fragile]
    assert (first.current_page, first.total_pages, first.total_records) == (1, 2, 3)

    second = service.list_rules(page=2)
    assert [r.cargo_type for r in second.data] == [CargoType.general]

    assert service.list_rules(page=3).data == []


def test_list_rules_clamps_limit(service: PricingService) -> None:
    service.create_rule(CargoType.general, 10, 1, 1)
    page = service.list_rules(page=0, limit=1000)
    assert page.current_page == 1
    assert page.total_pages == 1


def test_list_rules_empty(service: PricingService) -> None:
    page = service.list_rules()
    assert page.data == []
    assert page.total_pages == 0
    assert page.total_records == 0


def test_update_existing_rule(service: PricingService) -> None:
    created = service.create_rule(CargoType.general, 10, 1, 1)
    updated = service.update_rule(CargoType.general, {"base_price": 25, "weight_multiplier": None})
    assert updated.id == created.id
    assert updated.base_price == 25
    assert updated.weight_multiplier == 1


def test_update_creates_missing_rule(service: PricingService) -> None:
    created = service.update_rule(
        CargoType.perishable, {"base_price": 5, "weight_multiplier": 2, "distance_multiplier": 3}
    )
    assert created.id is not None
    assert service.calculate_cost(1, 1, CargoType.perishable) == 10


def test_update_missing_rule_needs_all_fields(service: PricingService) -> None:
    with pytest.raises(InvalidPricingRule):
        service.update_rule(CargoType.perishable, {"base_price": 5})


def test_delete_rule(service: PricingService) -> None:
    created = service.create_rule(CargoType.general, 10, 1, 1)
    deleted = service.delete_rule(created.id)
    assert deleted.cargo_type is CargoType.general
    with pytest.raises(PricingRuleNotFound):
        service.delete_rule(created.id)


def test_page_past_the_end_skips_the_query(service: PricingService) -> None:
    service.create_rule(CargoType.general, 10, 1, 1)
    page = service.list_rules(page=10**19)
    assert page.data == []
    assert page.total_records == 1


@pytest.mark.parametrize("value", [float("inf"), float("nan")])
def test_non_finite_values_rejected(service: PricingService, value: float) -> None:
    with pytest.raises(InvalidPricingRule):
        service.create_rule(CargoType.general, value, 1, 1)
    service.create_rule(CargoType.fragile, 1, 1, 1)
    with pytest.raises(InvalidPricingRule):
        service.update_rule(CargoType.fragile, {"distance_multiplier": value})
    with pytest.raises(InvalidPricingRule):
        service.calculate_cost(value, 1, CargoType.fragile)
