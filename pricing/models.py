"""
pricing/models.py -- Domain dataclasses for freight pricing rules.

Pure data containers. The cost formula and the one-rule-per-cargo-type
policy live in pricing/service.py; persistence lives in pricing/store.py.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CargoType(str, Enum):
    perishable = "perishable"
    fragile = "fragile"
    general = "general"


@dataclass
class PricingRule:
    """Cost parameters for one cargo type.

    cost = base_price + weight * weight_multiplier + distance * distance_multiplier

    id is None before the record is written to the database.
    """

    cargo_type: CargoType
    base_price: float
    weight_multiplier: float
    distance_multiplier: float
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""

    def __post_init__(self) -> None:
        self.cargo_type = CargoType(self.cargo_type)
        for name in ("base_price", "weight_multiplier", "distance_multiplier"):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"{name} must be a finite non-negative number")


@dataclass
class PricingPage:
    data: list[PricingRule]
    current_page: int
    total_pages: int
    total_records: int
