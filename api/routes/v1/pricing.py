"""
api/routes/v1/pricing.py -- Pricing rule and cost calculation routes.

Routes and the roles each admits:
  POST   /pricing                -- create rule             admin
  PUT    /pricing/{cargo_type}   -- update (or create) rule admin
  DELETE /pricing/{rule_id}      -- delete rule             admin
  POST   /pricing/calculate      -- quote a shipment        admin, shipper
  GET    /pricing                -- list rules (paginated)  admin, shipper, carrier

Every route is behind require_roles(), which depends on get_identity(), so
an unauthenticated request gets 401 before any role is looked at and a
caller outside the allow-list gets 403.
"""

from fastapi import APIRouter, Depends, Query, Request

from api.models import (
    CostRequest,
    CostResponse,
    MessageResponse,
    PricingPageResponse,
    PricingRuleCreate,
    PricingRuleResponse,
    PricingRuleUpdate,
)
from auth.dependencies import require_roles
from auth.models import Role
from pricing.models import CargoType
from pricing.service import PricingService

router = APIRouter()

_admin_only = require_roles(Role.admin)
_quoting_roles = require_roles(Role.admin, Role.shipper)
_any_role = require_roles(Role.admin, Role.shipper, Role.carrier)


@router.post(
    "/pricing",
    response_model=PricingRuleResponse,
    status_code=201,
    dependencies=[Depends(_admin_only)],
)
def create_pricing_rule(request: Request, body: PricingRuleCreate) -> PricingRuleResponse:
    """Create the pricing rule for a cargo type. One rule per cargo type."""
    service: PricingService = request.app.state.pricing
    rule = service.create_rule(
        cargo_type=body.cargo_type,
        base_price=body.base_price,
        weight_multiplier=body.weight_multiplier,
        distance_multiplier=body.distance_multiplier,
    )
    return PricingRuleResponse.from_rule(rule)


@router.post("/pricing/calculate", response_model=CostResponse, dependencies=[Depends(_quoting_roles)])
def calculate_cost(request: Request, body: CostRequest) -> CostResponse:
    """Quote a shipment: base price plus weight and distance charges."""
    service: PricingService = request.app.state.pricing
    return CostResponse(cost=service.calculate_cost(body.weight, body.distance, body.cargo_type))


@router.get("/pricing", response_model=PricingPageResponse, dependencies=[Depends(_any_role)])
def list_pricing_rules(
    request: Request,
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
) -> PricingPageResponse:
    """Return one page of pricing rules."""
    service: PricingService = request.app.state.pricing
    return PricingPageResponse.from_page(service.list_rules(page=page, limit=limit))


@router.put("/pricing/{cargo_type}", response_model=PricingRuleResponse, dependencies=[Depends(_admin_only)])
def update_pricing_rule(request: Request, cargo_type: CargoType, body: PricingRuleUpdate) -> PricingRuleResponse:
    """Update the rule for cargo_type, creating it when none exists."""
    service: PricingService = request.app.state.pricing
    rule = service.update_rule(cargo_type, body.model_dump())
    return PricingRuleResponse.from_rule(rule)


@router.delete("/pricing/{rule_id}", response_model=MessageResponse, dependencies=[Depends(_admin_only)])
def delete_pricing_rule(request: Request, rule_id: int) -> MessageResponse:
    service: PricingService = request.app.state.pricing
    service.delete_rule(rule_id)
    return MessageResponse(message="Pricing rule deleted.")
