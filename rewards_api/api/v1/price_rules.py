"""Price rule endpoints (session required)."""

from typing import Any

from fastapi import APIRouter

from rewards_api.core.deps import ShopifyClientDep
from rewards_api.schemas.shopify import PriceRuleCreate
from rewards_api.services.price_rule_service import create_price_rule, list_price_rules

router = APIRouter()


@router.get("/pricerule")
async def get_price_rules(client: ShopifyClientDep) -> dict[str, Any]:
    """List the shop's price rules.

    The storefront uses this list to find the rule behind a reward.
    """
    return await list_price_rules(client)


@router.post("/pricerule/new")
async def new_price_rule(
    client: ShopifyClientDep,
    data: PriceRuleCreate | None = None,
) -> dict[str, Any]:
    """Create a price rule for a new reward option.

    Every field is optional; an empty body creates the default reward.
    """
    return await create_price_rule(client, data or PriceRuleCreate())
