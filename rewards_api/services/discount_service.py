"""Discount code issuance for reward redemptions."""

import logging
from typing import Any

from rewards_api.core.errors import PriceRuleNotFoundError
from rewards_api.integrations.shopify.client import ShopifyClient
from rewards_api.services.code_generator import generate_code
from rewards_api.services.price_rule_service import find_price_rule, list_price_rules

logger = logging.getLogger(__name__)


async def issue_discount_code(client: ShopifyClient, title: str) -> dict[str, Any]:
    """Create a new discount code under the price rule titled ``title``.

    Raises:
        PriceRuleNotFoundError: If the shop has no price rule with that title.
            No code is created in that case.
    """
    listing = await list_price_rules(client)
    rule = find_price_rule(listing["price_rules"], title)
    if rule is None:
        raise PriceRuleNotFoundError(title)

    code = generate_code()
    created = await client.post(
        f"price_rules/{rule['id']}/discount_codes",
        {"discount_code": {"code": code}},
    )
    logger.info("Issued discount code under price rule %s for %s", rule["id"], client.shop_domain)
    return created
