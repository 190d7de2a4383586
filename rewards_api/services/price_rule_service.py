"""Price rule listing and creation."""

import logging
from typing import Any

from rewards_api.core.config import settings
from rewards_api.integrations.shopify.client import ShopifyClient
from rewards_api.schemas.shopify import PriceRuleCreate

logger = logging.getLogger(__name__)


async def list_price_rules(client: ShopifyClient) -> dict[str, Any]:
    """All price rules of the shop, in Admin API order."""
    rules = await client.get_all("price_rules", "price_rules")
    return {"price_rules": rules}


async def create_price_rule(client: ShopifyClient, data: PriceRuleCreate) -> dict[str, Any]:
    """Create a price rule from ``data``; unset fields fall back to the reward template."""
    payload = data.to_payload(default_title=settings.reward_title)
    created = await client.post("price_rules", {"price_rule": payload})
    logger.info(
        "Created price rule %s (%s) for %s",
        created.get("price_rule", {}).get("id"),
        payload["title"],
        client.shop_domain,
    )
    return created


def find_price_rule(rules: list[dict[str, Any]], title: str) -> dict[str, Any] | None:
    """First rule whose title equals ``title``."""
    return next((rule for rule in rules if rule.get("title") == title), None)
