"""Discount code endpoints (session required)."""

from typing import Any

from fastapi import APIRouter, Request

from rewards_api.core.config import settings
from rewards_api.core.deps import ShopifyClientDep
from rewards_api.core.rate_limit import limiter
from rewards_api.schemas.shopify import DiscountCodeCreate
from rewards_api.services.discount_service import issue_discount_code

router = APIRouter()


@router.post("/discount/new")
@limiter.limit(lambda: settings.discount_rate_limit)
async def new_discount_code(
    request: Request,  # noqa: ARG001
    client: ShopifyClientDep,
    data: DiscountCodeCreate | None = None,
) -> dict[str, Any]:
    """Redeem a reward: create a discount code under the reward's price rule.

    The response's ``discount_code.code`` is shown to the customer by the
    app extension.
    """
    title = (data.title if data else None) or settings.reward_title
    return await issue_discount_code(client, title)
