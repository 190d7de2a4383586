"""Post-OAuth bookkeeping: session, uninstall webhook, redirect."""

import logging
from typing import Any
from urllib.parse import urlencode

import httpx

from rewards_api.integrations.shopify.webhooks import (
    APP_UNINSTALLED,
    WebhookHandler,
    webhook_registry,
)
from rewards_api.schemas.shopify import ShopSession
from rewards_api.services.session_store import ShopSessionStore

logger = logging.getLogger(__name__)

WEBHOOK_PATH = "/webhooks"


def uninstall_handler(store: ShopSessionStore) -> WebhookHandler:
    """Build the APP_UNINSTALLED handler that forgets the shop."""

    async def _on_uninstalled(topic: str, shop: str, body: dict[str, Any]) -> None:  # noqa: ARG001
        await store.remove(shop)
        logger.info("Removed session for uninstalled shop %s", shop)

    return _on_uninstalled


async def complete_auth(
    store: ShopSessionStore,
    *,
    shop: str,
    access_token: str,
    scope: list[str],
    host: str,
) -> str:
    """Record the shop, subscribe to uninstalls, and return the app URL.

    A failed webhook subscription is logged and otherwise ignored; the shop
    then keeps its session until the next manual cleanup.
    """
    await store.put(ShopSession(shop=shop, access_token=access_token, scope=scope))
    logger.info("Shop %s authorised with scope %s", shop, ",".join(scope))

    try:
        result = await webhook_registry.register(
            topic=APP_UNINSTALLED,
            shop=shop,
            access_token=access_token,
            path=WEBHOOK_PATH,
            handler=uninstall_handler(store),
        )
        if not result.success:
            logger.warning("Failed to register APP_UNINSTALLED webhook: %s", result.result)
    except httpx.HTTPError as e:
        logger.warning("Failed to register APP_UNINSTALLED webhook: %s", e)

    return f"/?{urlencode({'shop': shop, 'host': host})}"
