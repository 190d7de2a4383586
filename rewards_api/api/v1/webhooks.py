"""Inbound Shopify webhooks (verified via HMAC, no session)."""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from rewards_api.core.errors import WebhookProcessingError, error_response
from rewards_api.integrations.shopify.webhooks import webhook_registry
from rewards_api.schemas.shopify import WebhookProcessedResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/webhooks", response_model=WebhookProcessedResponse)
async def receive_webhook(request: Request) -> WebhookProcessedResponse | JSONResponse:
    """Verify and dispatch a webhook to its registered handler."""
    try:
        topic, shop = await webhook_registry.process(request)
    except WebhookProcessingError as e:
        logger.warning("Failed to process webhook: %s", e)
        return error_response(e)

    logger.info("Webhook %s for %s processed, returned status code 200", topic, shop)
    return WebhookProcessedResponse(topic=topic, shop=shop)
