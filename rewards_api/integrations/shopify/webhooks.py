"""Shopify webhook verification, subscription and dispatch."""

import base64
import hashlib
import hmac
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import Request, status

from rewards_api.core.config import settings
from rewards_api.core.errors import WebhookProcessingError
from rewards_api.integrations.shopify.client import ShopifyClient
from rewards_api.schemas.shopify import WebhookRegistrationResult

logger = logging.getLogger(__name__)

WebhookHandler = Callable[[str, str, dict[str, Any]], Awaitable[Any]]

APP_UNINSTALLED = "APP_UNINSTALLED"


def verify_webhook(data: bytes, hmac_header: str, secret: str) -> bool:
    """Verify a Shopify webhook's HMAC-SHA256 signature.

    Args:
        data: The raw request body bytes.
        hmac_header: The X-Shopify-Hmac-Sha256 header value.
        secret: The Shopify API secret.

    Returns:
        True if the signature is valid.
    """
    computed = base64.b64encode(
        hmac.new(
            secret.encode("utf-8"),
            data,
            hashlib.sha256,
        ).digest()
    ).decode("utf-8")

    return hmac.compare_digest(computed.encode("utf-8"), hmac_header.encode("utf-8"))


def normalize_topic(topic: str) -> str:
    """``app/uninstalled`` and ``APP_UNINSTALLED`` name the same topic."""
    return topic.strip().upper().replace("/", "_")


def rest_topic(topic: str) -> str:
    """REST Admin API spelling of a topic: ``APP_UNINSTALLED`` -> ``app/uninstalled``."""
    return normalize_topic(topic).lower().replace("_", "/", 1)


class WebhookRegistry:
    """Maps webhook topics to in-process handlers.

    One handler per topic; registering again replaces it.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, WebhookHandler] = {}

    def add_handler(self, topic: str, handler: WebhookHandler) -> None:
        self._handlers[normalize_topic(topic)] = handler

    def get_handler(self, topic: str) -> WebhookHandler | None:
        return self._handlers.get(normalize_topic(topic))

    def is_registered(self, topic: str) -> bool:
        return normalize_topic(topic) in self._handlers

    async def register(
        self,
        *,
        topic: str,
        shop: str,
        access_token: str,
        path: str,
        handler: WebhookHandler,
    ) -> WebhookRegistrationResult:
        """Install ``handler`` locally and subscribe the shop upstream."""
        self.add_handler(topic, handler)

        address = f"https://{settings.host_name}{path}"
        client = ShopifyClient(shop, access_token)
        return await client.register_webhook(rest_topic(topic), address)

    async def process(self, request: Request) -> tuple[str, str]:
        """Verify an inbound webhook and run its handler.

        Returns:
            The normalised topic and the shop domain.

        Raises:
            WebhookProcessingError: On a bad signature, missing headers,
                an unparsable body or a topic with no handler.
        """
        body = await request.body()
        hmac_header = request.headers.get("X-Shopify-Hmac-Sha256", "")

        if not hmac_header or not verify_webhook(body, hmac_header, settings.shopify_api_secret):
            raise WebhookProcessingError(
                "Invalid webhook signature",
                status_code=status.HTTP_401_UNAUTHORIZED,
                code="webhook_unauthorized",
            )

        topic = request.headers.get("X-Shopify-Topic", "")
        shop = request.headers.get("X-Shopify-Shop-Domain", "")
        if not topic or not shop:
            raise WebhookProcessingError("Missing X-Shopify-Topic or X-Shopify-Shop-Domain header")

        try:
            payload = json.loads(body) if body else {}
        except json.JSONDecodeError as e:
            raise WebhookProcessingError(f"Invalid JSON body: {e}") from e

        handler = self.get_handler(topic)
        if handler is None:
            raise WebhookProcessingError(
                f"No webhook is registered for topic {topic}",
                status_code=status.HTTP_404_NOT_FOUND,
                code="webhook_unhandled",
            )

        await handler(normalize_topic(topic), shop, payload)
        return normalize_topic(topic), shop


webhook_registry = WebhookRegistry()
