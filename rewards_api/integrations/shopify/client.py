"""Shopify Admin API client using httpx."""

import logging
from typing import Any

import httpx

from rewards_api.core.config import settings
from rewards_api.core.errors import (
    ShopifyAPIError,
    ShopifyForbiddenError,
    ShopifyNotFoundError,
    ShopifyRateLimitedError,
    ShopifySessionExpiredError,
    ShopifyUnavailableError,
    ShopifyValidationError,
)
from rewards_api.schemas.shopify import WebhookRegistrationResult

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30.0


class ShopifyClient:
    """Async client for the Shopify Admin REST and GraphQL APIs.

    REST paths are resource paths relative to the versioned Admin API root,
    e.g. ``price_rules`` or ``price_rules/123/discount_codes``.
    """

    def __init__(self, shop_domain: str, access_token: str) -> None:
        self.shop_domain = shop_domain
        self.base_url = f"https://{shop_domain}/admin/api/{settings.shopify_api_version}"
        self.headers = {
            "X-Shopify-Access-Token": access_token,
            "Content-Type": "application/json",
        }

    def _url(self, path: str) -> str:
        path = path.strip("/")
        if not path.endswith(".json"):
            path = f"{path}.json"
        return f"{self.base_url}/{path}"

    async def get(self, path: str, query: dict[str, Any] | None = None) -> dict[str, Any]:
        """GET a REST resource and return the decoded body."""
        async with httpx.AsyncClient(headers=self.headers, timeout=REQUEST_TIMEOUT) as client:
            response = await self._send(client, "GET", self._url(path), params=query)
            data: dict[str, Any] = response.json()
            return data

    async def post(self, path: str, data: dict[str, Any]) -> dict[str, Any]:
        """POST a JSON body to a REST resource and return the decoded body."""
        async with httpx.AsyncClient(headers=self.headers, timeout=REQUEST_TIMEOUT) as client:
            response = await self._send(client, "POST", self._url(path), json=data)
            body: dict[str, Any] = response.json()
            return body

    async def get_all(self, path: str, key: str, limit: int = 250) -> list[dict[str, Any]]:
        """Fetch every item of a list resource using cursor-based pagination."""
        items: list[dict[str, Any]] = []
        url: str | None = f"{self._url(path)}?limit={limit}"

        async with httpx.AsyncClient(headers=self.headers, timeout=REQUEST_TIMEOUT) as client:
            while url:
                response = await self._send(client, "GET", url)
                items.extend(response.json().get(key, []))

                # Cursor-based pagination via Link header
                url = self._get_next_page_url(response)

        return items

    async def graphql(self, body: dict[str, Any]) -> tuple[int, Any]:
        """Forward a GraphQL request; return the upstream status and JSON body.

        GraphQL errors are returned to the caller as-is. Only transport
        failures raise.
        """
        url = f"{self.base_url}/graphql.json"
        async with httpx.AsyncClient(headers=self.headers, timeout=REQUEST_TIMEOUT) as client:
            try:
                response = await client.post(url, json=body)
            except httpx.TransportError as e:
                raise ShopifyUnavailableError(f"{self.shop_domain}: {e}") from e
            try:
                return response.status_code, response.json()
            except ValueError:
                return response.status_code, {"errors": response.text}

    async def register_webhook(self, topic: str, address: str) -> WebhookRegistrationResult:
        """Subscribe ``address`` to a webhook topic (e.g. ``app/uninstalled``).

        A non-2xx answer is reported in the result rather than raised. An
        address that is already subscribed counts as success.
        """
        async with httpx.AsyncClient(headers=self.headers, timeout=REQUEST_TIMEOUT) as client:
            try:
                response = await client.post(
                    self._url("webhooks"),
                    json={
                        "webhook": {
                            "topic": topic,
                            "address": address,
                            "format": "json",
                        }
                    },
                )
            except httpx.TransportError as e:
                return WebhookRegistrationResult(success=False, result=str(e))

        try:
            body: dict[str, Any] | str = response.json()
        except ValueError:
            body = response.text

        if response.is_success:
            return WebhookRegistrationResult(success=True, result=body)

        if response.status_code == 422 and "already been taken" in str(body):
            return WebhookRegistrationResult(success=True, result=body)

        logger.warning(
            "Failed to register webhook %s for %s: %s",
            topic,
            self.shop_domain,
            response.status_code,
        )
        return WebhookRegistrationResult(success=False, result=body)

    async def _send(
        self, client: httpx.AsyncClient, method: str, url: str, **kwargs: Any
    ) -> httpx.Response:
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.TransportError as e:
            logger.warning("Shopify unreachable for %s: %s", self.shop_domain, e)
            raise ShopifyUnavailableError(f"{self.shop_domain}: {e}") from e

        self._raise_for_status(response)
        return response

    def _raise_for_status(self, response: httpx.Response) -> None:
        """Translate an error status into the matching ShopifyAPIError."""
        if response.is_success:
            return

        code = response.status_code
        try:
            body = response.json()
        except ValueError:
            body = response.text
        detail = str(body.get("errors", body)) if isinstance(body, dict) else str(body)

        logger.warning("Shopify returned %s for %s: %s", code, self.shop_domain, detail)

        if code == 401:
            raise ShopifySessionExpiredError(detail, upstream_status=code, shop=self.shop_domain)
        if code == 403:
            raise ShopifyForbiddenError(detail, upstream_status=code)
        if code == 404:
            raise ShopifyNotFoundError(detail, upstream_status=code)
        if code == 422:
            raise ShopifyValidationError(detail, upstream_status=code)
        if code == 429:
            raise ShopifyRateLimitedError(detail, upstream_status=code)
        raise ShopifyAPIError(detail, upstream_status=code)

    def _get_next_page_url(self, response: httpx.Response) -> str | None:
        """Extract next page URL from Link header for cursor pagination."""
        link_header = response.headers.get("link", "")
        if not link_header:
            return None

        for part in link_header.split(","):
            if 'rel="next"' in part:
                url: str = part.split(";")[0].strip().strip("<>")
                return url
        return None
