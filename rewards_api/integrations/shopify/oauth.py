"""Shopify OAuth helpers for HMAC verification and token exchange."""

import hashlib
import hmac
import re
from urllib.parse import urlencode

import httpx

from rewards_api.core.config import settings

SHOP_DOMAIN_RE = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9\-]*\.myshopify\.com$")


def is_valid_shop(shop: str | None) -> bool:
    """Whether ``shop`` is a well-formed ``*.myshopify.com`` domain."""
    return bool(shop) and SHOP_DOMAIN_RE.match(shop) is not None  # type: ignore[arg-type]


def verify_hmac(query_params: dict[str, str], secret: str) -> bool:
    """Verify Shopify OAuth callback HMAC signature.

    Args:
        query_params: All query parameters from the callback URL.
        secret: The Shopify API secret.

    Returns:
        True if HMAC is valid.
    """
    received_hmac = query_params.get("hmac", "")
    # Build message from sorted params excluding 'hmac'
    params = {k: v for k, v in sorted(query_params.items()) if k != "hmac"}
    message = urlencode(params)

    computed = hmac.new(
        secret.encode("utf-8"),
        message.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()

    return hmac.compare_digest(computed.encode("utf-8"), received_hmac.encode("utf-8"))


def build_auth_url(shop: str, nonce: str) -> str:
    """Build the Shopify OAuth authorization URL.

    Args:
        shop: The shop domain (e.g. mystore.myshopify.com).
        nonce: Random state parameter for CSRF protection.

    Returns:
        The full authorization URL to redirect the merchant to.
    """
    params = urlencode({
        "client_id": settings.shopify_api_key,
        "scope": ",".join(settings.scope_list),
        "redirect_uri": f"https://{settings.host_name}/auth/callback",
        "state": nonce,
    })
    return f"https://{shop}/admin/oauth/authorize?{params}"


async def exchange_code_for_token(shop: str, code: str) -> tuple[str, list[str]]:
    """Exchange the OAuth authorization code for an offline access token.

    Args:
        shop: The shop domain.
        code: The authorization code from Shopify.

    Returns:
        The access token and the granted scopes.

    Raises:
        httpx.HTTPError: If the token exchange fails.
    """
    url = f"https://{shop}/admin/oauth/access_token"
    async with httpx.AsyncClient() as client:
        response = await client.post(url, json={
            "client_id": settings.shopify_api_key,
            "client_secret": settings.shopify_api_secret,
            "code": code,
        })
        response.raise_for_status()
        data = response.json()
        scope = [s for s in data.get("scope", "").split(",") if s]
        return data["access_token"], scope
