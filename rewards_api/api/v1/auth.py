"""Shopify OAuth endpoints."""

import hmac as hmac_mod
import logging
import secrets

import httpx
from fastapi import APIRouter, Query, Request
from fastapi.responses import RedirectResponse

from rewards_api.core.config import settings
from rewards_api.core.deps import SessionStoreDep
from rewards_api.core.errors import OAuthError
from rewards_api.integrations.shopify.oauth import (
    build_auth_url,
    exchange_code_for_token,
    is_valid_shop,
    verify_hmac,
)
from rewards_api.services.auth_service import complete_auth

logger = logging.getLogger(__name__)

router = APIRouter()

STATE_COOKIE = "shopify_oauth_state"
STATE_TTL_SECONDS = 600  # 10 minutes


@router.get("/auth")
async def begin_auth(shop: str | None = Query(None)) -> RedirectResponse:
    """Start the OAuth flow for ``shop``.

    The nonce travels in the ``state`` parameter and in an HttpOnly cookie;
    the callback accepts the grant only when both agree.
    """
    if not shop or not is_valid_shop(shop):
        raise OAuthError("Invalid shop domain")

    nonce = secrets.token_urlsafe(16)
    response = RedirectResponse(build_auth_url(shop, nonce))
    response.set_cookie(
        STATE_COOKIE,
        nonce,
        max_age=STATE_TTL_SECONDS,
        httponly=True,
        secure=settings.environment != "development",
        samesite="lax",
    )
    return response


@router.get("/auth/callback")
async def auth_callback(
    request: Request,
    store: SessionStoreDep,
    code: str = Query(...),
    shop: str = Query(...),
    state: str = Query(...),
    hmac: str = Query(...),  # noqa: ARG001
    host: str = Query(""),
) -> RedirectResponse:
    """Complete the OAuth handshake and hand the merchant back to the app."""
    params = dict(request.query_params)
    if not verify_hmac(params, settings.shopify_api_secret):
        raise OAuthError("Invalid HMAC signature")

    if not is_valid_shop(shop):
        raise OAuthError("Invalid shop domain")

    expected_state = request.cookies.get(STATE_COOKIE, "")
    if not expected_state or not hmac_mod.compare_digest(
        expected_state.encode("utf-8"), state.encode("utf-8")
    ):
        raise OAuthError("Invalid or expired state")

    try:
        access_token, scope = await exchange_code_for_token(shop, code)
    except httpx.HTTPError as e:
        logger.warning("Token exchange failed for %s: %s", shop, e)
        raise OAuthError("Token exchange failed") from e

    redirect_url = await complete_auth(
        store,
        shop=shop,
        access_token=access_token,
        scope=scope,
        host=host,
    )

    response = RedirectResponse(redirect_url)
    response.delete_cookie(STATE_COOKIE)
    return response
