"""Dependency injection for FastAPI routes."""

from typing import Annotated

from fastapi import Depends, Request

from rewards_api.core.auth import get_session_shop
from rewards_api.core.config import settings
from rewards_api.core.errors import SessionInvalidError
from rewards_api.core.logging_config import shop_var
from rewards_api.integrations.frontend import FrontendRenderer, get_frontend_renderer
from rewards_api.integrations.shopify.client import ShopifyClient
from rewards_api.schemas.shopify import ShopSession
from rewards_api.services.session_store import ShopSessionStore


def get_session_store(request: Request) -> ShopSessionStore:
    """The session store created by ``create_app``."""
    store: ShopSessionStore = request.app.state.session_store
    return store


SessionStoreDep = Annotated[ShopSessionStore, Depends(get_session_store)]


async def get_current_session(
    store: SessionStoreDep,
    shop: str = Depends(get_session_shop),
) -> ShopSession:
    """Load the session of the shop named by the session token.

    Shops that were never authorised, were uninstalled, or hold a scope that
    no longer covers ``SCOPES`` must re-authenticate.
    """
    session = await store.get(shop)
    if session is None:
        raise SessionInvalidError("Shop has not installed the app", shop=shop)
    if not session.has_scopes(settings.scope_list):
        raise SessionInvalidError("Granted scope no longer matches app scopes", shop=shop)

    shop_var.set(shop)
    return session


CurrentSession = Annotated[ShopSession, Depends(get_current_session)]


def get_shopify_client(session: CurrentSession) -> ShopifyClient:
    """REST/GraphQL client bound to the current shop."""
    return ShopifyClient(session.shop, session.access_token)


ShopifyClientDep = Annotated[ShopifyClient, Depends(get_shopify_client)]
FrontendDep = Annotated[FrontendRenderer, Depends(get_frontend_renderer)]


__all__ = [
    "CurrentSession",
    "FrontendDep",
    "SessionStoreDep",
    "ShopifyClientDep",
    "get_current_session",
    "get_session_store",
    "get_shopify_client",
]
