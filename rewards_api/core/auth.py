"""Shopify App Bridge session token verification.

The embedded front end sends ``Authorization: Bearer <session token>`` on
every API call. The token is an HS256 JWT signed with the app's API secret;
its ``dest`` claim is the shop URL.
"""

from typing import Any
from urllib.parse import urlparse

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from rewards_api.core.config import settings
from rewards_api.core.errors import SessionInvalidError

# HTTP Bearer token security scheme
bearer_scheme = HTTPBearer(auto_error=False)

# Clock skew tolerated between Shopify and this server
LEEWAY_SECONDS = 10


def decode_session_token(token: str) -> dict[str, Any]:
    """Verify a session token and return its payload.

    Raises:
        SessionInvalidError: If the token is malformed, expired, signed with
            another secret or issued for another app.
    """
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.shopify_api_secret,
            algorithms=["HS256"],
            audience=settings.shopify_api_key,
            leeway=LEEWAY_SECONDS,
            options={"require": ["exp", "dest", "aud"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise SessionInvalidError("Session token has expired") from e
    except jwt.InvalidTokenError as e:
        raise SessionInvalidError(f"Invalid session token: {e}") from e

    return payload


def shop_from_payload(payload: dict[str, Any]) -> str:
    """Extract the shop domain from the ``dest`` claim."""
    shop = urlparse(str(payload.get("dest", ""))).hostname
    if not shop:
        raise SessionInvalidError("Session token has no destination shop")
    return shop


async def get_session_shop(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """Dependency returning the shop named by the request's session token."""
    if credentials is None:
        raise SessionInvalidError("Missing session token")

    return shop_from_payload(decode_session_token(credentials.credentials))
