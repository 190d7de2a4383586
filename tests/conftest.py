"""Pytest configuration and fixtures for the Shop Rewards API test suite.

Provides:
- Shopify test settings (API key/secret, host, scopes)
- The app's in-memory session store, emptied around each test
- Async test client with the front-end renderer replaced by a stub
- Session token, webhook signature and OAuth HMAC helpers
- Mocks for ShopifyClient, httpx in the client, and the token exchange
- Disabled rate limiting
"""

import time
from collections.abc import AsyncGenerator, Callable, Generator
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import jwt
import pytest
import pytest_asyncio
from fastapi import Request
from fastapi.responses import PlainTextResponse, Response
from httpx import ASGITransport, AsyncClient

from rewards_api.core.rate_limit import limiter
from rewards_api.integrations.frontend import get_frontend_renderer
from rewards_api.main import app
from rewards_api.schemas.shopify import ShopSession
from rewards_api.services.session_store import MemorySessionStore
from scripts.sign_webhook import sign

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
SHOPIFY_TEST_API_KEY = "test-shopify-api-key"
SHOPIFY_TEST_API_SECRET = "test-shopify-api-secret"
SHOPIFY_TEST_HOST = "https://rewards.example.com"
SHOPIFY_TEST_SCOPES = "write_price_rules,write_discounts"
SHOPIFY_TEST_SHOP = "demo.myshopify.com"
SHOPIFY_TEST_TOKEN = "shpat_test_access_token_123"

# ---------------------------------------------------------------------------
# Disable rate limiting globally for tests
# ---------------------------------------------------------------------------
limiter.enabled = False


@pytest.fixture(autouse=True)
def set_shopify_test_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure Shopify settings are set for all tests."""
    monkeypatch.setattr("rewards_api.core.config.settings.shopify_api_key", SHOPIFY_TEST_API_KEY)
    monkeypatch.setattr(
        "rewards_api.core.config.settings.shopify_api_secret", SHOPIFY_TEST_API_SECRET
    )
    monkeypatch.setattr("rewards_api.core.config.settings.host", SHOPIFY_TEST_HOST)
    monkeypatch.setattr("rewards_api.core.config.settings.scopes", SHOPIFY_TEST_SCOPES)
    monkeypatch.setattr("rewards_api.core.config.settings.reward_title", "REWARDNAME")


# ---------------------------------------------------------------------------
# Session store
# ---------------------------------------------------------------------------


@pytest.fixture
def session_store() -> Generator[MemorySessionStore, None, None]:
    """The app's session store, empty at the start and end of each test.

    The same instance is used by the uninstall webhook handler installed in
    ``create_app``, so it is cleared rather than replaced.
    """
    store: MemorySessionStore = app.state.session_store
    store.clear()
    yield store
    store.clear()


@pytest_asyncio.fixture
async def installed_shop(session_store: MemorySessionStore) -> ShopSession:
    """A shop that has completed OAuth."""
    session = ShopSession(
        shop=SHOPIFY_TEST_SHOP,
        access_token=SHOPIFY_TEST_TOKEN,
        scope=SHOPIFY_TEST_SCOPES.split(","),
    )
    await session_store.put(session)
    return session


# ---------------------------------------------------------------------------
# Front end stub
# ---------------------------------------------------------------------------


class StubFrontend:
    """Records rendered paths instead of calling a Next.js server."""

    def __init__(self) -> None:
        self.rendered: list[str] = []

    async def handle(self, request: Request) -> Response:
        self.rendered.append(request.url.path)
        return PlainTextResponse(f"rendered {request.url.path}")


@pytest.fixture
def frontend() -> StubFrontend:
    return StubFrontend()


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(
    session_store: MemorySessionStore,  # noqa: ARG001  # Ensures a clean store
    frontend: StubFrontend,
) -> AsyncGenerator[AsyncClient, None]:
    """Async test client with the front-end renderer stubbed."""
    app.dependency_overrides[get_frontend_renderer] = lambda: frontend

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------


@pytest.fixture
def session_token() -> Callable[..., str]:
    """Build an App Bridge session token.

    Usage:
        token = session_token()                        # valid, for the test shop
        token = session_token(shop="other.myshopify.com")
        token = session_token(exp_offset=-3600)        # expired
    """

    def _make(
        shop: str = SHOPIFY_TEST_SHOP,
        *,
        secret: str = SHOPIFY_TEST_API_SECRET,
        audience: str = SHOPIFY_TEST_API_KEY,
        exp_offset: int = 60,
    ) -> str:
        now = int(time.time())
        payload = {
            "iss": f"https://{shop}/admin",
            "dest": f"https://{shop}",
            "aud": audience,
            "sub": "42",
            "exp": now + exp_offset,
            "nbf": now - 5,
            "iat": now - 5,
            "jti": "test-jti",
            "sid": "test-sid",
        }
        return jwt.encode(payload, secret, algorithm="HS256")

    return _make


@pytest.fixture
def auth_headers(session_token: Callable[..., str]) -> dict[str, str]:
    """Authorization header for the test shop."""
    return {"Authorization": f"Bearer {session_token()}"}


# ---------------------------------------------------------------------------
# Webhooks & OAuth signatures
# ---------------------------------------------------------------------------


@pytest.fixture
def shopify_webhook_headers() -> Callable[..., dict[str, str]]:
    """Generate complete Shopify webhook headers for a given body.

    Usage:
        headers = shopify_webhook_headers(body, topic="app/uninstalled")
    """

    def _headers(
        body: bytes,
        topic: str = "app/uninstalled",
        shop: str = SHOPIFY_TEST_SHOP,
    ) -> dict[str, str]:
        return {
            "X-Shopify-Hmac-Sha256": sign(body, SHOPIFY_TEST_API_SECRET),
            "X-Shopify-Topic": topic,
            "X-Shopify-Shop-Domain": shop,
            "Content-Type": "application/json",
        }

    return _headers


@pytest.fixture
def shopify_oauth_hmac() -> Callable[[dict[str, str]], str]:
    """Generate a valid Shopify OAuth callback HMAC for query params.

    Shopify's OAuth callback includes an HMAC computed over sorted query params
    (excluding the hmac param itself).
    """
    import hashlib
    import hmac
    from urllib.parse import urlencode

    def _compute(params: dict[str, str]) -> str:
        filtered = {k: v for k, v in sorted(params.items()) if k != "hmac"}
        message = urlencode(filtered)
        return hmac.new(
            SHOPIFY_TEST_API_SECRET.encode(),
            message.encode(),
            hashlib.sha256,
        ).hexdigest()

    return _compute


# ---------------------------------------------------------------------------
# Shopify mocks
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_shopify_token_exchange() -> Generator[AsyncMock, None, None]:
    """Mock the OAuth token exchange HTTP call in oauth.py."""
    with patch("rewards_api.integrations.shopify.oauth.httpx.AsyncClient") as mock_class:
        mock_client = AsyncMock()
        mock_class.return_value.__aenter__.return_value = mock_client

        mock_response = MagicMock()
        mock_response.json.return_value = {
            "access_token": SHOPIFY_TEST_TOKEN,
            "scope": SHOPIFY_TEST_SCOPES,
        }
        mock_response.raise_for_status = MagicMock()
        mock_client.post.return_value = mock_response

        yield mock_client


@pytest.fixture
def mock_webhook_registration() -> Generator[AsyncMock, None, None]:
    """Mock ShopifyClient.register_webhook as used by the webhook registry."""
    from rewards_api.schemas.shopify import WebhookRegistrationResult

    with patch(
        "rewards_api.integrations.shopify.webhooks.ShopifyClient.register_webhook",
        new_callable=AsyncMock,
    ) as mock_register:
        mock_register.return_value = WebhookRegistrationResult(
            success=True, result={"webhook": {"id": 1}}
        )
        yield mock_register


@pytest.fixture
def mock_shopify_client() -> Generator[MagicMock, None, None]:
    """Mock the ShopifyClient built for session-authenticated routes."""
    with patch("rewards_api.core.deps.ShopifyClient") as mock_class:
        mock_instance = MagicMock()
        mock_instance.shop_domain = SHOPIFY_TEST_SHOP
        mock_class.return_value = mock_instance

        mock_instance.get_all = AsyncMock(return_value=[])
        mock_instance.get = AsyncMock(return_value={})
        mock_instance.post = AsyncMock(return_value={})
        mock_instance.graphql = AsyncMock(return_value=(200, {"data": {}}))

        yield mock_instance


@pytest.fixture
def mock_shopify_http() -> Generator[AsyncMock, None, None]:
    """Mock httpx.AsyncClient for ShopifyClient unit tests.

    Tests set ``request.return_value`` / ``post.return_value`` to real
    ``httpx.Response`` objects.
    """
    with patch("rewards_api.integrations.shopify.client.httpx.AsyncClient") as mock_class:
        mock_client = AsyncMock()
        mock_class.return_value.__aenter__.return_value = mock_client
        yield mock_client


@pytest.fixture
def sample_price_rule() -> dict[str, Any]:
    return {
        "id": 507328175,
        "title": "REWARDNAME",
        "target_type": "line_item",
        "target_selection": "all",
        "allocation_method": "across",
        "value_type": "percentage",
        "value": "-10.0",
        "customer_selection": "all",
        "starts_at": "2022-02-19T17:59:10Z",
    }
