"""Tests for the catch-all router and the front-end renderer."""

from collections.abc import AsyncIterator

import httpx
from httpx import AsyncClient

from rewards_api.integrations.frontend import FrontendRenderer, get_frontend_renderer
from rewards_api.main import app
from rewards_api.schemas.shopify import ShopSession
from rewards_api.services.session_store import MemorySessionStore
from tests.conftest import SHOPIFY_TEST_SHOP, SHOPIFY_TEST_TOKEN, StubFrontend


async def _streamed(*chunks: bytes) -> AsyncIterator[bytes]:
    """Unread body, as a real upstream connection delivers it."""
    for chunk in chunks:
        yield chunk


# ---------------------------------------------------------------------------
# Catch-all auth gate
# ---------------------------------------------------------------------------


class TestCatchAll:
    async def test_unknown_shop_redirects_to_auth(
        self, client: AsyncClient, frontend: StubFrontend
    ) -> None:
        response = await client.get("/", params={"shop": SHOPIFY_TEST_SHOP})

        assert response.status_code == 307
        assert response.headers["location"] == f"/auth?shop={SHOPIFY_TEST_SHOP}"
        assert frontend.rendered == []

    async def test_missing_shop_redirects_to_auth(
        self, client: AsyncClient, frontend: StubFrontend
    ) -> None:
        response = await client.get("/settings")

        assert response.status_code == 307
        assert response.headers["location"] == "/auth"
        assert frontend.rendered == []

    async def test_installed_shop_is_rendered(
        self,
        client: AsyncClient,
        installed_shop: ShopSession,  # noqa: ARG002
        frontend: StubFrontend,
    ) -> None:
        response = await client.get("/", params={"shop": SHOPIFY_TEST_SHOP, "host": "abc"})

        assert response.status_code == 200
        assert response.text == "rendered /"
        assert frontend.rendered == ["/"]

    async def test_nested_path_is_rendered(
        self,
        client: AsyncClient,
        installed_shop: ShopSession,  # noqa: ARG002
        frontend: StubFrontend,
    ) -> None:
        response = await client.get("/rewards/new", params={"shop": SHOPIFY_TEST_SHOP})

        assert response.status_code == 200
        assert frontend.rendered == ["/rewards/new"]

    async def test_stale_scope_redirects_to_auth(
        self,
        client: AsyncClient,
        session_store: MemorySessionStore,
        frontend: StubFrontend,
    ) -> None:
        await session_store.put(
            ShopSession(shop=SHOPIFY_TEST_SHOP, access_token=SHOPIFY_TEST_TOKEN, scope=[])
        )

        response = await client.get("/", params={"shop": SHOPIFY_TEST_SHOP})

        assert response.status_code == 307
        assert frontend.rendered == []

    async def test_next_assets_bypass_auth(
        self, client: AsyncClient, frontend: StubFrontend
    ) -> None:
        static = await client.get("/_next/static/chunks/main.js")
        hmr = await client.get("/_next/webpack-hmr")

        assert static.status_code == 200
        assert hmr.status_code == 200
        assert frontend.rendered == ["/_next/static/chunks/main.js", "/_next/webpack-hmr"]

    async def test_api_routes_are_not_shadowed(self, client: AsyncClient) -> None:
        response = await client.get("/health/live")

        assert response.json() == {"status": "alive"}


# ---------------------------------------------------------------------------
# FrontendRenderer
# ---------------------------------------------------------------------------


class TestFrontendRenderer:
    async def test_relays_response(
        self,
        client: AsyncClient,
        installed_shop: ShopSession,  # noqa: ARG002
    ) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                content=_streamed(b"<html>", b"app</html>"),
                headers={"Content-Type": "text/html", "Connection": "keep-alive"},
            )

        renderer = FrontendRenderer("http://next.test/", transport=httpx.MockTransport(handler))
        app.dependency_overrides[get_frontend_renderer] = lambda: renderer

        response = await client.get("/", params={"shop": SHOPIFY_TEST_SHOP, "host": "abc"})

        assert response.status_code == 200
        assert response.text == "<html>app</html>"
        assert response.headers["content-type"] == "text/html"
        assert "connection" not in response.headers
        assert str(seen[0].url) == f"http://next.test/?shop={SHOPIFY_TEST_SHOP}&host=abc"
        assert seen[0].headers["host"] == "next.test"

    async def test_relays_error_status(self, client: AsyncClient) -> None:
        renderer = FrontendRenderer(
            "http://next.test",
            transport=httpx.MockTransport(
                lambda _request: httpx.Response(404, content=_streamed(b"missing"))
            ),
        )
        app.dependency_overrides[get_frontend_renderer] = lambda: renderer

        response = await client.get("/_next/static/chunks/gone.js")

        assert response.status_code == 404
        assert response.text == "missing"

    async def test_unreachable_frontend(self, client: AsyncClient) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        renderer = FrontendRenderer("http://next.test", transport=httpx.MockTransport(handler))
        app.dependency_overrides[get_frontend_renderer] = lambda: renderer

        response = await client.get("/_next/static/chunks/main.js")

        assert response.status_code == 502
        assert response.json()["code"] == "frontend_unreachable"
