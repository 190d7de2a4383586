"""Relay to the Next.js server that renders the embedded app."""

import logging

import httpx
from fastapi import Request
from starlette.background import BackgroundTask
from starlette.responses import Response, StreamingResponse

from rewards_api.core.config import settings
from rewards_api.core.errors import FrontendUnavailableError

logger = logging.getLogger(__name__)

HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
    "host",
    "content-length",
}


class FrontendRenderer:
    """Forwards a request to the front-end server and streams its answer back.

    Streaming keeps ``/_next/webpack-hmr`` (a long-lived event stream) working.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def handle(self, request: Request) -> Response:
        client = httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self.transport
        )
        headers = {
            k: v for k, v in request.headers.items() if k.lower() not in HOP_BY_HOP_HEADERS
        }
        upstream_request = client.build_request(
            request.method,
            request.url.path,
            params=request.query_params.multi_items(),
            headers=headers,
            content=await request.body(),
        )

        try:
            upstream = await client.send(upstream_request, stream=True)
        except httpx.TransportError as e:
            await client.aclose()
            logger.error("Front end unreachable at %s: %s", self.base_url, e)
            raise FrontendUnavailableError(str(e)) from e

        async def _close() -> None:
            await upstream.aclose()
            await client.aclose()

        return StreamingResponse(
            upstream.aiter_raw(),
            status_code=upstream.status_code,
            headers={
                k: v
                for k, v in upstream.headers.items()
                if k.lower() not in HOP_BY_HOP_HEADERS
            },
            background=BackgroundTask(_close),
        )


_renderer: FrontendRenderer | None = None


def get_frontend_renderer() -> FrontendRenderer:
    """Dependency returning the process-wide renderer."""
    global _renderer  # noqa: PLW0603
    if _renderer is None:
        _renderer = FrontendRenderer(settings.frontend_url)
    return _renderer
