"""Front-end passthrough and the catch-all auth gate.

Must be included last: ``/{path:path}`` matches every GET.
"""

from urllib.parse import urlencode

from fastapi import APIRouter, Query, Request
from fastapi.responses import RedirectResponse, Response

from rewards_api.core.config import settings
from rewards_api.core.deps import FrontendDep, SessionStoreDep

router = APIRouter(include_in_schema=False)


@router.get("/_next/static/{path:path}")
async def next_static(request: Request, frontend: FrontendDep) -> Response:
    return await frontend.handle(request)


@router.get("/_next/webpack-hmr")
async def next_webpack_hmr(request: Request, frontend: FrontendDep) -> Response:
    return await frontend.handle(request)


@router.get("/{path:path}")
async def render_app(
    request: Request,
    store: SessionStoreDep,
    frontend: FrontendDep,
    shop: str | None = Query(None),
) -> Response:
    """Render the app for known shops; send everyone else through OAuth."""
    session = await store.get(shop) if shop else None
    if session is None or not session.has_scopes(settings.scope_list):
        target = f"/auth?{urlencode({'shop': shop})}" if shop else "/auth"
        return RedirectResponse(target)

    return await frontend.handle(request)
