"""GraphQL Admin API proxy (session required)."""

from typing import Any

from fastapi import APIRouter, Body
from fastapi.responses import JSONResponse

from rewards_api.core.deps import ShopifyClientDep

router = APIRouter()


@router.post("/graphql")
async def graphql_proxy(
    client: ShopifyClientDep,
    body: dict[str, Any] = Body(...),
) -> JSONResponse:
    """Forward a GraphQL query to the shop and relay the answer verbatim."""
    status_code, data = await client.graphql(body)
    return JSONResponse(status_code=status_code, content=data)
