"""Application exceptions mapped to HTTP error responses."""

from urllib.parse import urlencode

from fastapi import status
from fastapi.responses import JSONResponse

from rewards_api.schemas.common import ErrorResponse

REAUTHORIZE_HEADER = "X-Shopify-API-Request-Failure-Reauthorize"
REAUTHORIZE_URL_HEADER = "X-Shopify-API-Request-Failure-Reauthorize-Url"


class AppError(Exception):
    """Base class for errors rendered as an ``ErrorResponse``."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "internal_error"
    error: str = "Internal error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.error)
        self.detail = detail

    @property
    def headers(self) -> dict[str, str] | None:
        return None


class SessionInvalidError(AppError):
    """No usable shop session; the caller must go through OAuth again."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "session_invalid"
    error = "Session invalid or expired"

    def __init__(self, detail: str | None = None, shop: str | None = None) -> None:
        super().__init__(detail)
        self.shop = shop

    @property
    def headers(self) -> dict[str, str]:
        url = "/auth"
        if self.shop:
            url = f"/auth?{urlencode({'shop': self.shop})}"
        return {REAUTHORIZE_HEADER: "1", REAUTHORIZE_URL_HEADER: url}


class OAuthError(AppError):
    """The OAuth handshake could not be completed."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "oauth_failed"
    error = "OAuth handshake failed"


class PriceRuleNotFoundError(AppError):
    """No price rule carries the requested title."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "price_rule_not_found"
    error = "Price rule not found"

    def __init__(self, title: str) -> None:
        super().__init__(f"No price rule titled '{title}'")
        self.title = title


# --- Upstream (Shopify) errors ---


class ShopifyAPIError(AppError):
    """Shopify answered with an unexpected status."""

    status_code = status.HTTP_502_BAD_GATEWAY
    code = "upstream_error"
    error = "Shopify request failed"

    def __init__(self, detail: str | None = None, upstream_status: int | None = None) -> None:
        super().__init__(detail)
        self.upstream_status = upstream_status


class ShopifySessionExpiredError(ShopifyAPIError, SessionInvalidError):
    """Shopify rejected the access token."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "session_expired"
    error = "Shopify rejected the access token"

    def __init__(
        self,
        detail: str | None = None,
        upstream_status: int | None = None,
        shop: str | None = None,
    ) -> None:
        ShopifyAPIError.__init__(self, detail, upstream_status)
        self.shop = shop


class ShopifyForbiddenError(ShopifyAPIError):
    """The token is valid but lacks a scope or data-access approval."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "upstream_forbidden"
    error = "Shopify denied access to the resource"


class ShopifyNotFoundError(ShopifyAPIError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "resource_not_found"
    error = "Shopify resource not found"


class ShopifyValidationError(ShopifyAPIError):
    status_code = 422
    code = "upstream_rejected"
    error = "Shopify rejected the request"


class ShopifyRateLimitedError(ShopifyAPIError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = "upstream_rate_limited"
    error = "Shopify rate limit reached"


class ShopifyUnavailableError(ShopifyAPIError):
    """Shopify could not be reached at all."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "upstream_unreachable"
    error = "Shopify is unreachable"


class WebhookProcessingError(AppError):
    """An inbound webhook could not be verified or dispatched."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "webhook_invalid"
    error = "Webhook could not be processed"

    def __init__(
        self,
        detail: str | None = None,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(detail)
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code


class FrontendUnavailableError(AppError):
    status_code = status.HTTP_502_BAD_GATEWAY
    code = "frontend_unreachable"
    error = "Front end is unreachable"


def error_response(exc: AppError) -> JSONResponse:
    """Render ``exc`` as a JSON ``ErrorResponse``."""
    body = ErrorResponse(error=exc.error, detail=exc.detail, code=exc.code)
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(),
        headers=exc.headers,
    )
