"""Router combining all route modules.

Routes sit at the root path because the embedded front end and the Shopify
webhook subscription address them there. The front-end catch-all is not part
of this router; ``create_app`` includes it last.
"""

from fastapi import APIRouter

from rewards_api.api.v1 import auth, discounts, graphql, health, price_rules, webhooks

api_router = APIRouter()

# Health probes
api_router.include_router(health.router)

# OAuth install / callback
api_router.include_router(auth.router, tags=["auth"])

# Shopify webhooks (no session - verified via HMAC)
api_router.include_router(webhooks.router, tags=["webhooks"])

# Session-token authenticated API
api_router.include_router(graphql.router, tags=["graphql"])
api_router.include_router(price_rules.router, tags=["price rules"])
api_router.include_router(discounts.router, tags=["discounts"])
