"""HMAC signing helper for simulating Shopify webhooks.

Reads the JSON body from stdin and prints a base64-encoded HMAC-SHA256
signature computed with SHOPIFY_API_SECRET from the environment (or .env).

Usage:
    echo -n '{"id": 123}' | python -m scripts.sign_webhook

    # Simulate an uninstall against a local server:
    BODY='{"id":1,"domain":"demo.myshopify.com"}'
    HMAC=$(echo -n "$BODY" | python -m scripts.sign_webhook)
    curl -X POST http://localhost:8081/webhooks \\
      -H "Content-Type: application/json" \\
      -H "X-Shopify-Hmac-Sha256: $HMAC" \\
      -H "X-Shopify-Topic: app/uninstalled" \\
      -H "X-Shopify-Shop-Domain: demo.myshopify.com" \\
      -d "$BODY"
"""

import base64
import hashlib
import hmac
import sys

from rewards_api.core.config import settings


def sign(body: bytes, secret: str) -> str:
    """Compute base64-encoded HMAC-SHA256 signature."""
    return base64.b64encode(hmac.new(secret.encode(), body, hashlib.sha256).digest()).decode()


def main() -> None:
    secret = settings.shopify_api_secret
    if not secret:
        print("ERROR: SHOPIFY_API_SECRET is not set in .env", file=sys.stderr)
        sys.exit(1)

    body = sys.stdin.buffer.read()
    if not body:
        print("ERROR: No input received on stdin", file=sys.stderr)
        sys.exit(1)

    print(sign(body, secret), end="")


if __name__ == "__main__":
    main()
