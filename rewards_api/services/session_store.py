"""Shop session storage.

Every authorised shop has exactly one ``ShopSession``. A shop that is absent
from the store must go through OAuth before it can use the app. Sessions are
written when OAuth completes and removed when the app is uninstalled.

Two backends are available:

- ``MemorySessionStore`` keeps sessions in process memory. A restart forces
  every shop to re-authenticate.
- ``RedisSessionStore`` keeps sessions in Redis with the access token
  encrypted at rest, so installs survive restarts.
"""

import json
import logging
from abc import ABC, abstractmethod

import redis.asyncio as aioredis

from rewards_api.core.config import Settings
from rewards_api.core.encryption import decrypt_token, encrypt_token
from rewards_api.schemas.shopify import ShopSession

logger = logging.getLogger(__name__)

KEY_PREFIX = "shopify_session:"


class ShopSessionStore(ABC):
    """get / put / remove contract shared by all backends."""

    name: str = "abstract"

    @abstractmethod
    async def get(self, shop: str) -> ShopSession | None:
        """Return the session for ``shop`` or None if the shop is unknown."""

    @abstractmethod
    async def put(self, session: ShopSession) -> None:
        """Store ``session``, replacing any previous session for the shop."""

    @abstractmethod
    async def remove(self, shop: str) -> None:
        """Forget ``shop``. Removing an unknown shop is a no-op."""

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:  # noqa: B027
        pass


class MemorySessionStore(ShopSessionStore):
    """Process-local session store."""

    name = "memory"

    def __init__(self) -> None:
        self._sessions: dict[str, ShopSession] = {}

    async def get(self, shop: str) -> ShopSession | None:
        return self._sessions.get(shop)

    async def put(self, session: ShopSession) -> None:
        self._sessions[session.shop] = session

    async def remove(self, shop: str) -> None:
        self._sessions.pop(shop, None)

    def clear(self) -> None:
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, shop: object) -> bool:
        return shop in self._sessions


class RedisSessionStore(ShopSessionStore):
    """Redis-backed session store with encrypted access tokens."""

    name = "redis"

    def __init__(self, redis: aioredis.Redis) -> None:
        self.redis = redis

    @staticmethod
    def _key(shop: str) -> str:
        return f"{KEY_PREFIX}{shop}"

    async def get(self, shop: str) -> ShopSession | None:
        raw = await self.redis.get(self._key(shop))
        if raw is None:
            return None

        data = json.loads(raw)
        return ShopSession(
            shop=data["shop"],
            access_token=decrypt_token(data["access_token"]),
            scope=data.get("scope", []),
        )

    async def put(self, session: ShopSession) -> None:
        data = {
            "shop": session.shop,
            "access_token": encrypt_token(session.access_token),
            "scope": session.scope,
        }
        await self.redis.set(self._key(session.shop), json.dumps(data))

    async def remove(self, shop: str) -> None:
        await self.redis.delete(self._key(shop))

    async def ping(self) -> bool:
        return bool(await self.redis.ping())

    async def close(self) -> None:
        await self.redis.aclose()


def build_session_store(config: Settings) -> ShopSessionStore:
    """Create the session store selected by ``SESSION_BACKEND``."""
    if config.session_backend == "redis":
        logger.info("Using redis session store")
        client = aioredis.from_url(str(config.redis_url), decode_responses=True)  # type: ignore[no-untyped-call]
        return RedisSessionStore(client)

    logger.info("Using in-memory session store; shops re-authenticate after a restart")
    return MemorySessionStore()
