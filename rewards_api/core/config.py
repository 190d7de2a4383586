"""Application configuration using Pydantic settings."""

import re
from functools import lru_cache
from typing import Literal

from pydantic import RedisDsn, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True

    project_name: str = "Shop Rewards API"
    version: str = "0.1.0"

    # Server
    host: str = "https://localhost:8081"  # Public app URL registered with Shopify
    port: int = 8081

    # Shopify
    shopify_api_key: str = ""
    shopify_api_secret: str = ""
    shopify_api_version: str = "2024-10"
    scopes: str = "write_price_rules,read_price_rules,write_discounts,read_discounts"

    # Rendering boundary (Next.js server)
    frontend_url: str = "http://localhost:3000"

    # Session storage
    session_backend: Literal["memory", "redis"] = "memory"
    redis_url: RedisDsn = RedisDsn("redis://localhost:6379/0")

    # Security
    encryption_key: str = "CHANGE-ME-IN-PRODUCTION-use-openssl-rand-hex-32"

    # Rewards
    reward_title: str = "REWARDNAME"
    discount_rate_limit: str = "30/minute"

    # Error tracking
    sentry_dsn: str = ""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def host_name(self) -> str:
        """Public host without scheme or trailing slash."""
        return re.sub(r"https://|/$", "", self.host)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def scope_list(self) -> list[str]:
        """Requested OAuth scopes as a list."""
        return [s.strip() for s in self.scopes.split(",") if s.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
