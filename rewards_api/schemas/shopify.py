"""Pydantic schemas for Shopify sessions, price rules and discount codes."""

from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Literal

from pydantic import Field, field_validator

from rewards_api.schemas.common import BaseSchema


class ShopSession(BaseSchema):
    """An authorised shop: domain, offline access token and granted scope."""

    shop: str
    access_token: str
    scope: list[str] = []

    def has_scopes(self, required: list[str]) -> bool:
        """Whether the granted scope covers every required scope.

        Shopify implies ``read_x`` when ``write_x`` is granted.
        """
        granted = set(self.scope)
        for s in self.scope:
            if s.startswith("write_"):
                granted.add("read_" + s.removeprefix("write_"))
        return set(required) <= granted


# === Price Rules ===


class PriceRuleCreate(BaseSchema):
    """Parameters for a new price rule.

    Defaults reproduce the reward template used by the storefront extension:
    10% off every line item for every customer.
    """

    title: str | None = Field(
        default=None,
        min_length=1,
        max_length=255,
        description="Reward title; defaults to REWARD_TITLE",
    )
    target_type: Literal["line_item", "shipping_line"] = "line_item"
    target_selection: Literal["all", "entitled"] = "all"
    allocation_method: Literal["across", "each"] = "across"
    value_type: Literal["percentage", "fixed_amount"] = "percentage"
    value: str = Field(default="-10.0", description="Negative decimal amount")
    customer_selection: Literal["all", "prerequisite"] = "all"
    starts_at: datetime | None = Field(
        default=None,
        description="Defaults to the creation time",
    )

    @field_validator("value")
    @classmethod
    def validate_value(cls, v: str) -> str:
        """Shopify expects a negative (or zero) decimal string."""
        try:
            amount = Decimal(v)
        except InvalidOperation as e:
            raise ValueError("value must be a decimal string") from e
        if amount > 0:
            raise ValueError("value must be negative, e.g. -10.0")
        return v

    def to_payload(self, default_title: str) -> dict[str, Any]:
        """Build the ``price_rule`` object sent to the Admin API."""
        starts_at = self.starts_at or datetime.now(UTC)
        return {
            "title": self.title or default_title,
            "target_type": self.target_type,
            "target_selection": self.target_selection,
            "allocation_method": self.allocation_method,
            "value_type": self.value_type,
            "value": self.value,
            "customer_selection": self.customer_selection,
            "starts_at": starts_at.isoformat().replace("+00:00", "Z"),
        }


# === Discount Codes ===


class DiscountCodeCreate(BaseSchema):
    """Redeem a reward: which price rule the new code belongs to."""

    title: str | None = Field(
        default=None,
        min_length=1,
        max_length=255,
        description="Title of the price rule; defaults to REWARD_TITLE",
    )


# === Webhooks ===


class WebhookRegistrationResult(BaseSchema):
    """Outcome of a webhook subscription request."""

    success: bool
    result: dict[str, Any] | str | None = None


class WebhookProcessedResponse(BaseSchema):
    status: str = "processed"
    topic: str
    shop: str
