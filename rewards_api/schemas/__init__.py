"""Pydantic schemas for request/response validation."""

from rewards_api.schemas.common import ErrorResponse, HealthResponse

__all__ = [
    "HealthResponse",
    "ErrorResponse",
]
