"""Common DTOs for API responses and error handling."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response model."""
    detail: dict[str, Any] = Field(..., description="Error descriptor with code and message")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Health status", examples=["healthy"])


class RootResponse(BaseModel):
    """Root endpoint response model."""
    status: str = Field(..., description="API status", examples=["ok"])
    service: str = Field(..., description="Service name", examples=["gym-league-session"])
    version: str = Field(..., description="API version", examples=["0.1.0"])
    provider_configured: bool = Field(..., description="Whether a real identity provider is configured")
