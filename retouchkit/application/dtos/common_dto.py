"""Common DTOs for API responses and error handling."""
from __future__ import annotations

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response model."""
    detail: str = Field(..., description="Error message describing what went wrong")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Health status", examples=["healthy"])


class RootResponse(BaseModel):
    """Root endpoint response model."""
    status: str = Field(..., description="API status", examples=["ok"])
    service: str = Field(..., description="Service name", examples=["retouchkit"])
    version: str = Field(..., description="API version", examples=["0.1.0"])
