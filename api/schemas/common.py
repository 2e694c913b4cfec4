"""
Common Pydantic schemas used across the API.

This module contains shared schemas for errors and health checks.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str = Field(..., description="Error message")
    detail: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    timestamp: datetime = Field(default_factory=_utc_now, description="Error timestamp")
    path: Optional[str] = Field(None, description="Request path that caused the error")

    class Config:
        json_schema_extra = {
            "example": {
                "error": "Internal server error",
                "detail": None,
                "timestamp": "2025-10-15T12:00:00Z",
                "path": "/api/uke/import"
            }
        }


class HealthCheckResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(default_factory=_utc_now, description="Health check timestamp")
    version: str = Field(..., description="API version")
    redis: str = Field(..., description="Redis connection status")
    celery: str = Field(..., description="Celery worker status")

    class Config:
        json_schema_extra = {
            "example": {
                "status": "healthy",
                "timestamp": "2025-10-15T12:00:00Z",
                "version": "1.0.0",
                "redis": "connected",
                "celery": "not used"
            }
        }
