"""
Dependency injection utilities for FastAPI.

This module provides reusable dependencies for the import job controller,
authentication, and other cross-cutting concerns.
"""

import logging
from fastapi import Depends, HTTPException, Header, status

from api.config import settings
from services.import_job_service import ImportJobController, get_import_job_controller

logger = logging.getLogger(__name__)


def get_controller() -> ImportJobController:
    """
    Get import job controller dependency.

    Usage:
        @app.get("/endpoint")
        async def endpoint(controller: ImportJobController = Depends(get_controller)):
            ...
    """
    return get_import_job_controller()


def get_api_key(
    x_api_key: str = Header(None, alias=settings.API_KEY_HEADER)
) -> str:
    """
    Validate API key from header.

    Args:
        x_api_key: API key from request header

    Returns:
        Validated API key

    Raises:
        HTTPException: If API key is missing
    """
    if not settings.ENABLE_API_KEY_AUTH:
        # API key auth disabled - allow all requests
        return "public"

    if not x_api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key required",
            headers={"WWW-Authenticate": "ApiKey"}
        )

    return x_api_key


def get_current_user(api_key: str = Depends(get_api_key)) -> str:
    """
    Get current user from API key.

    Returns:
        User identifier (the API key itself)
    """
    return api_key
