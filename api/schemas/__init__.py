"""
Pydantic schemas for request/response validation.

This package contains all Pydantic models used for API request validation
and response serialization.
"""

from api.schemas.common import ErrorResponse, HealthCheckResponse
from api.schemas.job_schema import ImportJobRequest, ImportJobResponse

__all__ = [
    # Common
    'ErrorResponse',
    'HealthCheckResponse',

    # Import job
    'ImportJobRequest',
    'ImportJobResponse',
]
