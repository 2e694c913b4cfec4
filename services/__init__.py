"""
Service layer for the UKE import system.

This package contains framework-agnostic business logic that can be used
by the CLI, the API, or Celery workers.
"""

__version__ = "1.0.0"
