"""
FastAPI application for the UKE import service.

This package contains the REST API for starting the import job and polling
its progress.
"""

__version__ = "1.0.0"
