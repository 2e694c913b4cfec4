"""
FastAPI application for the UKE import service.

This module creates and configures the FastAPI application, registering
all routers and middleware.
"""

import logging
from contextlib import asynccontextmanager

import redis
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.config import settings
from api.routers import import_router
from api.schemas.common import ErrorResponse, HealthCheckResponse
from services.import_job_service import get_import_job_controller

# Configure logging
handlers = [logging.StreamHandler()]
if settings.LOG_FILE:
    handlers.append(logging.FileHandler(settings.LOG_FILE))

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format=settings.LOG_FORMAT,
    handlers=handlers
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    # Startup
    logger.info(f"Starting {settings.API_TITLE} v{settings.API_VERSION}")
    logger.info(f"Redis: {settings.REDIS_URL}")
    logger.info(f"Worker backend: {settings.WORKER_BACKEND}")

    if settings.RECOVER_INTERRUPTED_JOBS:
        try:
            get_import_job_controller().recover_interrupted_job()
        except redis.RedisError as e:
            logger.error(f"Could not check for interrupted import job: {e}")

    yield

    # Shutdown
    logger.info("Shutting down application")


# Create FastAPI application
app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS
)


# Exception handlers

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="Internal server error",
            detail={"message": str(exc)} if settings.DEBUG else None,
            path=str(request.url)
        ).model_dump(mode='json')
    )


# Register routers with API prefix
app.include_router(import_router.router, prefix=settings.API_PREFIX)


# Root endpoints

@app.get('/', include_in_schema=False)
async def root():
    """
    Root endpoint - redirect to docs.
    """
    return {
        'message': f'Welcome to {settings.API_TITLE}',
        'version': settings.API_VERSION,
        'docs': '/docs',
        'redoc': '/redoc',
        'openapi': '/openapi.json'
    }


@app.get('/health', response_model=HealthCheckResponse, tags=['health'])
async def health_check():
    """
    Health check endpoint.

    Checks connectivity to:
    - Redis (job record store)
    - Celery workers (only when WORKER_BACKEND is 'celery')
    """
    health_status = {
        'status': 'healthy',
        'version': settings.API_VERSION,
        'redis': 'unknown',
        'celery': 'not used'
    }

    # Check Redis
    try:
        redis_client = redis.Redis.from_url(settings.REDIS_URL)
        redis_client.ping()
        health_status['redis'] = 'connected'
    except redis.RedisError as e:
        logger.error(f"Redis health check failed: {e}")
        health_status['redis'] = 'disconnected'
        health_status['status'] = 'unhealthy'

    # Check Celery workers
    if settings.WORKER_BACKEND == 'celery':
        try:
            from tasks.celery_app import celery_app

            active_workers = celery_app.control.inspect().active()

            if active_workers:
                health_status['celery'] = f'active ({len(active_workers)} workers)'
            else:
                health_status['celery'] = 'no workers'
                health_status['status'] = 'degraded'
        except Exception as e:
            logger.error(f"Celery health check failed: {e}")
            health_status['celery'] = 'unknown'
            health_status['status'] = 'degraded'

    return HealthCheckResponse(**health_status)


@app.get('/api/ping', tags=['health'])
async def ping():
    """
    Simple ping endpoint for load balancers.
    """
    return {'ping': 'pong'}


# Middleware for request logging

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests."""
    logger.info(f"{request.method} {request.url.path}")
    response = await call_next(request)
    logger.info(f"{request.method} {request.url.path} - {response.status_code}")
    return response


if __name__ == '__main__':
    import uvicorn

    uvicorn.run(
        'api.main:app',
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD,
        log_level=settings.LOG_LEVEL.lower()
    )
