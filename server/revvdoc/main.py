"""
Main FastAPI application for the RevvDoc mobile vehicle-service backend.
Hosts booking, job, maintenance, and vehicle-data endpoints.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from revvdoc.config import settings
from revvdoc.errors import ServiceError
from revvdoc.routes import bookings, health, jobs, maintenance, notifications, vehicles
from revvdoc.services.database import close_db, init_db
from revvdoc.services.redis_client import close_redis, init_redis
from revvdoc.utils.background_tasks import get_dispatcher

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown tasks."""
    # Startup
    await init_db()
    await init_redis()

    yield

    # Shutdown: let in-flight side effects finish before closing connections
    await get_dispatcher().drain()
    await close_db()
    await close_redis()


app = FastAPI(
    title="RevvDoc API",
    description="Mobile vehicle-service marketplace backend",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request body", "details": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError):
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]


# Register routes
app.include_router(health.router, prefix="/api/v1", tags=["health"])
app.include_router(bookings.router, prefix="/api/v1", tags=["bookings"])
app.include_router(jobs.router, prefix="/api/v1", tags=["jobs"])
app.include_router(maintenance.router, prefix="/api/v1", tags=["maintenance"])
app.include_router(vehicles.router, prefix="/api/v1", tags=["vehicles"])
app.include_router(notifications.router, prefix="/api/v1", tags=["notifications"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "RevvDoc API",
        "version": "1.0.0",
        "status": "running",
    }
