"""
DoseTrack - Dosage Pattern Engine

Main FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_settings
from .database import Database
from .errors import ConflictError, DoseTrackError, NotFoundError, ValidationError
from .logging_config import configure_logging
from .routers import (
    medications_router,
    patterns_router,
    schedule_router,
    logs_router
)

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    configure_logging(level=settings.LOG_LEVEL, json_mode=settings.LOG_JSON)
    logger.info("Starting %s v%s", settings.APP_NAME, settings.APP_VERSION)
    await Database.connect()

    yield

    # Shutdown
    await Database.disconnect()
    logger.info("Application shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"]
)


# Trace Middleware
@app.middleware("http")
async def trace_middleware(request: Request, call_next):
    logger.debug("INCOMING %s %s", request.method, request.url.path)
    response = await call_next(request)
    logger.debug("OUTGOING %s %s -> %s", request.method, request.url.path, response.status_code)
    return response


ERROR_STATUS = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    ConflictError: status.HTTP_409_CONFLICT,
    NotFoundError: status.HTTP_404_NOT_FOUND,
}


@app.exception_handler(DoseTrackError)
async def dosetrack_exception_handler(request: Request, exc: DoseTrackError):
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    content = {"detail": exc.message}
    if isinstance(exc, ValidationError):
        content["errors"] = exc.errors
    if exc.details:
        content["details"] = exc.details

    logger.info("%s %s -> %s: %s", request.method, request.url.path, status_code, exc.message)
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    response = JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None)
    )
    # Force CORS headers
    response.headers["Access-Control-Allow-Origin"] = "*"
    return response


# Global error handler with CORS headers
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)

    response = JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"}
    )
    # Force CORS headers
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Methods"] = "*"
    response.headers["Access-Control-Allow-Headers"] = "*"
    return response


# Include routers
app.include_router(medications_router)
app.include_router(patterns_router)
app.include_router(schedule_router)
app.include_router(logs_router)


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint - health check."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "healthy",
        "docs": "/docs"
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "database": "connected" if Database.client else "disconnected",
        "version": settings.APP_VERSION
    }


# Entry point for running directly
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "dosetrack.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
