# src/deadline_coach/main.py
"""Main entry point for the Deadline Coach application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from deadline_coach.api.v1 import countdown_router, system_router
from deadline_coach.core.settings import settings
from deadline_coach.db.session import create_tables
from deadline_coach.services.registry import CountdownRegistry

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Deadline Coach API",
    description="Countdown to a deadline with generated coaching content",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(countdown_router, prefix="/api/v1")
app.include_router(system_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    if settings.auto_create_tables:
        create_tables()
    if getattr(app.state, "registry", None) is None:
        app.state.registry = CountdownRegistry()
    logger.info("%s %s started", settings.app_name, settings.app_version)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    registry: CountdownRegistry | None = getattr(app.state, "registry", None)
    if registry:
        await registry.close_all()
    app.state.registry = None


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("deadline_coach.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
