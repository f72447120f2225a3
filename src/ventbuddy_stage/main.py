# src/ventbuddy_stage/main.py
"""Main entry point for the Ventbuddy application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from ventbuddy_stage.api.v1 import (
    content_router,
    payments_router,
    replies_router,
    sessions_router,
    votes_router,
)
from ventbuddy_stage.core.settings import settings
from ventbuddy_stage.services.chain import close_confirmer

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Ventbuddy API",
    description="Anonymous venting with payment-gated posts",
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
app.include_router(sessions_router, prefix="/api/v1")
app.include_router(content_router, prefix="/api/v1")
app.include_router(replies_router, prefix="/api/v1")
app.include_router(votes_router, prefix="/api/v1")
app.include_router(payments_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    if settings.rpc_enabled:
        logger.info("Payment confirmation enabled via %s", settings.rpc_url)
    else:
        logger.warning("RPC_URL not set; payment confirmation is disabled")


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await close_confirmer()

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
        "description": "Anonymous venting with payment-gated posts",
        "docs": "/docs",
        "redoc": "/redoc"
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("ventbuddy_stage.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
