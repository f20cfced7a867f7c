"""
Pinot Operator FastAPI Service - Main Application.

Runs the reconciliation engine for the lifetime of the app and exposes its
registries read-only.

Usage:
    uvicorn pinot_operator.api.main:app --host 0.0.0.0 --port 8080

Endpoints:
    GET /api/v1/health - Health check
    GET /api/v1/status - Managed resource counts
    GET /api/v1/{clusters|schemas|tables|tenants} - Managed resources
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from pinot_operator.api.routes import app_state, router
from pinot_operator.shared.logging import API_LOGGER
from pinot_operator.shared.settings import VERSION

logger = logging.getLogger(API_LOGGER)


# ============================================================================
# Lifespan Management
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the engine on startup; stop it and close API clients on shutdown."""
    from pinot_operator.main import init_engine

    logger.info("Pinot operator starting...")
    engine, apis = await init_engine()
    app_state.engine = engine
    await engine.start()

    yield

    logger.info("Pinot operator shutting down...")
    try:
        await engine.stop()
    finally:
        app_state.engine = None
        await apis.close()
    logger.info("Shutdown complete")


# ============================================================================
# FastAPI Application
# ============================================================================

app = FastAPI(
    title="Pinot Operator",
    description="Reconciles Pinot clusters, schemas, tables and tenants declared as Kubernetes custom resources.",
    version=VERSION,
    lifespan=lifespan,
)

app.include_router(router)


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "service": "Pinot Operator",
        "version": VERSION,
        "status": "online",
        "endpoints": {
            "health": "GET /api/v1/health",
            "status": "GET /api/v1/status",
            "clusters": "GET /api/v1/clusters",
            "schemas": "GET /api/v1/schemas",
            "tables": "GET /api/v1/tables",
            "tenants": "GET /api/v1/tenants",
            "managed": "GET /api/v1/managed/{resource_type}/{namespace}/{name}",
        },
    }
