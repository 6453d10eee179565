"""
Revius Backend API - FastAPI application.

Provides endpoints for:
- Importing public external lists (Letterboxd) into a user's lists
"""
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.deps import shutdown_matcher
from api.routers import lists

logger = logging.getLogger(__name__)


def get_cors_origins() -> list[str]:
    """
    Get CORS allowed origins from environment.
    Set CORS_ALLOW_ORIGINS as comma-separated list of origins.
    """
    origins_str = os.getenv("CORS_ALLOW_ORIGINS", "")
    if not origins_str:
        return []
    return [origin.strip() for origin in origins_str.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up Revius Backend API...")
    yield
    logger.info("Shutting down Revius Backend API...")
    shutdown_matcher()


app = FastAPI(
    title="Revius API",
    description="Backend API for Revius - list imports and media matching",
    version="0.1.0",
    lifespan=lifespan,
)

# Credentials are only allowed with an explicit origin list.
cors_origins = get_cors_origins()
allow_credentials = len(cors_origins) > 0

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins if cors_origins else ["*"],
    allow_credentials=allow_credentials,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(lists.router, prefix="/api/v1")


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "revius-backend"}


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "healthy"}
