"""FastAPI application setup for Hover Lookup."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from hover_lookup.api.dependencies import get_app_settings, get_lookup_service
from hover_lookup.api.routes_admin import router as admin_router
from hover_lookup.api.routes_lookup import router as lookup_router
from hover_lookup.core.logging import configure_logging

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Load local sources on startup; close the remote connection on shutdown."""
    get_app_settings()
    service = get_lookup_service()
    service.init()
    yield
    await service.shutdown()


app = FastAPI(
    title="Hover Lookup",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.include_router(lookup_router, prefix="", tags=["lookup"])
app.include_router(admin_router, prefix="", tags=["admin"])


@app.get("/health", tags=["admin"])
def health() -> dict[str, bool]:
    """Simple liveness check."""
    return {"ok": True}
