"""Administrative routes for Hover Lookup."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from hover_lookup.api.dependencies import get_lookup_service
from hover_lookup.core.errors import RemoteUnavailableError
from hover_lookup.core.metrics import metrics_response
from hover_lookup.models.dto import CacheResponse, InitRequest, ReindexRequest, StatusResponse
from hover_lookup.service import LookupService
from hover_lookup.sources.example import write_example_database

router = APIRouter()


@router.get("/sources", summary="Status of local and remote sources")
async def list_sources(service: LookupService = Depends(get_lookup_service)) -> dict[str, Any]:
    return service.status()


@router.post("/sources/reload", summary="Reload local sources from disk")
async def reload_sources(service: LookupService = Depends(get_lookup_service)) -> dict[str, Any]:
    service.reload()
    return service.index.report.to_dict()


@router.post("/sources/reindex", summary="Re-key local sources without reading disk")
async def reindex_sources(
    request: ReindexRequest,
    service: LookupService = Depends(get_lookup_service),
) -> dict[str, Any]:
    if not service.reindex(request.id_field):
        raise HTTPException(status_code=409, detail="No structured local source loaded")
    return service.index.report.to_dict()


@router.post("/sources/init", response_model=StatusResponse, summary="Write the example lookup database")
async def init_source(
    request: InitRequest,
    service: LookupService = Depends(get_lookup_service),
) -> StatusResponse:
    target = Path(request.path) if request.path else service.settings.resolved_source_paths()[0]
    if not target.is_absolute():
        target = service.settings.workspace_root / target
    try:
        written = write_example_database(target, overwrite=request.overwrite)
    except FileExistsError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    service.reload()
    return StatusResponse(ok=True, detail=str(written))


@router.post("/remote/reconnect", response_model=StatusResponse, summary="Reconnect to MongoDB")
async def reconnect_remote(service: LookupService = Depends(get_lookup_service)) -> StatusResponse:
    try:
        connected = await service.reconnect()
    except RemoteUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    if not connected:
        return StatusResponse(ok=False, detail="MongoDB URL not configured")
    return StatusResponse(ok=True, detail="Reconnected to MongoDB")


@router.get("/cache", response_model=CacheResponse, summary="Remote result cache status")
async def cache_status(service: LookupService = Depends(get_lookup_service)) -> CacheResponse:
    return CacheResponse(**service.cache_status())


@router.delete("/cache", response_model=StatusResponse, summary="Clear the remote result cache")
async def clear_cache(service: LookupService = Depends(get_lookup_service)) -> StatusResponse:
    service.clear_cache()
    return StatusResponse(ok=True)


@router.get("/metrics", summary="Prometheus metrics")
async def get_metrics():
    return metrics_response()


__all__ = ["router"]
