"""Lookup API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from hover_lookup.api.dependencies import get_lookup_service
from hover_lookup.models.dto import (
    DebugLookupRequest,
    DebugLookupResponse,
    LookupRequest,
    LookupResponse,
    RenderMode,
    TextLookupRequest,
)
from hover_lookup.lookup.types import LookupResult
from hover_lookup.render.tooltip import enrich_debug_result, render_markdown
from hover_lookup.service import LookupService

router = APIRouter()


@router.post("/lookup", response_model=LookupResponse, summary="Resolve a token against all sources")
async def lookup(
    request: LookupRequest,
    service: LookupService = Depends(get_lookup_service),
) -> LookupResponse:
    target = request.lookup_target()
    if request.sync:
        result = service.resolve_sync(target)
    else:
        result = await service.resolve(target)
    return _response(service, target, result, request.render)


@router.post("/lookup/text", response_model=LookupResponse, summary="Resolve the token under an editor cursor")
async def lookup_text(
    request: TextLookupRequest,
    service: LookupService = Depends(get_lookup_service),
) -> LookupResponse:
    token, result = await service.resolve_at(
        request.line,
        request.character,
        evaluated=request.evaluated,
        lines=request.lines,
        line_no=request.line_no,
    )
    return _response(service, token, result, request.render)


@router.post("/lookup/debug", response_model=DebugLookupResponse, summary="Enrich a debugger evaluate result")
async def lookup_debug(
    request: DebugLookupRequest,
    service: LookupService = Depends(get_lookup_service),
) -> DebugLookupResponse:
    # Must not await: the debugger hover is finalized as soon as this returns.
    result = service.resolve_debug_value(request.result)
    if result is None:
        return DebugLookupResponse(result=request.result, enriched=False)
    return DebugLookupResponse(
        result=enrich_debug_result(request.result, result, service.settings.max_hover_size),
        enriched=True,
        provenance=result.provenance,
        elapsed_ms=result.elapsed_ms,
    )


def _response(service: LookupService, token: object, result: LookupResult | None, render: RenderMode) -> LookupResponse:
    rendered = None
    if result is not None and render == "markdown":
        rendered = render_markdown(token, result, service.settings.max_hover_size)
    elif result is not None and render == "plain":
        rendered = enrich_debug_result(str(token), result, service.settings.max_hover_size)
    return LookupResponse.from_result(token, result, rendered)


__all__ = ["router"]
