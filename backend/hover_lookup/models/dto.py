"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from typing import Any, Literal

import orjson
from pydantic import BaseModel, Field, model_validator

from hover_lookup.lookup.types import LookupResult

Scalar = str | int | float | bool
RenderMode = Literal["none", "markdown", "plain"]


class LookupRequest(BaseModel):
    token: Scalar | None = Field(default=None, description="Single token to resolve")
    tokens: list[Scalar] | None = Field(default=None, description="Ordered candidate tokens")
    value: dict[str, Any] | None = Field(default=None, description="Object whose scalar fields are candidates")
    sync: bool = Field(default=False, description="Local index and cache only, never await the remote store")
    render: RenderMode = "none"

    @model_validator(mode="after")
    def _require_token(self) -> "LookupRequest":
        if self.token is None and not self.tokens and not self.value:
            raise ValueError("one of token, tokens or value is required")
        return self

    def lookup_target(self) -> Any:
        if self.tokens:
            return self.tokens
        if self.value:
            return self.value
        return self.token


class TextLookupRequest(BaseModel):
    line: str
    character: int = Field(ge=0)
    evaluated: str | None = Field(default=None, description="Debugger evaluation of the word under the cursor")
    lines: list[str] | None = Field(default=None, description="Document lines for static variable resolution")
    line_no: int | None = Field(default=None, ge=0)
    render: RenderMode = "markdown"


class DebugLookupRequest(BaseModel):
    result: str = Field(description="Result text of a debugger evaluate response")


class LookupResponse(BaseModel):
    found: bool
    token: Any = None
    record: Any = None
    provenance: str | None = None
    elapsed_ms: float | None = None
    matched_token: Any = None
    via_candidate: bool = False
    rendered: str | None = None

    @classmethod
    def from_result(cls, token: Any, result: LookupResult | None, rendered: str | None = None) -> "LookupResponse":
        if result is None:
            return cls(found=False, token=token)
        payload = result.to_dict()
        payload["record"] = _jsonable(payload["record"])
        return cls(found=True, token=token, rendered=rendered, **payload)


def _jsonable(value: Any) -> Any:
    """Round-trip through JSON so BSON types (ObjectId, Decimal128) serialize."""
    return orjson.loads(orjson.dumps(value, default=str, option=orjson.OPT_NON_STR_KEYS))


class DebugLookupResponse(BaseModel):
    result: str
    enriched: bool
    provenance: str | None = None
    elapsed_ms: float | None = None


class ReindexRequest(BaseModel):
    id_field: list[str] | str | None = Field(default=None, description="New id field(s); null restores per-file idField")


class InitRequest(BaseModel):
    path: str | None = None
    overwrite: bool = False


class StatusResponse(BaseModel):
    ok: bool
    detail: str | None = None


class CacheResponse(BaseModel):
    size: int
    max_size: int
    ttl_seconds: float
    pending_warmups: int


__all__ = [
    "LookupRequest",
    "TextLookupRequest",
    "DebugLookupRequest",
    "LookupResponse",
    "DebugLookupResponse",
    "ReindexRequest",
    "InitRequest",
    "StatusResponse",
    "CacheResponse",
]
