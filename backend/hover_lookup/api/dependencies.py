"""Shared FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

from hover_lookup.core.config import Settings, get_settings
from hover_lookup.service import LookupService

_SERVICE: LookupService | None = None


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def get_lookup_service() -> LookupService:
    global _SERVICE
    if _SERVICE is None:
        _SERVICE = LookupService(get_app_settings())
    return _SERVICE


__all__ = ["get_app_settings", "get_lookup_service"]
