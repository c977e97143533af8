"""Lookup engine components."""

from .cache import ResultCache
from .coordinator import LookupCoordinator
from .local_index import LocalIndex
from .remote import RemoteSearchClient
from .types import CacheEntry, IndexEntry, LoadReport, LookupResult, RemoteMatch

__all__ = [
    "ResultCache",
    "LookupCoordinator",
    "LocalIndex",
    "RemoteSearchClient",
    "CacheEntry",
    "IndexEntry",
    "LoadReport",
    "LookupResult",
    "RemoteMatch",
]
