"""Error types raised inside the lookup engine."""

from __future__ import annotations


class HoverLookupError(Exception):
    """Base class for lookup engine failures."""


class SourceUnavailableError(HoverLookupError):
    """A local source file is missing or unreadable."""


class MalformedSourceError(HoverLookupError):
    """A local source parsed to an unexpected shape or invalid JSON."""


class RemoteUnavailableError(HoverLookupError):
    """The remote document store could not be reached."""


class QueryFailureError(HoverLookupError):
    """A single remote collection query failed."""

    def __init__(self, database: str, collection: str, detail: str) -> None:
        super().__init__(f"{database}.{collection}: {detail}")
        self.database = database
        self.collection = collection


__all__ = [
    "HoverLookupError",
    "SourceUnavailableError",
    "MalformedSourceError",
    "RemoteUnavailableError",
    "QueryFailureError",
]
