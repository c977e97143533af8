"""Common lookup data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

Record = Any
Token = Union[str, int, float, bool]


@dataclass(slots=True)
class IndexEntry:
    """A record held by the local index together with the file it came from."""

    record: Record
    source_label: str


@dataclass(slots=True)
class LoadReport:
    """Outcome of the last local index load."""

    loaded: list[Path] = field(default_factory=list)
    invalid: list[Path] = field(default_factory=list)
    entries: int = 0
    id_fields: list[str] | None = None

    @property
    def success(self) -> bool:
        return bool(self.loaded)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "loaded": [str(path) for path in self.loaded],
            "invalid": [str(path) for path in self.invalid],
            "entries": self.entries,
            "id_fields": self.id_fields,
        }


@dataclass(slots=True)
class CacheEntry:
    record: Record
    provenance: str
    inserted_at: float


@dataclass(slots=True)
class RemoteMatch:
    record: Record
    database: str
    collection: str

    @property
    def provenance(self) -> str:
        return f"{self.database}.{self.collection}"


@dataclass(slots=True)
class LookupResult:
    """First match for a resolution, with provenance and timing."""

    record: Record
    provenance: str
    elapsed_ms: float
    matched_token: Token
    via_candidate: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "record": self.record,
            "provenance": self.provenance,
            "elapsed_ms": self.elapsed_ms,
            "matched_token": self.matched_token,
            "via_candidate": self.via_candidate,
        }


__all__ = [
    "Record",
    "Token",
    "IndexEntry",
    "LoadReport",
    "CacheEntry",
    "RemoteMatch",
    "LookupResult",
]
