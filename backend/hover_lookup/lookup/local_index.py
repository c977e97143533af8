"""In-memory key to record index built from local JSON sources."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Sequence

import orjson

from hover_lookup.core.errors import HoverLookupError, MalformedSourceError, SourceUnavailableError
from hover_lookup.core.logging import get_logger
from hover_lookup.core.metrics import LOCAL_INDEX_SIZE
from hover_lookup.lookup.types import IndexEntry, LoadReport
from hover_lookup.utils.text import as_key

logger = get_logger(__name__)

DEFAULT_ID_FIELDS = ["id"]


@dataclass(slots=True)
class RawSource:
    """Parsed contents of one source file, kept for reindexing."""

    path: Path
    data: dict[str, Any]

    @property
    def label(self) -> str:
        return self.path.name

    @property
    def structured(self) -> bool:
        return isinstance(self.data.get("data"), list)


def normalize_id_fields(value: str | Sequence[str] | None) -> list[str] | None:
    if value is None:
        return None
    if isinstance(value, str):
        return [value] if value else None
    if isinstance(value, (list, tuple)):
        fields = [str(item) for item in value if item]
        return fields or None
    return [str(value)]


def read_source(path: Path) -> RawSource:
    """Parse one source file; raise when it is missing or malformed."""
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise SourceUnavailableError(f"{path}: {exc.strerror or exc}") from exc
    try:
        data = orjson.loads(raw)
    except orjson.JSONDecodeError as exc:
        raise MalformedSourceError(f"{path}: invalid JSON ({exc})") from exc
    if not isinstance(data, dict):
        raise MalformedSourceError(f"{path}: expected a JSON object, got {type(data).__name__}")
    return RawSource(path=path, data=data)


class LocalIndex:
    """Key to record map merged from ordered JSON sources, first file wins."""

    def __init__(self, id_field_override: str | Sequence[str] | None = None) -> None:
        self.id_field_override = normalize_id_fields(id_field_override)
        self.report = LoadReport()
        self._entries: dict[str, IndexEntry] = {}
        self._raw: list[RawSource] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return as_key(key) in self._entries

    def keys(self) -> list[str]:
        return list(self._entries)

    def lookup(self, key: Any) -> IndexEntry | None:
        return self._entries.get(as_key(key))

    def load(self, paths: Iterable[Path]) -> bool:
        """Read every source in order and rebuild the index from scratch."""
        report = LoadReport(id_fields=self.id_field_override)
        raw_sources: list[RawSource] = []
        for path in paths:
            try:
                raw_sources.append(read_source(Path(path)))
            except HoverLookupError as exc:
                logger.warning("Skipping local source: %s", exc, extra={"ctx_path": str(path)})
                report.invalid.append(Path(path))
                continue
            report.loaded.append(Path(path))

        self._raw = raw_sources
        self._entries = self._build(raw_sources)
        report.entries = len(self._entries)
        self.report = report
        LOCAL_INDEX_SIZE.set(report.entries)

        if not report.success:
            logger.error(
                "No valid local sources found",
                extra={"ctx_invalid": [str(path) for path in report.invalid]},
            )
            return False
        if report.invalid:
            logger.warning(
                "Local index loaded with %d missing or invalid source(s)",
                len(report.invalid),
                extra={"ctx_invalid": [str(path) for path in report.invalid]},
            )
        logger.info(
            "Local index loaded: %d entries from %d source(s)",
            report.entries,
            len(report.loaded),
        )
        return True

    def reindex(self, new_id_field: str | Sequence[str] | None) -> bool:
        """Re-key the last loaded data without touching the filesystem."""
        if not any(source.structured for source in self._raw):
            logger.error("Cannot reindex: no structured local source loaded")
            return False
        self.id_field_override = normalize_id_fields(new_id_field)
        self._entries = self._build(self._raw)
        self.report.entries = len(self._entries)
        self.report.id_fields = self.id_field_override
        LOCAL_INDEX_SIZE.set(len(self._entries))
        logger.info(
            "Local index reindexed: %d entries (id fields: %s)",
            len(self._entries),
            self.id_field_override or "per source",
        )
        return True

    def clear(self) -> None:
        self._entries = {}
        self._raw = []
        self.report = LoadReport()
        LOCAL_INDEX_SIZE.set(0)

    # ------------------------------------------------------------------

    def _build(self, raw_sources: Sequence[RawSource]) -> dict[str, IndexEntry]:
        entries: dict[str, IndexEntry] = {}
        for source in raw_sources:
            if source.structured:
                fields = self._id_fields_for(source)
                for item in source.data["data"]:
                    key = _first_present(item, fields)
                    if key is not None and key not in entries:
                        entries[key] = IndexEntry(record=item, source_label=source.label)
            else:
                for key, record in source.data.items():
                    if key not in entries:
                        entries[key] = IndexEntry(record=record, source_label=source.label)
        return entries

    def _id_fields_for(self, source: RawSource) -> list[str]:
        if self.id_field_override:
            return self.id_field_override
        return normalize_id_fields(source.data.get("idField")) or DEFAULT_ID_FIELDS


def _first_present(item: Any, fields: Sequence[str]) -> str | None:
    if not isinstance(item, dict):
        return None
    for field in fields:
        value = item.get(field)
        if value is not None:
            return as_key(value)
    return None


__all__ = ["LocalIndex", "RawSource", "read_source", "normalize_id_fields"]
