"""Lookup engine lifecycle: owns the index, cache, remote client and watcher."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Callable

from pymongo import AsyncMongoClient

from hover_lookup.core.config import Settings, local_settings_changed, remote_settings_changed
from hover_lookup.core.logging import get_logger
from hover_lookup.lookup.cache import ResultCache
from hover_lookup.lookup.coordinator import LookupCoordinator
from hover_lookup.lookup.local_index import LocalIndex
from hover_lookup.lookup.remote import ClientFactory, RemoteSearchClient
from hover_lookup.lookup.types import LookupResult, Token
from hover_lookup.sources.watcher import SourceWatcher
from hover_lookup.tokens.extract import (
    find_variable_value,
    normalize_debug_value,
    parse_object_text,
    strip_quotes,
    token_at,
    word_at,
)

logger = get_logger(__name__)


class LookupService:
    """Single owner of the lookup engine state.

    Every mutation of the index, cache and connection goes through this
    object so that callers never touch module-level singletons.
    """

    def __init__(
        self,
        settings: Settings,
        client_factory: ClientFactory = AsyncMongoClient,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings
        self.index = LocalIndex(settings.id_field_override)
        self.cache = ResultCache(settings.cache_max_size, settings.cache_ttl_seconds, clock=clock)
        self.remote = RemoteSearchClient(settings, self.cache, client_factory=client_factory)
        self.coordinator = LookupCoordinator(settings, self.index, self.cache, self.remote)
        self.watcher = SourceWatcher(self._on_source_changed)
        self._loop: asyncio.AbstractEventLoop | None = None

    # lifecycle ---------------------------------------------------------

    def init(self) -> bool:
        """Load local sources and start watching them."""
        try:
            self._loop = asyncio.get_running_loop()
        except RuntimeError:
            self._loop = None
        loaded = self.reload()
        self._restart_watcher()
        return loaded

    def reload(self) -> bool:
        if not self.settings.enable_local_source:
            self.index.clear()
            logger.info("Local source lookup disabled, index cleared")
            return False
        return self.index.load(self.settings.resolved_source_paths())

    def reindex(self, id_field: str | Sequence[str] | None) -> bool:
        return self.index.reindex(id_field)

    async def reconnect(self) -> bool:
        """Drop the current connection and open a new one.

        Returns ``False`` when no URL is configured; raises
        ``RemoteUnavailableError`` when the server cannot be reached.
        """
        await self.remote.disconnect()
        client = await self.remote.connect()
        return client is not None

    def clear_cache(self) -> None:
        self.cache.clear()

    async def apply_settings(self, settings: Settings) -> None:
        """Swap in new settings, invalidating whatever they affect."""
        previous = self.settings
        self.settings = settings
        self.remote.settings = settings
        self.coordinator.settings = settings
        self.cache.configure(settings.cache_max_size, settings.cache_ttl_seconds)

        if remote_settings_changed(previous, settings):
            logger.info("Remote settings changed, dropping connection and cache")
            self.coordinator.cancel_pending()
            self.cache.clear()
            await self.remote.disconnect()
        if local_settings_changed(previous, settings):
            self.index.id_field_override = settings.id_field_override
            self.reload()
            self._restart_watcher()
        elif previous.watch_sources != settings.watch_sources:
            self._restart_watcher()

    async def shutdown(self) -> None:
        self.watcher.stop()
        self.coordinator.cancel_pending()
        await self.remote.disconnect()
        self._loop = None

    def status(self) -> dict[str, Any]:
        return {
            "local": {
                "enabled": self.settings.enable_local_source,
                "keys": len(self.index),
                "report": self.index.report.to_dict(),
                "watching": sorted(str(path) for path in self.watcher.watching),
            },
            "remote": {
                "enabled": self.settings.enable_remote_source,
                "configured": self.settings.remote_configured,
                "connected": self.remote.connected,
                "databases": list(self.settings.remote_databases),
                "collections": [spec.collection for spec in self.settings.remote_collections],
            },
            "cache": self.cache_status(),
        }

    def cache_status(self) -> dict[str, Any]:
        return {
            "size": len(self.cache),
            "max_size": self.cache.max_size,
            "ttl_seconds": self.cache.ttl_seconds,
            "pending_warmups": self.coordinator.pending_warmups,
        }

    # resolution --------------------------------------------------------

    async def resolve(self, token: Token | Sequence[Token] | Mapping[str, Any]) -> LookupResult | None:
        return await self.coordinator.resolve_async(token)

    def resolve_sync(self, token: Token | Sequence[Token] | Mapping[str, Any]) -> LookupResult | None:
        return self.coordinator.resolve_sync(token)

    async def resolve_at(
        self,
        line: str,
        column: int,
        evaluated: str | None = None,
        lines: Sequence[str] | None = None,
        line_no: int | None = None,
    ) -> tuple[Any, LookupResult | None]:
        """Resolve whatever sits under the cursor of an editor line.

        A literal is looked up directly. An identifier is looked up by name,
        then by the debugger's evaluation of it, then by the literal last
        assigned to it in ``lines``.
        """
        literal = token_at(line, column)
        if literal is not None:
            return literal, await self.resolve(literal)
        word = word_at(line, column)
        if word is None:
            return None, None
        result = await self.resolve(word)
        if result is not None:
            return word, result
        if evaluated is not None:
            return word, await self.resolve(debug_value_tokens(evaluated, parse_numbers=True))
        if lines is not None and line_no is not None:
            value = find_variable_value(lines, word, line_no)
            if value is not None:
                return word, await self.resolve(value)
        return word, None

    def resolve_debug_value(self, evaluated: str) -> LookupResult | None:
        """Synchronous lookup of a debugger evaluation result."""
        return self.resolve_sync(debug_value_tokens(evaluated))

    # ------------------------------------------------------------------

    def _restart_watcher(self) -> None:
        if self.settings.watch_sources and self.settings.enable_local_source:
            self.watcher.start(self.settings.resolved_source_paths())
        else:
            self.watcher.stop()

    def _on_source_changed(self, path: Path) -> None:
        logger.info("Local source changed: %s", path)
        loop = self._loop
        if loop is not None and not loop.is_closed():
            loop.call_soon_threadsafe(self.reload)
        else:
            self.reload()


def debug_value_tokens(evaluated: str, parse_numbers: bool = False) -> Token | list[Token]:
    """Lookup token(s) for a debugger evaluation result.

    Object-like results yield their scalar field values as candidates.
    Otherwise only surrounding quotes are dropped, so numeric text such as
    ``007`` keeps its exact spelling unless ``parse_numbers`` is set.
    """
    value = normalize_debug_value(evaluated) if parse_numbers else strip_quotes(evaluated)
    if isinstance(value, str):
        candidates = parse_object_text(value)
        if candidates:
            return candidates
    return value


__all__ = ["LookupService", "debug_value_tokens"]
