"""Ordered multi-source lookup resolution."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from hover_lookup.core.config import Settings
from hover_lookup.core.logging import get_logger
from hover_lookup.core.metrics import LOOKUP_COUNT, LOOKUP_LATENCY
from hover_lookup.lookup.cache import ResultCache
from hover_lookup.lookup.local_index import LocalIndex
from hover_lookup.lookup.remote import RemoteSearchClient
from hover_lookup.lookup.types import LookupResult, Record, Token
from hover_lookup.tokens.extract import candidate_tokens
from hover_lookup.utils.text import as_key
from hover_lookup.utils.time import elapsed_ms

logger = get_logger(__name__)

CACHED_SUFFIX = " (cached)"


@dataclass(slots=True)
class _Hit:
    record: Record
    provenance: str


class LookupCoordinator:
    """Resolve tokens against local index, result cache and remote store, first match wins.

    ``resolve_async`` may await a live remote query. ``resolve_sync`` never
    suspends: it reads the local index and the cache only, and on a miss
    starts a detached remote search whose sole effect is to warm the cache
    for the next call.
    """

    def __init__(
        self,
        settings: Settings,
        index: LocalIndex,
        cache: ResultCache,
        remote: RemoteSearchClient,
    ) -> None:
        self.settings = settings
        self.index = index
        self.cache = cache
        self.remote = remote
        self._warmups: dict[str, asyncio.Task[None]] = {}

    @property
    def pending_warmups(self) -> int:
        return len(self._warmups)

    async def resolve_async(self, token: Token | Sequence[Token] | Mapping[str, Any]) -> LookupResult | None:
        start = time.perf_counter()
        result: LookupResult | None = None
        try:
            candidates, multi = _candidates(token)
            spent = 0.0
            for candidate in candidates:
                hit, cost = await self._resolve_one_async(candidate)
                spent += cost
                if hit is not None:
                    result = _result(hit, candidate, spent, multi)
                    break
        except Exception:  # noqa: BLE001
            logger.exception("Lookup failed", extra={"ctx_token": repr(token)})
            result = None
        self._observe("async", result, start)
        return result

    def resolve_sync(self, token: Token | Sequence[Token] | Mapping[str, Any]) -> LookupResult | None:
        start = time.perf_counter()
        result: LookupResult | None = None
        try:
            candidates, multi = _candidates(token)
            spent = 0.0
            for candidate in candidates:
                hit, cost = self._resolve_one_sync(candidate)
                spent += cost
                if hit is not None:
                    result = _result(hit, candidate, spent, multi)
                    break
        except Exception:  # noqa: BLE001
            logger.exception("Lookup failed", extra={"ctx_token": repr(token)})
            result = None
        self._observe("sync", result, start)
        return result

    async def drain(self) -> None:
        """Wait for every pending cache warm-up to finish."""
        while self._warmups:
            pending = list(self._warmups.items())
            await asyncio.gather(*(task for _, task in pending), return_exceptions=True)
            for key, task in pending:
                self._forget(key, task)

    def cancel_pending(self) -> None:
        for task in list(self._warmups.values()):
            task.cancel()
        self._warmups.clear()

    # ------------------------------------------------------------------

    def _local(self, token: Token) -> tuple[_Hit | None, float]:
        if not self.settings.enable_local_source:
            return None, 0.0
        start = time.perf_counter()
        entry = self.index.lookup(token)
        cost = elapsed_ms(start)
        if entry is None:
            return None, cost
        return _Hit(entry.record, entry.source_label), cost

    def _cached(self, token: Token) -> tuple[_Hit | None, float]:
        if not self.settings.enable_remote_source:
            return None, 0.0
        start = time.perf_counter()
        entry = self.cache.get(token)
        cost = elapsed_ms(start)
        if entry is None:
            return None, cost
        return _Hit(entry.record, entry.provenance + CACHED_SUFFIX), cost

    async def _resolve_one_async(self, token: Token) -> tuple[_Hit | None, float]:
        hit, spent = self._local(token)
        if hit is not None:
            return hit, spent
        hit, cost = self._cached(token)
        spent += cost
        if hit is not None or not self._remote_active():
            return hit, spent
        start = time.perf_counter()
        try:
            match = await self.remote.search(token)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Remote lookup skipped: %s", exc, extra={"ctx_token": repr(token)})
            match = None
        spent += elapsed_ms(start)
        if match is None:
            return None, spent
        return _Hit(match.record, match.provenance), spent

    def _resolve_one_sync(self, token: Token) -> tuple[_Hit | None, float]:
        hit, spent = self._local(token)
        if hit is not None:
            return hit, spent
        hit, cost = self._cached(token)
        spent += cost
        if hit is None and self._remote_active():
            self._schedule_warmup(token)
        return hit, spent

    def _remote_active(self) -> bool:
        return self.settings.enable_remote_source and self.settings.remote_configured

    def _schedule_warmup(self, token: Token) -> None:
        key = as_key(token)
        if key in self._warmups:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, skipping cache warm-up for %r", token)
            return
        task = loop.create_task(self._warmup(token))
        self._warmups[key] = task
        task.add_done_callback(lambda done: self._forget(key, done))

    def _forget(self, key: str, task: asyncio.Task[None]) -> None:
        if self._warmups.get(key) is task:
            del self._warmups[key]

    async def _warmup(self, token: Token) -> None:
        try:
            await self.remote.search(token)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Background remote lookup failed: %s", exc, extra={"ctx_token": repr(token)})

    def _observe(self, mode: str, result: LookupResult | None, start: float) -> None:
        LOOKUP_LATENCY.labels(mode=mode).observe(time.perf_counter() - start)
        LOOKUP_COUNT.labels(mode=mode, outcome="hit" if result is not None else "miss").inc()
        if result is not None:
            logger.debug(
                "Lookup for %r: %.3fms (from %s)",
                result.matched_token,
                result.elapsed_ms,
                result.provenance,
            )


def _candidates(token: Any) -> tuple[list[Token], bool]:
    if isinstance(token, Mapping):
        return candidate_tokens(token), True
    if isinstance(token, (list, tuple)):
        return [item for item in token if item is not None], True
    if token is None:
        return [], False
    return [token], False


def _result(hit: _Hit, token: Token, spent: float, multi: bool) -> LookupResult:
    return LookupResult(
        record=hit.record,
        provenance=hit.provenance,
        elapsed_ms=round(spent, 3),
        matched_token=token,
        via_candidate=multi,
    )


__all__ = ["LookupCoordinator", "CACHED_SUFFIX"]
