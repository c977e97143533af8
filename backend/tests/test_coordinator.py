"""Tests for lookup resolution order and the sync/async paths."""

from __future__ import annotations

import asyncio

from hover_lookup.core.config import Settings
from hover_lookup.lookup.cache import ResultCache
from hover_lookup.lookup.coordinator import CACHED_SUFFIX, LookupCoordinator
from hover_lookup.lookup.local_index import LocalIndex
from hover_lookup.lookup.remote import RemoteSearchClient


def _build(mongo, clock, tmp_path, sources=(), **overrides) -> LookupCoordinator:
    options = {
        "workspace_root": tmp_path,
        "remote_url": "mongodb://localhost:27017",
        "remote_databases": ["db1"],
        "remote_collections": [{"collection": "users", "search_fields": ["id", "email"]}],
        "watch_sources": False,
    }
    options.update(overrides)
    settings = Settings(**options)
    index = LocalIndex()
    if sources:
        index.load(sources)
    cache = ResultCache(clock=clock)
    remote = RemoteSearchClient(settings, cache, client_factory=mongo)
    return LookupCoordinator(settings, index, cache, remote)


def test_local_hit_with_file_provenance(mongo, clock, tmp_path, write_source) -> None:
    path = write_source("lookup.json", {"idField": "id", "data": [{"id": 1, "name": "John"}]})
    coordinator = _build(mongo, clock, tmp_path, [path])

    result = asyncio.run(coordinator.resolve_async("1"))

    assert result.record == {"id": 1, "name": "John"}
    assert result.provenance == "lookup.json"
    assert result.matched_token == "1"
    assert not result.via_candidate
    assert result.elapsed_ms >= 0
    assert mongo.clients == []


def test_local_wins_over_remote(mongo, clock, tmp_path, write_source) -> None:
    path = write_source("lookup.json", {"u1": {"from": "local"}})
    mongo.add("db1", "users", {"id": "u1", "from": "remote"})
    coordinator = _build(mongo, clock, tmp_path, [path])
    assert asyncio.run(coordinator.resolve_async("u1")).record == {"from": "local"}


def test_disabled_local_source_is_skipped(mongo, clock, tmp_path, write_source) -> None:
    path = write_source("lookup.json", {"u1": {"from": "local"}})
    mongo.add("db1", "users", {"id": "u1", "from": "remote"})
    coordinator = _build(mongo, clock, tmp_path, [path], enable_local_source=False)
    result = asyncio.run(coordinator.resolve_async("u1"))
    assert result.record["from"] == "remote"
    assert result.provenance == "db1.users"


def test_remote_then_cached_for_sync_path(mongo, clock, tmp_path) -> None:
    mongo.add("db1", "users", {"id": "u1", "email": "a@b.com"})
    coordinator = _build(mongo, clock, tmp_path)

    async def scenario() -> None:
        live = await coordinator.resolve_async("a@b.com")
        assert live.provenance == "db1.users"
        cached = coordinator.resolve_sync("a@b.com")
        assert cached.record == {"id": "u1", "email": "a@b.com"}
        assert cached.provenance == "db1.users" + CACHED_SUFFIX
        again = await coordinator.resolve_async("a@b.com")
        assert again.provenance == "db1.users (cached)"

    asyncio.run(scenario())
    assert len(mongo.collection("db1", "users").queries) == 1


def test_sync_miss_returns_immediately_and_warms_cache(mongo, clock, tmp_path) -> None:
    users = mongo.add("db1", "users", {"id": "u1"})
    coordinator = _build(mongo, clock, tmp_path)

    async def scenario() -> None:
        assert coordinator.resolve_sync("u1") is None
        assert coordinator.pending_warmups == 1
        assert users.queries == []
        assert coordinator.resolve_sync("u1") is None
        assert coordinator.pending_warmups == 1

        await coordinator.drain()
        assert coordinator.pending_warmups == 0
        assert len(users.queries) == 1

        second_hover = coordinator.resolve_sync("u1")
        assert second_hover.provenance == "db1.users (cached)"

    asyncio.run(scenario())


def test_sync_without_event_loop_skips_warmup(mongo, clock, tmp_path) -> None:
    mongo.add("db1", "users", {"id": "u1"})
    coordinator = _build(mongo, clock, tmp_path)
    assert coordinator.resolve_sync("u1") is None
    assert coordinator.pending_warmups == 0


def test_warmup_failure_never_surfaces(mongo, clock, tmp_path) -> None:
    mongo.down = True
    coordinator = _build(mongo, clock, tmp_path)

    async def scenario() -> None:
        assert coordinator.resolve_sync("u1") is None
        await coordinator.drain()
        assert coordinator.resolve_sync("u1") is None

    asyncio.run(scenario())


def test_unreachable_remote_degrades_to_no_match(mongo, clock, tmp_path) -> None:
    mongo.down = True
    coordinator = _build(mongo, clock, tmp_path)
    assert asyncio.run(coordinator.resolve_async("u1")) is None


def test_remote_disabled_ignores_cache(mongo, clock, tmp_path) -> None:
    coordinator = _build(mongo, clock, tmp_path, enable_remote_source=False)
    coordinator.cache.put("u1", {"id": "u1"}, "db1.users")
    assert coordinator.resolve_sync("u1") is None
    assert asyncio.run(coordinator.resolve_async("u1")) is None


def test_multi_token_returns_first_matching_candidate(mongo, clock, tmp_path, write_source) -> None:
    path = write_source("lookup.json", {"idField": "id", "data": [{"id": "B", "v": 2}, {"id": "C", "v": 3}]})
    coordinator = _build(mongo, clock, tmp_path, [path])
    users = mongo.collection("db1", "users")

    result = asyncio.run(coordinator.resolve_async(["A", "B", "C"]))

    assert result.matched_token == "B"
    assert result.via_candidate
    assert result.record == {"id": "B", "v": 2}
    assert users.queries == [{"$or": [{"id": "A"}, {"email": "A"}]}]


def test_mapping_candidates_skip_nested_values(mongo, clock, tmp_path, write_source) -> None:
    path = write_source("lookup.json", {"42": {"user": 42}})
    coordinator = _build(mongo, clock, tmp_path, [path], enable_remote_source=False)
    value = {"meta": {"id": "x"}, "tags": ["a"], "name": "nobody", "userId": 42}

    result = coordinator.resolve_sync(value)

    assert result.matched_token == 42
    assert result.provenance == "lookup.json"


def test_no_match_and_empty_input(mongo, clock, tmp_path) -> None:
    coordinator = _build(mongo, clock, tmp_path, remote_url="")
    assert asyncio.run(coordinator.resolve_async("nothing")) is None
    assert coordinator.resolve_sync([]) is None
    assert coordinator.resolve_sync(None) is None
