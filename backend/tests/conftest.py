"""Test fixtures for Hover Lookup."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any, Callable

import orjson
import pytest
from pymongo.errors import OperationFailure, ServerSelectionTimeoutError

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))


@pytest.fixture(autouse=True)
def reset_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset global singletons and environment between tests."""
    monkeypatch.setenv("HOVERLOOKUP_CONFIG", str(tmp_path / "missing-config.yaml"))
    monkeypatch.setenv("HOVERLOOKUP_WORKSPACE_ROOT", str(tmp_path))
    monkeypatch.setenv("HOVERLOOKUP_WATCH_SOURCES", "false")
    for name in ("HOVERLOOKUP_REMOTE_URL", "HOVERLOOKUP_LOCAL_SOURCE_PATHS", "HOVERLOOKUP_REMOTE_COLLECTIONS"):
        monkeypatch.delenv(name, raising=False)

    from hover_lookup.api import dependencies as deps
    from hover_lookup.core.config import get_settings

    get_settings.cache_clear()
    deps.get_app_settings.cache_clear()
    deps._SERVICE = None
    yield
    get_settings.cache_clear()
    deps.get_app_settings.cache_clear()
    deps._SERVICE = None


@pytest.fixture
def write_source(tmp_path: Path) -> Callable[[str, Any], Path]:
    """Write a JSON source file under the temporary workspace."""

    def _write(name: str, content: Any) -> Path:
        path = tmp_path / name
        path.write_bytes(orjson.dumps(content))
        return path

    return _write


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# In-memory stand-in for pymongo's AsyncMongoClient ---------------------


class FakeCollection:
    def __init__(self, name: str, documents: list[dict[str, Any]]) -> None:
        self.name = name
        self.documents = documents
        self.queries: list[dict[str, Any]] = []
        self.fail = False

    async def find_one(self, query: dict[str, Any], projection: dict[str, Any] | None = None) -> dict[str, Any] | None:
        self.queries.append(query)
        if self.fail:
            raise OperationFailure(f"query failed on {self.name}")
        for document in self.documents:
            if any(document.get(field) == value for clause in query["$or"] for field, value in clause.items()):
                return _project(document, projection)
        return None


class FakeDatabase:
    def __init__(self, name: str, collections: dict[str, FakeCollection]) -> None:
        self.name = name
        self._collections = collections

    def __getitem__(self, name: str) -> FakeCollection:
        return self._collections.setdefault(name, FakeCollection(name, []))


class FakeAdmin:
    def __init__(self, server: "FakeMongoServer") -> None:
        self._server = server

    async def command(self, name: str) -> dict[str, Any]:
        if self._server.slow_ping:
            await asyncio.sleep(0)
        if self._server.down:
            raise ServerSelectionTimeoutError("server unreachable")
        self._server.pings += 1
        return {"ok": 1}


class FakeMongoClient:
    def __init__(self, server: "FakeMongoServer", url: str, options: dict[str, Any]) -> None:
        self.server = server
        self.url = url
        self.options = options
        self.admin = FakeAdmin(server)
        self.closed = False

    def __getitem__(self, name: str) -> FakeDatabase:
        return FakeDatabase(name, self.server.databases.setdefault(name, {}))

    def get_default_database(self, default: str | None = None) -> FakeDatabase:
        return self[self.server.default_database or default]

    async def close(self) -> None:
        self.closed = True


class FakeMongoServer:
    """Client factory backed by in-memory databases."""

    def __init__(self) -> None:
        self.databases: dict[str, dict[str, FakeCollection]] = {}
        self.default_database: str | None = None
        self.down = False
        self.pings = 0
        self.slow_ping = False
        self.clients: list[FakeMongoClient] = []

    def __call__(self, url: str, **options: Any) -> FakeMongoClient:
        client = FakeMongoClient(self, url, options)
        self.clients.append(client)
        return client

    def add(self, database: str, collection: str, *documents: dict[str, Any]) -> FakeCollection:
        collections = self.databases.setdefault(database, {})
        target = collections.setdefault(collection, FakeCollection(collection, []))
        target.documents.extend(documents)
        return target

    def collection(self, database: str, collection: str) -> FakeCollection:
        return self.databases.setdefault(database, {}).setdefault(collection, FakeCollection(collection, []))


def _project(document: dict[str, Any], projection: dict[str, Any] | None) -> dict[str, Any]:
    if not projection:
        return dict(document)
    included = {key for key, flag in projection.items() if flag}
    if included:
        projected = {key: value for key, value in document.items() if key in included}
        if projection.get("_id", 1) and "_id" in document:
            projected["_id"] = document["_id"]
        return projected
    excluded = {key for key, flag in projection.items() if not flag}
    return {key: value for key, value in document.items() if key not in excluded}


@pytest.fixture
def mongo() -> FakeMongoServer:
    return FakeMongoServer()
