"""On-demand point queries against MongoDB collections."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

from pymongo import AsyncMongoClient
from pymongo.errors import PyMongoError

from hover_lookup.core.config import CollectionSpec, Settings
from hover_lookup.core.errors import QueryFailureError, RemoteUnavailableError
from hover_lookup.core.logging import get_logger
from hover_lookup.core.metrics import REMOTE_QUERY_ERRORS
from hover_lookup.lookup.cache import ResultCache
from hover_lookup.lookup.types import RemoteMatch, Token

logger = get_logger(__name__)

ClientFactory = Callable[..., Any]

# Database used when neither the settings nor the URI name one.
FALLBACK_DATABASE = "test"


def build_query(search_fields: list[str], token: Token) -> dict[str, Any]:
    """Disjunctive point query: any of the fields equals the token."""
    return {"$or": [{field: token} for field in search_fields]}


class RemoteSearchClient:
    """Owns the MongoDB connection and scans the configured collections in order."""

    def __init__(
        self,
        settings: Settings,
        cache: ResultCache | None = None,
        client_factory: ClientFactory = AsyncMongoClient,
    ) -> None:
        self.settings = settings
        self.cache = cache
        self._client_factory = client_factory
        self._client: Any | None = None
        self._lock = asyncio.Lock()

    @property
    def connected(self) -> bool:
        return self._client is not None

    async def connect(self) -> Any | None:
        """Return a live client, or ``None`` when no URL is configured."""
        if not self.settings.remote_configured:
            return None
        async with self._lock:
            return await self._connect_locked()

    async def _connect_locked(self) -> Any:
        if self._client is not None:
            try:
                await self._client.admin.command("ping")
                return self._client
            except PyMongoError as exc:
                logger.warning("MongoDB connection lost, reconnecting: %s", exc)
                await self._close_quietly()

        client = self._client_factory(
            self.settings.remote_url,
            serverSelectionTimeoutMS=self.settings.remote_timeout_ms,
        )
        try:
            await client.admin.command("ping")
        except PyMongoError as exc:
            try:
                await client.close()
            except PyMongoError:
                logger.debug("Ignoring close failure on unreachable client", exc_info=True)
            raise RemoteUnavailableError(f"Failed to connect to MongoDB: {exc}") from exc
        self._client = client
        logger.info("Connected to MongoDB")
        return client

    async def disconnect(self) -> None:
        async with self._lock:
            if self._client is None:
                return
            await self._close_quietly()
        logger.info("Disconnected from MongoDB")

    async def search(self, token: Token) -> RemoteMatch | None:
        """First document matching ``token``, in (database, collection) order.

        Raises ``RemoteUnavailableError`` when the server cannot be reached.
        """
        if not self.settings.enable_remote_source:
            return None
        collections = [spec for spec in self.settings.remote_collections if spec.searchable]
        if not collections:
            return None
        client = await self.connect()
        if client is None:
            return None

        for database in self._databases(client):
            for spec in collections:
                try:
                    document = await self._find_one(database, spec, token)
                except QueryFailureError as exc:
                    logger.error("Error searching collection %s", exc)
                    REMOTE_QUERY_ERRORS.labels(database=exc.database, collection=exc.collection).inc()
                    continue
                if document is None:
                    continue
                match = RemoteMatch(record=document, database=database.name, collection=spec.collection)
                logger.debug("Found document in MongoDB collection %s", match.provenance)
                if self.cache is not None:
                    self.cache.put(token, document, match.provenance)
                return match
        return None

    # ------------------------------------------------------------------

    def _databases(self, client: Any) -> list[Any]:
        if self.settings.remote_databases:
            return [client[name] for name in self.settings.remote_databases]
        return [client.get_default_database(default=FALLBACK_DATABASE)]

    async def _find_one(self, database: Any, spec: CollectionSpec, token: Token) -> Any | None:
        query = build_query(spec.search_fields, token)
        try:
            return await database[spec.collection].find_one(query, projection=spec.projection)
        except PyMongoError as exc:
            raise QueryFailureError(database.name, spec.collection, str(exc)) from exc

    async def _close_quietly(self) -> None:
        client, self._client = self._client, None
        try:
            await client.close()
        except PyMongoError:
            logger.debug("Ignoring close failure", exc_info=True)


__all__ = ["RemoteSearchClient", "build_query", "FALLBACK_DATABASE"]
