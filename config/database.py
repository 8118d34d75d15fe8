"""
config/database.py
Document store interface and its MongoDB (Motor) implementation.

The store is constructed once during app startup, kept on ``app.state``
and injected into request handlers through ``get_store``. Tests override
that dependency with the in-memory store from shared/utils/memory_store.py.
"""

import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError

from config.settings import settings

logger = logging.getLogger(__name__)

Filter = Dict[str, Any]
Patch = Dict[str, Any]
SortSpec = Sequence[Tuple[str, int]]


class DuplicateKeyError(Exception):
    """Raised when a write would violate a unique index."""

    def __init__(self, collection: str, key: Optional[str] = None):
        self.collection = collection
        self.key = key
        super().__init__(f"Duplicate key in '{collection}'" + (f" on '{key}'" if key else ""))


class Collection(Protocol):
    name: str

    async def find_one(self, filter: Filter) -> Optional[dict]: ...

    async def find(
        self, filter: Filter, sort: Optional[SortSpec] = None, limit: int = 0
    ) -> List[dict]: ...

    async def insert_one(self, doc: dict) -> str: ...

    async def update_one(self, filter: Filter, patch: Patch, upsert: bool = False) -> int: ...

    async def delete_one(self, filter: Filter) -> int: ...

    async def count(self, filter: Filter) -> int: ...

    async def create_index(self, field: str, unique: bool = False) -> None: ...


class DocumentStore(Protocol):
    def collection(self, name: str) -> Collection: ...

    async def ping(self) -> None: ...

    async def close(self) -> None: ...


# ── MongoDB ───────────────────────────────────────────────────

class MongoCollection:
    """Thin async adapter over a Motor collection."""

    def __init__(self, collection):
        self._coll = collection
        self.name = collection.name

    async def find_one(self, filter: Filter) -> Optional[dict]:
        return await self._coll.find_one(filter)

    async def find(
        self, filter: Filter, sort: Optional[SortSpec] = None, limit: int = 0
    ) -> List[dict]:
        cursor = self._coll.find(filter)
        if sort:
            cursor = cursor.sort(list(sort))
        if limit:
            cursor = cursor.limit(limit)
        return await cursor.to_list(length=None)

    async def insert_one(self, doc: dict) -> str:
        try:
            result = await self._coll.insert_one(doc)
        except MongoDuplicateKeyError as exc:
            key = next(iter((exc.details or {}).get("keyPattern", {})), None)
            raise DuplicateKeyError(self.name, key) from exc
        return str(result.inserted_id)

    async def update_one(self, filter: Filter, patch: Patch, upsert: bool = False) -> int:
        try:
            result = await self._coll.update_one(filter, patch, upsert=upsert)
        except MongoDuplicateKeyError as exc:
            raise DuplicateKeyError(self.name) from exc
        if result.upserted_id is not None:
            return 1
        return result.matched_count

    async def delete_one(self, filter: Filter) -> int:
        result = await self._coll.delete_one(filter)
        return result.deleted_count

    async def count(self, filter: Filter) -> int:
        return await self._coll.count_documents(filter)

    async def create_index(self, field: str, unique: bool = False) -> None:
        await self._coll.create_index([(field, ASCENDING)], unique=unique)


class MongoDocumentStore:
    def __init__(self, client: AsyncIOMotorClient, db_name: str):
        self._client = client
        self._db = client[db_name]
        self._collections: Dict[str, MongoCollection] = {}

    def collection(self, name: str) -> MongoCollection:
        if name not in self._collections:
            self._collections[name] = MongoCollection(self._db[name])
        return self._collections[name]

    async def ping(self) -> None:
        await self._client.admin.command("ping")

    async def close(self) -> None:
        self._client.close()


# ── Lifecycle ─────────────────────────────────────────────────

async def ensure_indexes(store: DocumentStore) -> None:
    """Unique indexes back the one-per-key invariants atomically."""
    from shared.models.models import Collections

    await store.collection(Collections.USERS).create_index("email", unique=True)
    await store.collection(Collections.APPLICATIONS).create_index("email", unique=True)
    await store.collection(Collections.SERVICES).create_index("bookingId", unique=True)
    await store.collection(Collections.BOOKINGS).create_index("userEmail")
    await store.collection(Collections.PAYMENTS).create_index("bookingId")
    await store.collection(Collections.TRACKINGS).create_index("bookingId")


async def init_db() -> DocumentStore:
    """Build the configured store and verify it is reachable. Run during app startup."""
    if settings.STORE_BACKEND == "memory":
        from shared.utils.memory_store import InMemoryDocumentStore

        store: DocumentStore = InMemoryDocumentStore()
    else:
        client = AsyncIOMotorClient(
            settings.MONGO_URL,
            serverSelectionTimeoutMS=settings.MONGO_TIMEOUT_MS,
            tz_aware=True,
        )
        store = MongoDocumentStore(client, settings.MONGO_DB_NAME)

    # A store that cannot be reached at startup is fatal
    await store.ping()
    await ensure_indexes(store)
    logger.info("Document store ready (backend=%s)", settings.STORE_BACKEND)
    return store


async def close_db(store: Optional[DocumentStore]) -> None:
    """Close the store client. Run during app shutdown."""
    if store is not None:
        await store.close()


def get_store(request: Request) -> DocumentStore:
    """FastAPI dependency: the store built in the app lifespan."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise RuntimeError("Document store not initialized. Call init_db() first.")
    return store
