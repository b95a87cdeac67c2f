# mentara/core/db.py
import copy
import logging
import re
from typing import Any, AsyncGenerator, Dict, List, Optional
from motor.motor_asyncio import AsyncIOMotorClient
from mentara.core.config import settings

logger = logging.getLogger(__name__)


class KeyValueStore:
    """
    Single-key document store. Every write replaces the whole value; there are
    no transactions and concurrent writers to one key are last-write-wins.
    """

    async def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    async def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    async def delete(self, key: str) -> None:
        raise NotImplementedError

    async def get_by_prefix(self, prefix: str) -> List[Any]:
        """Return the values of every key starting with ``prefix``. Full scan, O(n)."""
        raise NotImplementedError

    async def connect(self):
        pass

    async def close(self):
        pass


class MongoKeyValueStore(KeyValueStore):
    """Key-value store kept in one MongoDB collection as ``{_id: key, value: ...}``."""

    client: AsyncIOMotorClient | None = None
    database = None

    def __init__(self, uri: str, db_name: str, collection_name: str):
        self.uri = uri
        self.db_name = db_name
        self.collection_name = collection_name

    async def connect(self):
        """Connect to MongoDB and ping to check connection."""
        try:
            self.client = AsyncIOMotorClient(self.uri)
            self.database = self.client[self.db_name]
            await self.client.admin.command('ping')
            logger.info("Connected to MongoDB successfully")
        except Exception as e:
            logger.error(f"Error connecting to MongoDB: {e}")
            raise

    async def close(self):
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            logger.info("MongoDB connection closed")

    async def _collection(self):
        if self.database is None:
            await self.connect()
        return self.database[self.collection_name]

    async def get(self, key: str) -> Optional[Any]:
        collection = await self._collection()
        doc = await collection.find_one({"_id": key})
        return doc["value"] if doc else None

    async def set(self, key: str, value: Any) -> None:
        collection = await self._collection()
        await collection.replace_one({"_id": key}, {"_id": key, "value": value}, upsert=True)

    async def delete(self, key: str) -> None:
        collection = await self._collection()
        await collection.delete_one({"_id": key})

    async def get_by_prefix(self, prefix: str) -> List[Any]:
        collection = await self._collection()
        cursor = collection.find({"_id": {"$regex": f"^{re.escape(prefix)}"}})
        docs = await cursor.to_list(length=None)
        return [doc["value"] for doc in docs]


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store for development and tests. Values are deep-copied in and out."""

    def __init__(self):
        self._data: Dict[str, Any] = {}

    async def get(self, key: str) -> Optional[Any]:
        value = self._data.get(key)
        return copy.deepcopy(value)

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def get_by_prefix(self, prefix: str) -> List[Any]:
        return [copy.deepcopy(v) for k, v in self._data.items() if k.startswith(prefix)]

    def keys(self) -> List[str]:
        return list(self._data.keys())


def create_store() -> KeyValueStore:
    if settings.KV_BACKEND == "memory":
        logger.info("Using in-memory key-value store")
        return InMemoryKeyValueStore()
    return MongoKeyValueStore(settings.MONGO_URI, settings.MONGO_DB_NAME, settings.KV_COLLECTION)


# Singleton instance
kv_store = create_store()


async def get_store() -> AsyncGenerator[KeyValueStore, None]:
    """FastAPI dependency yielding the configured key-value store."""
    yield kv_store
