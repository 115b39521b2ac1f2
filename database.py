import logging
import os
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pymongo import MongoClient
from pymongo.collection import Collection

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017/")
DATABASE_NAME = os.getenv("DATABASE_NAME", "appdb")
BLOB_COLLECTION = os.getenv("BLOB_COLLECTION", "blobs")
# "mongo" or "memory"
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "mongo").lower()

_client = MongoClient(DATABASE_URL, connect=False)
db = _client[DATABASE_NAME]


def get_collection(name: str) -> Collection:
    return db[name]


class BlobStore:
    """Key-value blob store backed by one MongoDB collection, one document per key."""

    backend = "mongo"

    def __init__(self, collection: Collection):
        self.collection = collection

    def get(self, key: str) -> Optional[bytes]:
        doc = self.collection.find_one({"_id": key})
        if doc is None:
            return None
        return doc.get("value")

    def set(self, key: str, data: bytes) -> None:
        now = datetime.now(timezone.utc)
        self.collection.update_one(
            {"_id": key},
            {"$set": {"value": data, "updated_at": now}, "$setOnInsert": {"created_at": now}},
            upsert=True,
        )
        logger.debug("Wrote %d bytes under %s", len(data), key)

    def delete(self, key: str) -> None:
        self.collection.delete_one({"_id": key})

    def keys(self) -> List[str]:
        return [doc["_id"] for doc in self.collection.find({}, {"_id": 1})]


class MemoryBlobStore:
    """Same interface as BlobStore, kept in process memory."""

    backend = "memory"

    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self._data: Dict[str, bytes] = dict(initial or {})

    def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def set(self, key: str, data: bytes) -> None:
        self._data[key] = data

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data)


def get_blob_store():
    if STORAGE_BACKEND == "memory":
        logger.info("Using in-memory blob store")
        return MemoryBlobStore()
    logger.info("Using MongoDB blob store %s.%s", DATABASE_NAME, BLOB_COLLECTION)
    return BlobStore(get_collection(BLOB_COLLECTION))
