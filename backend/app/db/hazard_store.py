"""
Hazard persistence.

``MongoHazardStore`` is the production backend; ``InMemoryHazardStore``
keeps the same contract for local development and tests.  Both return
plain dicts with ``_id`` as a string.
"""

import logging
import threading
import uuid
from typing import Any, Dict, List, Optional, Protocol

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.errors import PyMongoError

from app.core.errors import PersistenceError

logger = logging.getLogger(__name__)

HAZARD_COLLECTION = "hazards"


class HazardStore(Protocol):
    def insert(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def find_in_box(
        self,
        min_lat: float,
        max_lat: float,
        min_lon: float,
        max_lon: float,
        limit: int,
    ) -> List[Dict[str, Any]]:
        """Inclusive lat/lon ranges, newest ``createdAt`` first."""
        ...


def _serialize(doc: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(doc)
    out["_id"] = str(out["_id"])
    return out


class MongoHazardStore:
    def __init__(
        self,
        uri: str,
        db_name: str,
        collection: str = HAZARD_COLLECTION,
        client: Optional[MongoClient] = None,
    ):
        # MongoClient connects lazily; nothing blocks here
        self._client = client or MongoClient(uri, serverSelectionTimeoutMS=5000, tz_aware=True)
        self._collection = self._client[db_name][collection]

    def ensure_indexes(self) -> None:
        try:
            self._collection.create_index([("lat", ASCENDING), ("lon", ASCENDING)])
            self._collection.create_index([("createdAt", DESCENDING)])
        except PyMongoError as e:
            logger.warning("Could not create hazard indexes: %s", e)

    def insert(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        doc = dict(doc)
        try:
            self._collection.insert_one(doc)
        except PyMongoError as e:
            logger.error("Hazard insert failed", exc_info=True)
            raise PersistenceError("hazard insert failed") from e
        return _serialize(doc)

    def find_in_box(self, min_lat, max_lat, min_lon, max_lon, limit):
        query = {
            "lat": {"$gte": min_lat, "$lte": max_lat},
            "lon": {"$gte": min_lon, "$lte": max_lon},
        }
        try:
            cursor = self._collection.find(query).sort("createdAt", DESCENDING).limit(limit)
            return [_serialize(d) for d in cursor]
        except PyMongoError as e:
            logger.error("Hazard query failed", exc_info=True)
            raise PersistenceError("hazard query failed") from e

    def close(self) -> None:
        self._client.close()


class InMemoryHazardStore:
    def __init__(self) -> None:
        self._docs: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def insert(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        stored = {**doc, "_id": uuid.uuid4().hex}
        with self._lock:
            self._docs.append(stored)
        return dict(stored)

    def find_in_box(self, min_lat, max_lat, min_lon, max_lon, limit):
        with self._lock:
            matches = [
                d for d in self._docs
                if min_lat <= d["lat"] <= max_lat and min_lon <= d["lon"] <= max_lon
            ]
        # Reverse first so equal timestamps keep newest-inserted first
        matches = sorted(reversed(matches), key=lambda d: d["createdAt"], reverse=True)
        return [dict(d) for d in matches[:limit]]

    def __len__(self) -> int:
        return len(self._docs)
