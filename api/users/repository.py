"""
User persistence on MongoDB.

Collection `users`:
- unique index on `email` (duplicate inserts fail with E11000)
- 2dsphere index on `address.coordinates` ([lng, lat] legacy pairs)
"""

from __future__ import annotations

import logging
from typing import Any

from pymongo import ASCENDING, GEOSPHERE, AsyncMongoClient, ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import ConnectionFailure, DuplicateKeyError, OperationFailure, PyMongoError

from core import db
from core.errors import ErrorKind, UserStoreError

from .store import COLLECTION_NAME, AgeStats, UserStore, parse_object_id

logger = logging.getLogger(__name__)


def _store_error(exc: PyMongoError) -> UserStoreError:
    if isinstance(exc, ConnectionFailure):
        return UserStoreError(ErrorKind.CONNECTIVITY, f"Database unavailable: {exc}")
    # Server-side rejections (duplicate key, bad update path) are constraint failures.
    return UserStoreError(ErrorKind.VALIDATION, str(exc))


class MongoUserStore(UserStore):
    name = "mongo"

    def __init__(self, client: AsyncMongoClient, database_name: str | None = None):
        self._client = client
        self._collection: AsyncCollection = db.get_database(client, database_name)[COLLECTION_NAME]

    @classmethod
    def from_env(cls) -> "MongoUserStore":
        return cls(db.create_client(), db.database_name())

    async def ensure_indexes(self) -> None:
        try:
            await self._collection.create_index([("email", ASCENDING)], unique=True)
            await self._collection.create_index([("address.coordinates", GEOSPHERE)])
        except PyMongoError as exc:
            raise _store_error(exc) from exc
        logger.info("User indexes ensured on collection %s", self._collection.full_name)

    async def insert(self, document: dict[str, Any]) -> dict[str, Any]:
        document = dict(document)
        try:
            result = await self._collection.insert_one(document)
        except DuplicateKeyError as exc:
            raise UserStoreError(ErrorKind.VALIDATION, str(exc)) from exc
        except PyMongoError as exc:
            raise _store_error(exc) from exc
        document["_id"] = result.inserted_id
        return document

    async def list_all(self) -> list[dict[str, Any]]:
        try:
            cursor = self._collection.find({})
            return await cursor.to_list()
        except PyMongoError as exc:
            raise _store_error(exc) from exc

    async def get(self, user_id: str) -> dict[str, Any] | None:
        oid = parse_object_id(user_id)
        try:
            return await self._collection.find_one({"_id": oid})
        except PyMongoError as exc:
            raise _store_error(exc) from exc

    async def update(self, user_id: str, fields: dict[str, Any]) -> dict[str, Any] | None:
        oid = parse_object_id(user_id)
        if not fields:
            return await self.get(user_id)
        try:
            return await self._collection.find_one_and_update(
                {"_id": oid},
                {"$set": fields},
                return_document=ReturnDocument.AFTER,
            )
        except OperationFailure as exc:
            raise UserStoreError(ErrorKind.VALIDATION, str(exc)) from exc
        except PyMongoError as exc:
            raise _store_error(exc) from exc

    async def delete(self, user_id: str) -> dict[str, Any] | None:
        oid = parse_object_id(user_id)
        try:
            return await self._collection.find_one_and_delete({"_id": oid})
        except PyMongoError as exc:
            raise _store_error(exc) from exc

    async def average_age(self) -> AgeStats:
        pipeline = [
            {"$match": {"age": {"$type": "number"}}},
            {"$group": {"_id": None, "avgAge": {"$avg": "$age"}, "count": {"$sum": 1}}},
        ]
        try:
            cursor = await self._collection.aggregate(pipeline)
            rows = await cursor.to_list()
        except PyMongoError as exc:
            raise _store_error(exc) from exc

        if not rows:
            return AgeStats(average_age=None, count=0)
        row = rows[0]
        return AgeStats(average_age=float(row["avgAge"]), count=int(row["count"]))

    async def near(
        self,
        longitude: float,
        latitude: float,
        max_distance: float | None = None,
    ) -> list[dict[str, Any]]:
        near: dict[str, Any] = {
            "$geometry": {"type": "Point", "coordinates": [longitude, latitude]},
        }
        if max_distance is not None:
            near["$maxDistance"] = max_distance
        try:
            cursor = self._collection.find({"address.coordinates": {"$near": near}})
            return await cursor.to_list()
        except PyMongoError as exc:
            raise _store_error(exc) from exc

    async def ping(self) -> bool:
        try:
            await self._client.admin.command("ping")
        except PyMongoError:
            logger.warning("MongoDB ping failed", exc_info=True)
            return False
        return True

    async def close(self) -> None:
        await self._client.close()
