"""In-process user store backend."""

from __future__ import annotations

import asyncio
import copy
import logging
import math
from typing import Any

from bson import ObjectId

from core.errors import ErrorKind, UserStoreError

from .store import COLLECTION_NAME, EARTH_RADIUS_METERS, AgeStats, UserStore, parse_object_id

logger = logging.getLogger(__name__)


def _duplicate_email_message(email: str) -> str:
    return (
        f"E11000 duplicate key error collection: memory.{COLLECTION_NAME} "
        f'index: email_1 dup key: {{ email: "{email}" }}'
    )


def _coordinates(document: dict[str, Any]) -> list[float] | None:
    address = document.get("address")
    if not isinstance(address, dict):
        return None
    coords = address.get("coordinates")
    if not isinstance(coords, list) or len(coords) != 2:
        return None
    return coords


def distance_meters(a: list[float], b: list[float]) -> float:
    """
    Great-circle distance between two [lng, lat] points (haversine).
    """
    lng1, lat1 = map(math.radians, a)
    lng2, lat2 = map(math.radians, b)
    d_lat = lat2 - lat1
    d_lng = lng2 - lng1
    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * math.asin(min(1.0, math.sqrt(h)))


def apply_set(document: dict[str, Any], fields: dict[str, Any]) -> None:
    """
    Apply a `$set` with dotted paths to `document` in place.
    """
    for path, value in fields.items():
        *parents, leaf = path.split(".")
        target = document
        for part in parents:
            child = target.get(part)
            if child is None and part not in target:
                child = target[part] = {}
            if not isinstance(child, dict):
                shown = "null" if child is None else repr(child)
                raise UserStoreError(
                    ErrorKind.VALIDATION,
                    f"Cannot create field '{leaf}' in element {{{part}: {shown}}}",
                )
            target = child
        target[leaf] = copy.deepcopy(value)


class InMemoryUserStore(UserStore):
    """
    Dict-backed store with the same semantics as the MongoDB store.

    Documents keep insertion order. Writes are serialized by a lock so the
    email uniqueness check and the write happen atomically.
    """

    name = "memory"

    def __init__(self) -> None:
        self._documents: dict[ObjectId, dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    def _email_taken(self, email: Any, *, exclude: ObjectId | None = None) -> bool:
        return any(
            doc.get("email") == email for oid, doc in self._documents.items() if oid != exclude
        )

    async def ensure_indexes(self) -> None:
        # Uniqueness and geo lookups are enforced in code.
        return None

    async def insert(self, document: dict[str, Any]) -> dict[str, Any]:
        document = copy.deepcopy(document)
        async with self._lock:
            if self._email_taken(document.get("email")):
                raise UserStoreError(ErrorKind.VALIDATION, _duplicate_email_message(document["email"]))
            oid = ObjectId()
            document["_id"] = oid
            self._documents[oid] = document
        return copy.deepcopy(document)

    async def list_all(self) -> list[dict[str, Any]]:
        return [copy.deepcopy(doc) for doc in self._documents.values()]

    async def get(self, user_id: str) -> dict[str, Any] | None:
        oid = parse_object_id(user_id)
        document = self._documents.get(oid)
        return copy.deepcopy(document) if document is not None else None

    async def update(self, user_id: str, fields: dict[str, Any]) -> dict[str, Any] | None:
        oid = parse_object_id(user_id)
        async with self._lock:
            current = self._documents.get(oid)
            if current is None:
                return None
            if "email" in fields and self._email_taken(fields["email"], exclude=oid):
                raise UserStoreError(ErrorKind.VALIDATION, _duplicate_email_message(fields["email"]))

            updated = copy.deepcopy(current)
            apply_set(updated, fields)
            self._documents[oid] = updated
        return copy.deepcopy(updated)

    async def delete(self, user_id: str) -> dict[str, Any] | None:
        oid = parse_object_id(user_id)
        async with self._lock:
            return self._documents.pop(oid, None)

    async def average_age(self) -> AgeStats:
        ages = [
            doc["age"]
            for doc in self._documents.values()
            if isinstance(doc.get("age"), (int, float)) and not isinstance(doc.get("age"), bool)
        ]
        if not ages:
            return AgeStats(average_age=None, count=0)
        return AgeStats(average_age=sum(ages) / len(ages), count=len(ages))

    async def near(
        self,
        longitude: float,
        latitude: float,
        max_distance: float | None = None,
    ) -> list[dict[str, Any]]:
        center = [longitude, latitude]
        matches: list[tuple[float, dict[str, Any]]] = []
        for document in self._documents.values():
            coords = _coordinates(document)
            if coords is None:
                continue
            distance = distance_meters(center, coords)
            if max_distance is None or distance <= max_distance:
                matches.append((distance, document))

        # sorted() is stable, so equidistant users keep insertion order.
        matches = sorted(matches, key=lambda item: item[0])
        return [copy.deepcopy(doc) for _, doc in matches]

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        logger.info("Discarding %d in-memory users", len(self._documents))
        self._documents.clear()
