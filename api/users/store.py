"""Base user store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId

from core.errors import ErrorKind, UserStoreError

COLLECTION_NAME = "users"

# Radius MongoDB uses for spherical distance on legacy coordinate pairs.
EARTH_RADIUS_METERS = 6_378_100.0


@dataclass(frozen=True)
class AgeStats:
    average_age: float | None
    count: int


def parse_object_id(raw: str) -> ObjectId:
    """
    Convert a path parameter into an ObjectId.

    Raises:
        UserStoreError(VALIDATION) if `raw` is not a 24-char hex string.
    """
    try:
        return ObjectId(raw)
    except (InvalidId, TypeError) as exc:
        raise UserStoreError(
            ErrorKind.VALIDATION,
            f'Cast to ObjectId failed for value "{raw}" (type {type(raw).__name__}) at path "_id"',
        ) from exc


class UserStore(ABC):
    """
    Abstract base class for user storage backends.

    Documents are plain dicts shaped like MongoDB documents, with `_id` holding
    an ObjectId. Lookups by id return None when nothing matches.
    """

    name: str = "abstract"

    @abstractmethod
    async def ensure_indexes(self) -> None:
        """Create the unique email index and the 2dsphere coordinates index."""
        ...

    @abstractmethod
    async def insert(self, document: dict[str, Any]) -> dict[str, Any]:
        """
        Insert a new user document.

        Returns:
            The stored document including its generated `_id`.

        Raises:
            UserStoreError(VALIDATION) on a duplicate email.
        """
        ...

    @abstractmethod
    async def list_all(self) -> list[dict[str, Any]]:
        """Every document, in storage order."""
        ...

    @abstractmethod
    async def get(self, user_id: str) -> dict[str, Any] | None:
        ...

    @abstractmethod
    async def update(self, user_id: str, fields: dict[str, Any]) -> dict[str, Any] | None:
        """
        Apply `fields` as a `$set` (dotted paths allowed) and return the
        document after the update.
        """
        ...

    @abstractmethod
    async def delete(self, user_id: str) -> dict[str, Any] | None:
        """
        Remove a document.

        Returns:
            The removed document, or None if it didn't exist.
        """
        ...

    @abstractmethod
    async def average_age(self) -> AgeStats:
        ...

    @abstractmethod
    async def near(
        self,
        longitude: float,
        latitude: float,
        max_distance: float | None = None,
    ) -> list[dict[str, Any]]:
        """
        Users whose `address.coordinates` lie within `max_distance` meters of
        the point, nearest first.
        """
        ...

    @abstractmethod
    async def ping(self) -> bool:
        ...

    async def close(self) -> None:
        return None
