"""
User business logic.

Every operation makes exactly one store call and returns an `Outcome`:
either a value or a tagged `ServiceError`. Nothing here raises for expected
failures; the router decides the HTTP status from `error.kind`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from core.errors import ErrorKind, UserStoreError

from . import schemas
from .store import UserStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

USER_NOT_FOUND = "User not found"
USER_DELETED = "User deleted successfully"


@dataclass(frozen=True)
class ServiceError:
    kind: ErrorKind
    message: str


@dataclass(frozen=True)
class Outcome(Generic[T]):
    value: T | None = None
    error: ServiceError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "Outcome[T]":
        return cls(error=ServiceError(kind=kind, message=message))


def _from_store_error(exc: UserStoreError) -> Outcome[Any]:
    return Outcome.failure(exc.kind, exc.message)


def _not_found() -> Outcome[Any]:
    return Outcome.failure(ErrorKind.NOT_FOUND, USER_NOT_FOUND)


def to_user_response(document: dict[str, Any]) -> schemas.UserResponse:
    address = document.get("address")
    return schemas.UserResponse(
        id=str(document["_id"]),
        name=str(document["name"]),
        email=str(document["email"]),
        age=document.get("age"),
        address=schemas.Address(**address) if isinstance(address, dict) else None,
    )


async def create_user(
    store: UserStore,
    payload: schemas.UserCreate,
) -> Outcome[schemas.UserResponse]:
    try:
        document = await store.insert(payload.to_document())
    except UserStoreError as exc:
        logger.warning("User create rejected: %s", exc.message, extra={"error_kind": exc.kind.value})
        return _from_store_error(exc)

    logger.info("User created", extra={"user_id": str(document["_id"])})
    return Outcome.success(to_user_response(document))


async def list_users(store: UserStore) -> Outcome[list[schemas.UserResponse]]:
    try:
        documents = await store.list_all()
    except UserStoreError as exc:
        return _from_store_error(exc)
    return Outcome.success([to_user_response(doc) for doc in documents])


async def get_user(store: UserStore, user_id: str) -> Outcome[schemas.UserResponse]:
    try:
        document = await store.get(user_id)
    except UserStoreError as exc:
        return _from_store_error(exc)

    if document is None:
        return _not_found()
    return Outcome.success(to_user_response(document))


async def update_user(
    store: UserStore,
    user_id: str,
    payload: schemas.UserUpdate,
) -> Outcome[schemas.UserResponse]:
    fields = payload.to_update_fields()
    try:
        document = await store.update(user_id, fields)
    except UserStoreError as exc:
        logger.warning(
            "User update rejected: %s",
            exc.message,
            extra={"user_id": user_id, "error_kind": exc.kind.value},
        )
        return _from_store_error(exc)

    if document is None:
        return _not_found()

    logger.info("User updated (%s)", ", ".join(sorted(fields)) or "no fields", extra={"user_id": user_id})
    return Outcome.success(to_user_response(document))


async def delete_user(store: UserStore, user_id: str) -> Outcome[schemas.MessageResponse]:
    try:
        document = await store.delete(user_id)
    except UserStoreError as exc:
        return _from_store_error(exc)

    if document is None:
        return _not_found()

    logger.info("User deleted", extra={"user_id": user_id})
    return Outcome.success(schemas.MessageResponse(message=USER_DELETED))


async def average_age(store: UserStore) -> Outcome[schemas.AgeStatsResponse]:
    try:
        stats = await store.average_age()
    except UserStoreError as exc:
        return _from_store_error(exc)
    return Outcome.success(schemas.AgeStatsResponse(average_age=stats.average_age, count=stats.count))


async def users_near(
    store: UserStore,
    *,
    longitude: float,
    latitude: float,
    max_distance: float | None = None,
) -> Outcome[list[schemas.UserResponse]]:
    try:
        schemas.check_point(longitude, latitude)
    except ValueError as exc:
        return Outcome.failure(ErrorKind.VALIDATION, str(exc))

    try:
        documents = await store.near(longitude, latitude, max_distance)
    except UserStoreError as exc:
        return _from_store_error(exc)
    return Outcome.success([to_user_response(doc) for doc in documents])
