"""
User API endpoints.
"""

from __future__ import annotations

from typing import TypeVar

from fastapi import APIRouter, Depends, HTTPException, Query, status

from core.errors import HTTP_STATUS_BY_KIND

from . import schemas, service
from .dependencies import get_user_store
from .store import UserStore

router = APIRouter()

T = TypeVar("T")


def _unwrap(outcome: service.Outcome[T]) -> T:
    if outcome.error is not None:
        raise HTTPException(
            status_code=HTTP_STATUS_BY_KIND[outcome.error.kind],
            detail=outcome.error.message,
        )
    return outcome.value  # type: ignore[return-value]


@router.post("/users", status_code=status.HTTP_201_CREATED)
async def create_user(
    request: schemas.UserCreate,
    store: UserStore = Depends(get_user_store),
) -> schemas.UserResponse:
    return _unwrap(await service.create_user(store, request))


@router.get("/users")
async def list_users(store: UserStore = Depends(get_user_store)) -> list[schemas.UserResponse]:
    return _unwrap(await service.list_users(store))


# Fixed paths are registered before /users/{user_id} so they aren't read as ids.
@router.get("/users/stats/age")
async def get_average_age(store: UserStore = Depends(get_user_store)) -> schemas.AgeStatsResponse:
    return _unwrap(await service.average_age(store))


@router.get("/users/near")
async def get_users_near(
    lng: float = Query(..., ge=-180.0, le=180.0),
    lat: float = Query(..., ge=-90.0, le=90.0),
    max_distance: float | None = Query(default=None, ge=0.0, description="Radius in meters."),
    store: UserStore = Depends(get_user_store),
) -> list[schemas.UserResponse]:
    return _unwrap(
        await service.users_near(
            store,
            longitude=lng,
            latitude=lat,
            max_distance=max_distance,
        )
    )


@router.get("/users/{user_id}")
async def get_user(user_id: str, store: UserStore = Depends(get_user_store)) -> schemas.UserResponse:
    return _unwrap(await service.get_user(store, user_id))


@router.put("/users/{user_id}")
async def update_user(
    user_id: str,
    request: schemas.UserUpdate,
    store: UserStore = Depends(get_user_store),
) -> schemas.UserResponse:
    return _unwrap(await service.update_user(store, user_id, request))


@router.delete("/users/{user_id}")
async def delete_user(user_id: str, store: UserStore = Depends(get_user_store)) -> schemas.MessageResponse:
    return _unwrap(await service.delete_user(store, user_id))
