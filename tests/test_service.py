"""Tests for the user service layer (Outcome values, error kinds)."""

from bson import ObjectId

from core.errors import ErrorKind
from users import schemas, service


async def test_create_returns_success(store):
    outcome = await service.create_user(store, schemas.UserCreate(name="John Doe", email="john@example.com"))

    assert outcome.ok
    assert outcome.value.name == "John Doe"
    assert ObjectId.is_valid(outcome.value.id)


async def test_duplicate_create_is_tagged_validation(store):
    payload = schemas.UserCreate(name="Sam", email="sam@example.com")
    await service.create_user(store, payload)

    outcome = await service.create_user(store, payload)

    assert not outcome.ok
    assert outcome.value is None
    assert outcome.error.kind is ErrorKind.VALIDATION


async def test_get_missing_is_tagged_not_found(store):
    outcome = await service.get_user(store, str(ObjectId()))

    assert outcome.error == service.ServiceError(ErrorKind.NOT_FOUND, "User not found")


async def test_get_malformed_is_tagged_validation(store):
    outcome = await service.get_user(store, "bad")

    assert outcome.error.kind is ErrorKind.VALIDATION


async def test_update_and_delete_round(store):
    created = await service.create_user(store, schemas.UserCreate(name="Jane", email="jane@example.com", age=28))
    user_id = created.value.id

    updated = await service.update_user(store, user_id, schemas.UserUpdate(age=29))
    deleted = await service.delete_user(store, user_id)
    missing = await service.delete_user(store, user_id)

    assert updated.value.age == 29
    assert updated.value.email == "jane@example.com"
    assert deleted.value.message == "User deleted successfully"
    assert missing.error.kind is ErrorKind.NOT_FOUND


async def test_average_age(store):
    await service.create_user(store, schemas.UserCreate(name="Alice", email="alice@example.com", age=25))
    await service.create_user(store, schemas.UserCreate(name="Bob", email="bob@example.com", age=30))

    outcome = await service.average_age(store)

    assert outcome.value == schemas.AgeStatsResponse(average_age=27.5, count=2)


async def test_users_near_rejects_bad_point(store):
    outcome = await service.users_near(store, longitude=0.0, latitude=95.0)

    assert outcome.error.kind is ErrorKind.VALIDATION
    assert "latitude" in outcome.error.message


def test_to_user_response_ignores_unknown_fields():
    oid = ObjectId()
    response = service.to_user_response(
        {"_id": oid, "name": "A", "email": "a@example.com", "__v": 0, "address": {"city": "X"}}
    )

    assert response.id == str(oid)
    assert response.address == schemas.Address(city="X")
