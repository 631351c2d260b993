"""Shared fixtures: user stores + FastAPI test client.

HTTP tests get a fresh InMemoryUserStore, so no state leaks between tests.
Store tests also run against a real mongod: either the server named by
MONGODB_TEST_URI, or a throwaway one started by pymongo-inmemory (the
equivalent of mongodb-memory-server). When neither is available, the mongo
variants are skipped.
"""

import os
import uuid

import pytest
from httpx import ASGITransport, AsyncClient
from pymongo_inmemory import Mongod

# Set before importing the app so nothing reaches for a real database.
os.environ.setdefault("USER_STORE_BACKEND", "memory")
# pymongo >= 4.13 needs a server newer than pymongo-inmemory's default.
os.environ.setdefault("PYMONGOIM__MONGO_VERSION", "7.0")

from core import db  # noqa: E402
from main import app  # noqa: E402
from users.dependencies import get_user_store  # noqa: E402
from users.memory import InMemoryUserStore  # noqa: E402
from users.repository import MongoUserStore  # noqa: E402


@pytest.fixture(scope="session")
def mongo_uri():
    """Connection string of a mongod shared by the whole test session."""
    uri = os.environ.get("MONGODB_TEST_URI", "").strip()
    if uri:
        yield uri
        return

    try:
        mongod = Mongod(None)
        mongod.start()
    except Exception as exc:
        pytest.skip(f"no mongod available (set MONGODB_TEST_URI): {exc}")

    try:
        yield mongod.connection_string
    finally:
        mongod.stop()


@pytest.fixture
async def mongo_store(mongo_uri):
    """MongoUserStore on a fresh database with indexes, dropped afterwards."""
    client = db.create_client(mongo_uri)
    database_name = f"user_directory_test_{uuid.uuid4().hex[:12]}"
    store = MongoUserStore(client, database_name)
    await store.ensure_indexes()
    try:
        yield store
    finally:
        await client.drop_database(database_name)
        await store.close()


@pytest.fixture(params=["memory", "mongo"])
def user_store(request):
    """Every store backend, for tests of behavior both must share."""
    if request.param == "mongo":
        return request.getfixturevalue("mongo_store")
    return InMemoryUserStore()


@pytest.fixture
def store():
    return InMemoryUserStore()


@pytest.fixture
async def client(store):
    """FastAPI test client with the user store dependency overridden."""
    app.dependency_overrides[get_user_store] = lambda: store

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def john():
    return {"name": "John Doe", "email": "john@example.com", "age": 25}
