"""
User store wiring for FastAPI routes.
"""

from __future__ import annotations

import logging

from fastapi import Request

from core import db

from .memory import InMemoryUserStore
from .repository import MongoUserStore
from .store import UserStore

logger = logging.getLogger(__name__)


def build_user_store(backend: str | None = None) -> UserStore:
    """
    Construct the store named by `backend` (or USER_STORE_BACKEND).
    """
    backend = backend or db.store_backend()
    if backend == "memory":
        store: UserStore = InMemoryUserStore()
    else:
        store = MongoUserStore.from_env()
    logger.info("User store backend selected", extra={"backend": store.name})
    return store


def get_user_store(request: Request) -> UserStore:
    store = getattr(request.app.state, "user_store", None)
    if store is None:
        raise RuntimeError("User store is not initialized. Build it in the app lifespan.")
    return store
