import logging
import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.error_handlers import register_error_handlers
from core.logging import setup_logging
from users import router as users_router
from users.dependencies import build_user_store, get_user_store
from users.store import UserStore

logger = logging.getLogger(__name__)

DEFAULT_CORS_ORIGINS = "http://localhost:5173,http://127.0.0.1:5173"


def cors_origins() -> list[str]:
    raw = os.environ.get("CORS_ORIGINS", DEFAULT_CORS_ORIGINS)
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    # One store (and one DB client) per process, shared by every request.
    store = build_user_store()
    try:
        await store.ensure_indexes()
        app.state.user_store = store
        logger.info("User directory API started", extra={"backend": store.name})
        yield
    finally:
        logger.info("User directory API shutting down")
        await store.close()
        app.state.user_store = None


app = FastAPI(title="User Directory API", lifespan=lifespan)

# Allow local frontend dev server to call this API from the browser.
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(users_router.router, tags=["users"])


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/health/ready")
async def ready(store: UserStore = Depends(get_user_store)):
    if not await store.ping():
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready"},
        )
    return {"status": "ready", "backend": store.name}


@app.get("/")
def root() -> dict:
    return {"message": "user directory api"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "3000")),
    )
