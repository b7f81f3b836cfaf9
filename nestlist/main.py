"""Nestlist FastAPI application entry point."""

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from nestlist.db.connection import Database
from nestlist.db.snapshots import SnapshotStore
from nestlist.models import MAX_DEPTH
from nestlist.pinned.router import router as pinned_router
from nestlist.search.router import get_search_service
from nestlist.search.router import router as search_router
from nestlist.search.service import SearchService
from nestlist.tags.router import router as tags_router
from nestlist.todos.router import get_todo_service
from nestlist.todos.router import router as todos_router
from nestlist.todos.service import TodoService

# Load .env from the project root before reading configuration
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    raw = os.environ.get("NESTLIST_CORS_ORIGINS", "http://localhost:5173")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage database lifecycle and service wiring."""
    logging.basicConfig(
        level=os.environ.get("NESTLIST_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    db_path = os.environ.get("NESTLIST_DB_PATH", "nestlist.db")
    max_depth = int(os.environ.get("NESTLIST_MAX_DEPTH", MAX_DEPTH))
    db = await Database.connect(db_path)
    logger.info("Opened database %s (max depth %d)", db_path, max_depth)

    store = SnapshotStore(db)

    # Todo service (todos, pinned lists and tags share the store lock)
    service = TodoService(store, max_depth=max_depth)
    app.dependency_overrides[get_todo_service] = lambda: service

    if os.environ.get("NESTLIST_SEED_DEMO") == "1":
        await service.seed_demo()

    # Search service
    search_svc = SearchService(store)
    app.dependency_overrides[get_search_service] = lambda: search_svc

    app.state.db = db
    yield

    await db.close()


app = FastAPI(
    title="Nestlist",
    description="Nested todo lists with drag-and-drop ordering, pinned lists and fuzzy search",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(todos_router)
app.include_router(pinned_router)
app.include_router(tags_router)
app.include_router(search_router)


@app.get("/api/health")
async def health() -> dict:
    return {"status": "ok", "version": "0.1.0"}
