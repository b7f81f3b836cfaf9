"""Shared pytest fixtures for Nestlist tests."""

import pytest
from httpx import ASGITransport, AsyncClient

from nestlist.db.connection import Database
from nestlist.db.snapshots import SnapshotStore
from nestlist.main import app
from nestlist.search.router import get_search_service
from nestlist.search.service import SearchService
from nestlist.todos.router import get_todo_service
from nestlist.todos.service import TodoService


@pytest.fixture
async def db():
    """In-memory database for tests."""
    database = await Database.connect(":memory:")
    yield database
    await database.close()


@pytest.fixture
async def store(db):
    """SnapshotStore backed by in-memory database."""
    return SnapshotStore(db)


@pytest.fixture
async def service(store):
    """TodoService backed by in-memory database."""
    return TodoService(store)


@pytest.fixture
async def client(store, service):
    """Async test client with in-memory DB wired into the app."""
    search_service = SearchService(store)
    app.dependency_overrides[get_todo_service] = lambda: service
    app.dependency_overrides[get_search_service] = lambda: search_service
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    app.dependency_overrides.clear()
