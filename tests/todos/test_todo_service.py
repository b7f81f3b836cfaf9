"""Tests for TodoService: engine calls persisted through the snapshot store."""

import asyncio

import pytest

from nestlist.errors import NotFoundError
from nestlist.todos.schemas import PatchTodoRequest
from tests.fixtures import find_node


class TestState:
    async def test_primary_list_created_once(self, service):
        """The primary pinned list appears on first access and is reused."""
        first = await service.get_state()
        second = await service.get_state()
        assert len(first.pinned_lists) == 1
        assert first.pinned_lists[0].is_primary
        assert [pl.id for pl in second.pinned_lists] == [first.pinned_lists[0].id]

    async def test_state_survives_reload(self, service, store):
        await service.add_todo("Persisted")
        snapshot = await store.load()
        assert [t.title for t in snapshot.todos] == ["Persisted"]


class TestUpdateTodo:
    async def test_title_and_completed_together(self, service):
        state = await service.add_todo("Draft")
        todo_id = state.todos[0].id
        state = await service.update_todo(
            todo_id, PatchTodoRequest(title="Final", completed=True)
        )
        assert state.todos[0].title == "Final"
        assert state.todos[0].completed is True

    async def test_only_sent_fields_change(self, service):
        state = await service.add_todo("Keep me")
        todo_id = state.todos[0].id
        state = await service.update_todo(todo_id, PatchTodoRequest(completed=True))
        assert state.todos[0].title == "Keep me"

    async def test_unknown_todo(self, service):
        with pytest.raises(NotFoundError):
            await service.update_todo("missing", PatchTodoRequest())


class TestConcurrency:
    async def test_parallel_adds_keep_positions_contiguous(self, service, store):
        """Concurrent mutations are serialized, so no two siblings share a slot."""
        await asyncio.gather(*(service.add_todo(f"Todo {i}") for i in range(10)))
        snapshot = await store.load()
        assert sorted(t.position for t in snapshot.todos) == list(range(10))


class TestSeedDemo:
    async def test_seeds_empty_database(self, service):
        created = await service.seed_demo()
        assert created == 8
        state = await service.get_state()
        checklist = find_node([n.model_dump() for n in state.todos], "Release checklist")
        assert len(checklist["children"]) == 3
        assert checklist["children"][0]["completed"] is True

    async def test_skips_when_todos_exist(self, service):
        await service.add_todo("Mine")
        assert await service.seed_demo() == 0
        state = await service.get_state()
        assert [n.title for n in state.todos] == ["Mine"]


class TestNormalize:
    async def test_repairs_stored_gaps(self, service, store, db):
        await service.add_todo("A")
        await service.add_todo("B")
        await db.execute("UPDATE todos SET position = position + 5")
        state = await service.normalize()
        assert [n.position for n in state.todos] == [0, 1]
        snapshot = await store.load()
        assert sorted(t.position for t in snapshot.todos) == [0, 1]
