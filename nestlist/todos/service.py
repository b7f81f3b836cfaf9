"""Todo service: runs engine mutations against the snapshot store.

Every mutation loads a fresh snapshot, applies one pure engine call and
commits the resulting row diff in a single transaction. Mutations hold
the store lock across the load/commit pair, so concurrent requests and
searches never observe a half-applied diff.
"""

import logging
from collections.abc import Callable
from pathlib import Path

import yaml

from nestlist.db.snapshots import SnapshotStore
from nestlist.errors import NotFoundError
from nestlist.models import MAX_DEPTH, TodoSnapshot
from nestlist.pinned.engine import PinnedEngine, compose_pinned_lists
from nestlist.tags.engine import TagEngine
from nestlist.todos.schemas import PatchTodoRequest, StateResponse
from nestlist.tree.engine import TodoEngine
from nestlist.tree.forest import build_tree

logger = logging.getLogger(__name__)

SEED_PATH = Path(__file__).parent.parent / "seed.yml"


class TodoService:
    """Coordinates the snapshot store and the engines for every mutation."""

    def __init__(self, store: SnapshotStore, *, max_depth: int = MAX_DEPTH) -> None:
        self._store = store
        self._todos = TodoEngine(max_depth=max_depth)
        self._pinned = PinnedEngine()
        self._tags = TagEngine()

    async def _mutate(self, mutation: Callable[[TodoSnapshot], TodoSnapshot]) -> TodoSnapshot:
        async with self._store.lock:
            before = await self._store.load()
            after = mutation(before)
            await self._store.commit(before, after)
            return after

    @staticmethod
    def _state(snapshot: TodoSnapshot, *, hide_completed: bool = False) -> StateResponse:
        return StateResponse(
            todos=build_tree(snapshot.todos, hide_completed=hide_completed),
            pinned_lists=compose_pinned_lists(snapshot),
            tags=sorted(snapshot.tags, key=lambda t: t.name.casefold()),
        )

    async def get_state(self, *, hide_completed: bool = False) -> StateResponse:
        """Current state. Creates the primary pinned list on first access."""
        snapshot = await self._mutate(lambda s: self._pinned.ensure_primary_list(s)[0])
        return self._state(snapshot, hide_completed=hide_completed)

    # -- Todos --

    async def add_todo(self, title: str, parent_id: str | None = None) -> StateResponse:
        snapshot = await self._mutate(lambda s: self._todos.add_todo(s, title, parent_id)[0])
        return self._state(snapshot)

    async def update_todo(self, todo_id: str, request: PatchTodoRequest) -> StateResponse:
        """Apply the fields present in the request, all in one commit."""

        def apply(snapshot: TodoSnapshot) -> TodoSnapshot:
            if "title" in request.model_fields_set and request.title is not None:
                snapshot = self._todos.rename_todo(snapshot, todo_id, request.title)
            if "completed" in request.model_fields_set and request.completed is not None:
                snapshot = self._todos.set_completed(snapshot, todo_id, request.completed)
            if snapshot.get_todo(todo_id) is None:
                raise NotFoundError("Todo", todo_id)
            return snapshot

        return self._state(await self._mutate(apply))

    async def toggle_completed(self, todo_id: str) -> StateResponse:
        snapshot = await self._mutate(lambda s: self._todos.toggle_completed(s, todo_id))
        return self._state(snapshot)

    async def move_todo(
        self, todo_id: str, target_parent_id: str | None, target_index: int
    ) -> StateResponse:
        snapshot = await self._mutate(
            lambda s: self._todos.move_todo(s, todo_id, target_parent_id, target_index).snapshot
        )
        return self._state(snapshot)

    async def delete_todo(self, todo_id: str) -> StateResponse:
        snapshot = await self._mutate(lambda s: self._todos.delete_todo(s, todo_id))
        return self._state(snapshot)

    async def set_pinned(self, todo_id: str, pinned: bool) -> StateResponse:
        snapshot = await self._mutate(lambda s: self._pinned.toggle_pinned(s, todo_id, pinned))
        return self._state(snapshot)

    # -- Pinned lists --

    async def add_pinned_list(self, title: str) -> StateResponse:
        snapshot = await self._mutate(lambda s: self._pinned.add_pinned_list(s, title)[0])
        return self._state(snapshot)

    async def rename_pinned_list(self, list_id: str, title: str) -> StateResponse:
        snapshot = await self._mutate(
            lambda s: self._pinned.rename_pinned_list(s, list_id, title)
        )
        return self._state(snapshot)

    async def delete_pinned_list(self, list_id: str) -> StateResponse:
        snapshot = await self._mutate(lambda s: self._pinned.delete_pinned_list(s, list_id))
        return self._state(snapshot)

    async def move_pinned_todo(
        self, todo_id: str, target_list_id: str, target_index: int
    ) -> StateResponse:
        snapshot = await self._mutate(
            lambda s: self._pinned.move_pinned_todo(
                s, todo_id, target_list_id, target_index
            ).snapshot
        )
        return self._state(snapshot)

    # -- Tags --

    async def add_tag(self, name: str) -> StateResponse:
        snapshot = await self._mutate(lambda s: self._tags.add_tag(s, name)[0])
        return self._state(snapshot)

    async def rename_tag(self, tag_id: str, name: str) -> StateResponse:
        snapshot = await self._mutate(lambda s: self._tags.rename_tag(s, tag_id, name))
        return self._state(snapshot)

    async def delete_tag(self, tag_id: str) -> StateResponse:
        snapshot = await self._mutate(lambda s: self._tags.delete_tag(s, tag_id))
        return self._state(snapshot)

    async def attach_tag(self, todo_id: str, tag_id: str) -> StateResponse:
        snapshot = await self._mutate(lambda s: self._tags.attach_tag(s, todo_id, tag_id))
        return self._state(snapshot)

    async def detach_tag(self, todo_id: str, tag_id: str) -> StateResponse:
        snapshot = await self._mutate(lambda s: self._tags.detach_tag(s, todo_id, tag_id))
        return self._state(snapshot)

    # -- Maintenance --

    async def normalize(self) -> StateResponse:
        """Repair positions, pinned flags and dangling entries in storage."""
        snapshot = await self._mutate(self._todos.normalize_positions)
        return self._state(snapshot)

    async def seed_demo(self, path: Path = SEED_PATH) -> int:
        """Load demo todos from YAML into an empty database.

        Returns the number of todos created; 0 when todos already exist.
        """
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        created = 0

        def add_branch(snapshot: TodoSnapshot, items: list[dict], parent_id: str | None) -> TodoSnapshot:
            nonlocal created
            for item in items:
                snapshot, record = self._todos.add_todo(snapshot, item["title"], parent_id)
                if item.get("completed"):
                    snapshot = self._todos.set_completed(snapshot, record.id, True)
                created += 1
                snapshot = add_branch(snapshot, item.get("children") or [], record.id)
            return snapshot

        def seed(snapshot: TodoSnapshot) -> TodoSnapshot:
            if snapshot.todos:
                return snapshot
            return add_branch(snapshot, data.get("todos") or [], None)

        await self._mutate(seed)
        if created:
            logger.info("Seeded %d demo todos from %s", created, path)
        return created
