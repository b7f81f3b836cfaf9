"""Snapshot store: loads the full state and commits engine results as row diffs.

The engines work on whole snapshots; the store compares the snapshot a
mutation started from with the one it produced and writes only the rows
that changed, all inside a single transaction.

All reads and writes share one connection, so statements of an open
transaction are visible to any other query on it. Writers hold `lock`
across load and commit; readers go through `read()`, which takes the
same lock, so they never see a half-applied diff.
"""

import asyncio
import logging

from nestlist.db.connection import Database
from nestlist.models import (
    PinnedEntryRecord,
    PinnedListRecord,
    TagRecord,
    TodoRecord,
    TodoSnapshot,
)

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Reads and writes TodoSnapshots against the SQLite tables."""

    def __init__(self, db: Database) -> None:
        self._db = db
        self.lock = asyncio.Lock()

    async def read(self) -> TodoSnapshot:
        """Load a consistent snapshot, waiting for any commit in progress."""
        async with self.lock:
            return await self.load()

    async def load(self) -> TodoSnapshot:
        """Read every todo, pinned list, pinned entry and tag.

        Does not take the lock; callers outside a held `lock` use read().
        """
        tag_rows = await self._db.fetchall(
            "SELECT todo_id, tag_id FROM todo_tags ORDER BY sort_order, tag_id"
        )
        tags_by_todo: dict[str, list[str]] = {}
        for row in tag_rows:
            tags_by_todo.setdefault(row["todo_id"], []).append(row["tag_id"])

        todo_rows = await self._db.fetchall(
            "SELECT * FROM todos ORDER BY parent_id, position, created_at"
        )
        list_rows = await self._db.fetchall("SELECT * FROM pinned_lists ORDER BY position")
        entry_rows = await self._db.fetchall(
            "SELECT * FROM pinned_entries ORDER BY list_id, position"
        )
        tag_def_rows = await self._db.fetchall("SELECT * FROM tags ORDER BY name")

        return TodoSnapshot(
            todos=[
                TodoRecord(
                    id=row["todo_id"],
                    title=row["title"],
                    completed=bool(row["completed"]),
                    pinned=bool(row["pinned"]),
                    parent_id=row["parent_id"],
                    position=row["position"],
                    tag_ids=tags_by_todo.get(row["todo_id"], []),
                    created_at=row["created_at"],
                )
                for row in todo_rows
            ],
            pinned_lists=[
                PinnedListRecord(
                    id=row["list_id"],
                    title=row["title"],
                    position=row["position"],
                    is_primary=bool(row["is_primary"]),
                )
                for row in list_rows
            ],
            pinned_entries=[
                PinnedEntryRecord(
                    id=row["entry_id"],
                    list_id=row["list_id"],
                    todo_id=row["todo_id"],
                    position=row["position"],
                )
                for row in entry_rows
            ],
            tags=[TagRecord(id=row["tag_id"], name=row["name"]) for row in tag_def_rows],
        )

    async def commit(self, before: TodoSnapshot, after: TodoSnapshot) -> int:
        """Persist the difference between two snapshots atomically.

        Returns the number of changed rows (excluding tag links). Child
        rows are deleted before their parents and inserted after them.
        """
        todos = _diff(before.todos, after.todos)
        lists = _diff(before.pinned_lists, after.pinned_lists)
        entries = _diff(before.pinned_entries, after.pinned_entries)
        tags = _diff(before.tags, after.tags)
        changed = sum(len(d[0]) + len(d[1]) + len(d[2]) for d in (todos, lists, entries, tags))

        old_links = _tag_links(before)
        new_links = _tag_links(after)
        if changed == 0 and old_links == new_links:
            return 0

        async with self._db.transaction() as db:
            await db.executemany(
                "DELETE FROM todo_tags WHERE todo_id = ? AND tag_id = ?",
                [link for link in old_links if link not in new_links],
            )
            await db.executemany(
                "DELETE FROM pinned_entries WHERE entry_id = ?",
                [(e.id,) for e in entries[2]],
            )
            await db.executemany(
                "DELETE FROM todos WHERE todo_id = ?", [(t.id,) for t in todos[2]]
            )
            await db.executemany(
                "DELETE FROM pinned_lists WHERE list_id = ?", [(pl.id,) for pl in lists[2]]
            )
            await db.executemany("DELETE FROM tags WHERE tag_id = ?", [(t.id,) for t in tags[2]])

            await db.executemany(
                "INSERT INTO todos (todo_id, title, completed, pinned, parent_id, position, created_at)"
                " VALUES (?, ?, ?, ?, ?, ?, ?)",
                [_todo_params(t) for t in todos[0]],
            )
            await db.executemany(
                "UPDATE todos SET title = ?, completed = ?, pinned = ?, parent_id = ?, position = ?"
                " WHERE todo_id = ?",
                [
                    (t.title, int(t.completed), int(t.pinned), t.parent_id, t.position, t.id)
                    for t in todos[1]
                ],
            )
            await db.executemany(
                "INSERT INTO pinned_lists (list_id, title, position, is_primary) VALUES (?, ?, ?, ?)",
                [(pl.id, pl.title, pl.position, int(pl.is_primary)) for pl in lists[0]],
            )
            await db.executemany(
                "UPDATE pinned_lists SET title = ?, position = ?, is_primary = ? WHERE list_id = ?",
                [(pl.title, pl.position, int(pl.is_primary), pl.id) for pl in lists[1]],
            )
            await db.executemany(
                "INSERT INTO tags (tag_id, name) VALUES (?, ?)", [(t.id, t.name) for t in tags[0]]
            )
            await db.executemany(
                "UPDATE tags SET name = ? WHERE tag_id = ?", [(t.name, t.id) for t in tags[1]]
            )
            await db.executemany(
                "INSERT INTO pinned_entries (entry_id, list_id, todo_id, position) VALUES (?, ?, ?, ?)",
                [(e.id, e.list_id, e.todo_id, e.position) for e in entries[0]],
            )
            await db.executemany(
                "UPDATE pinned_entries SET list_id = ?, position = ? WHERE entry_id = ?",
                [(e.list_id, e.position, e.id) for e in entries[1]],
            )
            await db.executemany(
                "INSERT OR REPLACE INTO todo_tags (todo_id, tag_id, sort_order) VALUES (?, ?, ?)",
                [
                    (todo_id, tag_id, order)
                    for (todo_id, tag_id), order in new_links.items()
                    if old_links.get((todo_id, tag_id)) != order
                ],
            )

        logger.info("Committed snapshot diff: %d rows changed", changed)
        return changed


def _diff(before: list, after: list) -> tuple[list, list, list]:
    """Split records into (inserted, updated, deleted) by id."""
    old = {r.id: r for r in before}
    new = {r.id: r for r in after}
    inserted = [r for r in after if r.id not in old]
    updated = [r for r in after if r.id in old and old[r.id] != r]
    deleted = [r for r in before if r.id not in new]
    return inserted, updated, deleted


def _tag_links(snapshot: TodoSnapshot) -> dict[tuple[str, str], int]:
    """(todo_id, tag_id) -> sort order for every attached tag."""
    return {
        (t.id, tag_id): order
        for t in snapshot.todos
        for order, tag_id in enumerate(t.tag_ids)
    }


def _todo_params(todo: TodoRecord) -> tuple:
    return (
        todo.id,
        todo.title,
        int(todo.completed),
        int(todo.pinned),
        todo.parent_id,
        todo.position,
        todo.created_at,
    )
