"""Shared test helpers: record builders and API shortcuts."""

from typing import Any

from httpx import AsyncClient

from nestlist.models import (
    PinnedEntryRecord,
    PinnedListRecord,
    TagRecord,
    TodoRecord,
    TodoSnapshot,
)


def make_todo(
    todo_id: str,
    parent_id: str | None = None,
    position: int = 0,
    title: str | None = None,
    **overrides: Any,
) -> TodoRecord:
    """Create a TodoRecord; the title defaults to the id."""
    return TodoRecord(
        id=todo_id,
        title=title if title is not None else todo_id,
        parent_id=parent_id,
        position=position,
        **overrides,
    )


def make_chain(*todo_ids: str) -> list[TodoRecord]:
    """A single path: each id is the only child of the previous one."""
    records = []
    parent_id = None
    for todo_id in todo_ids:
        records.append(make_todo(todo_id, parent_id))
        parent_id = todo_id
    return records


def make_list(
    list_id: str, position: int = 0, is_primary: bool = False, title: str | None = None
) -> PinnedListRecord:
    return PinnedListRecord(
        id=list_id, title=title or list_id, position=position, is_primary=is_primary
    )


def make_entry(list_id: str, todo_id: str, position: int) -> PinnedEntryRecord:
    return PinnedEntryRecord(
        id=f"e-{todo_id}", list_id=list_id, todo_id=todo_id, position=position
    )


def make_snapshot(
    todos: list[TodoRecord] | None = None,
    pinned_lists: list[PinnedListRecord] | None = None,
    pinned_entries: list[PinnedEntryRecord] | None = None,
    tags: list[TagRecord] | None = None,
) -> TodoSnapshot:
    return TodoSnapshot(
        todos=todos or [],
        pinned_lists=pinned_lists or [],
        pinned_entries=pinned_entries or [],
        tags=tags or [],
    )


def sibling_order(snapshot: TodoSnapshot, parent_id: str | None) -> list[str]:
    """Ids of parent_id's children sorted by position."""
    children = [t for t in snapshot.todos if t.parent_id == parent_id]
    return [t.id for t in sorted(children, key=lambda t: t.position)]


def find_node(nodes: list[dict], title: str) -> dict | None:
    """Depth-first search of a JSON todo tree by title."""
    stack = list(nodes)
    while stack:
        node = stack.pop()
        if node["title"] == title:
            return node
        stack.extend(node["children"])
    return None


async def create_todo(
    client: AsyncClient, title: str, parent_id: str | None = None
) -> dict:
    """POST a todo and return the created node from the returned state."""
    resp = await client.post("/api/todos", json={"title": title, "parent_id": parent_id})
    assert resp.status_code == 201, resp.text
    node = find_node(resp.json()["todos"], title)
    assert node is not None
    return node


async def create_tag(client: AsyncClient, name: str) -> dict:
    resp = await client.post("/api/tags", json={"name": name})
    assert resp.status_code == 201, resp.text
    return next(t for t in resp.json()["tags"] if t["name"] == name)
