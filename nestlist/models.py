"""Canonical data structures for Nestlist.

Defined once here, referenced everywhere else. Records mirror the stored
rows; TodoSnapshot is the explicit state container every engine call
receives and returns. Engines never mutate a snapshot in place.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field

MAX_DEPTH = 3
PRIMARY_LIST_TITLE = "Primary"


def utc_now() -> str:
    return datetime.now(UTC).isoformat()


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


class TodoRecord(BaseModel):
    id: str
    title: str
    completed: bool = False
    pinned: bool = False
    parent_id: str | None = None
    position: int = Field(default=0, ge=0)
    tag_ids: list[str] = Field(default_factory=list)
    created_at: str = Field(default_factory=utc_now)


class PinnedListRecord(BaseModel):
    id: str
    title: str
    position: int = Field(default=0, ge=0)
    is_primary: bool = False


class PinnedEntryRecord(BaseModel):
    id: str
    list_id: str
    todo_id: str
    position: int = Field(default=0, ge=0)


class TagRecord(BaseModel):
    id: str
    name: str


class TodoSnapshot(BaseModel):
    """Consistent view of the whole state, loaded by the caller."""

    todos: list[TodoRecord] = Field(default_factory=list)
    pinned_lists: list[PinnedListRecord] = Field(default_factory=list)
    pinned_entries: list[PinnedEntryRecord] = Field(default_factory=list)
    tags: list[TagRecord] = Field(default_factory=list)

    def get_todo(self, todo_id: str | None) -> TodoRecord | None:
        if todo_id is None:
            return None
        return next((t for t in self.todos if t.id == todo_id), None)

    def get_list(self, list_id: str) -> PinnedListRecord | None:
        return next((pl for pl in self.pinned_lists if pl.id == list_id), None)

    def get_entry_for_todo(self, todo_id: str) -> PinnedEntryRecord | None:
        return next((e for e in self.pinned_entries if e.todo_id == todo_id), None)

    def get_tag(self, tag_id: str) -> TagRecord | None:
        return next((t for t in self.tags if t.id == tag_id), None)

    def primary_list(self) -> PinnedListRecord | None:
        return next((pl for pl in self.pinned_lists if pl.is_primary), None)

    def entries_of(self, list_id: str) -> list[PinnedEntryRecord]:
        """Entries of one pinned list in position order."""
        entries = [e for e in self.pinned_entries if e.list_id == list_id]
        return sorted(entries, key=lambda e: (e.position, e.id))


# ---------------------------------------------------------------------------
# Derived views
# ---------------------------------------------------------------------------


class TodoNode(BaseModel):
    id: str
    title: str
    completed: bool
    pinned: bool
    parent_id: str | None = None
    position: int
    tag_ids: list[str] = Field(default_factory=list)
    created_at: str
    children: list["TodoNode"] = Field(default_factory=list)


class PinnedListView(BaseModel):
    id: str
    title: str
    position: int
    is_primary: bool
    order: list[str]  # todo ids in entry position order


# ---------------------------------------------------------------------------
# Engine results
# ---------------------------------------------------------------------------


class PositionUpdate(BaseModel):
    id: str
    parent_id: str | None
    position: int


class MoveResult(BaseModel):
    snapshot: TodoSnapshot
    updated_positions: list[PositionUpdate]


class PinnedPositionUpdate(BaseModel):
    entry_id: str
    todo_id: str
    list_id: str
    position: int


class PinnedMoveResult(BaseModel):
    snapshot: TodoSnapshot
    updated_positions: list[PinnedPositionUpdate]


class MatchResult(BaseModel):
    score: float
    ranges: list[tuple[int, int]]  # half-open [start, end) offsets
