"""Pinned-list engine: flat, ordered membership of todos in named lists.

A todo belongs to at most one pinned list. Reordering follows the same
splice-and-renumber pattern as the todo hierarchy, scoped to the entries
of the source and target lists. Lists are not nested, so there are no
depth or ancestry checks here.
"""

import logging
from collections.abc import Iterable
from uuid import uuid4

from nestlist.errors import InvalidOperationError, NotFoundError
from nestlist.models import (
    PRIMARY_LIST_TITLE,
    PinnedEntryRecord,
    PinnedListRecord,
    PinnedListView,
    PinnedMoveResult,
    PinnedPositionUpdate,
    TodoSnapshot,
)
from nestlist.ordering import positions_from_order, splice_order

logger = logging.getLogger(__name__)


def renumber_entries(
    entries: list[PinnedEntryRecord], list_ids: Iterable[str]
) -> list[PinnedEntryRecord]:
    """Renumber the entries of the given lists to 0..n-1, keeping their order."""
    positions: dict[str, int] = {}
    for list_id in set(list_ids):
        ordered = sorted(
            (e for e in entries if e.list_id == list_id), key=lambda e: (e.position, e.id)
        )
        positions.update(positions_from_order([e.id for e in ordered]))
    return [
        e.model_copy(update={"position": positions[e.id]})
        if e.id in positions and e.position != positions[e.id]
        else e
        for e in entries
    ]


class PinnedEngine:
    """Pinned-list mutations. The primary list is flagged, never inferred."""

    def __init__(self, primary_title: str = PRIMARY_LIST_TITLE) -> None:
        self.primary_title = primary_title

    def ensure_primary_list(
        self, snapshot: TodoSnapshot
    ) -> tuple[TodoSnapshot, PinnedListRecord]:
        """Return the primary list, creating it when no list carries the flag."""
        primary = snapshot.primary_list()
        if primary is not None:
            return snapshot, primary
        primary = PinnedListRecord(
            id=str(uuid4()),
            title=self.primary_title,
            position=_next_list_position(snapshot),
            is_primary=True,
        )
        logger.info("Created primary pinned list %s", primary.id)
        lists = [*snapshot.pinned_lists, primary]
        return snapshot.model_copy(update={"pinned_lists": lists}), primary

    def move_pinned_todo(
        self,
        snapshot: TodoSnapshot,
        todo_id: str,
        target_list_id: str,
        target_index: int,
    ) -> PinnedMoveResult:
        """Move a pinned todo's entry to target_list_id at target_index (clamped)."""
        if snapshot.get_list(target_list_id) is None:
            raise NotFoundError("Pinned list", target_list_id)
        entry = snapshot.get_entry_for_todo(todo_id)
        if entry is None:
            raise NotFoundError("Pinned todo", todo_id)

        source_order = [e.id for e in snapshot.entries_of(entry.list_id)]
        if entry.list_id == target_list_id:
            groups = [(target_list_id, splice_order(source_order, entry.id, target_index))]
        else:
            target_order = [e.id for e in snapshot.entries_of(target_list_id)]
            groups = [
                (entry.list_id, [i for i in source_order if i != entry.id]),
                (target_list_id, splice_order(target_order, entry.id, target_index)),
            ]

        assignments: dict[str, tuple[str, int]] = {}
        for list_id, order in groups:
            for position, entry_id in enumerate(order):
                assignments[entry_id] = (list_id, position)

        entries = []
        for e in snapshot.pinned_entries:
            if e.id in assignments:
                list_id, position = assignments[e.id]
                if (e.list_id, e.position) != (list_id, position):
                    e = e.model_copy(update={"list_id": list_id, "position": position})
            entries.append(e)

        by_id = {e.id: e for e in entries}
        updated = [
            PinnedPositionUpdate(
                entry_id=entry_id,
                todo_id=by_id[entry_id].todo_id,
                list_id=list_id,
                position=position,
            )
            for list_id, order in groups
            for position, entry_id in enumerate(order)
        ]
        return PinnedMoveResult(
            snapshot=snapshot.model_copy(update={"pinned_entries": entries}),
            updated_positions=updated,
        )

    def toggle_pinned(self, snapshot: TodoSnapshot, todo_id: str, pinned: bool) -> TodoSnapshot:
        """Pin a todo to the primary list's tail, or unpin it."""
        if snapshot.get_todo(todo_id) is None:
            raise NotFoundError("Todo", todo_id)

        if pinned:
            snapshot, primary = self.ensure_primary_list(snapshot)
            entry = snapshot.get_entry_for_todo(todo_id)
            if entry is None:
                new_entry = PinnedEntryRecord(
                    id=str(uuid4()),
                    list_id=primary.id,
                    todo_id=todo_id,
                    position=len(snapshot.entries_of(primary.id)),
                )
                snapshot = snapshot.model_copy(
                    update={"pinned_entries": [*snapshot.pinned_entries, new_entry]}
                )
            elif entry.list_id != primary.id:
                tail = len(snapshot.entries_of(primary.id))
                snapshot = self.move_pinned_todo(snapshot, todo_id, primary.id, tail).snapshot
        else:
            entry = snapshot.get_entry_for_todo(todo_id)
            if entry is not None:
                remaining = [e for e in snapshot.pinned_entries if e.todo_id != todo_id]
                snapshot = snapshot.model_copy(
                    update={"pinned_entries": renumber_entries(remaining, [entry.list_id])}
                )

        todos = [
            t.model_copy(update={"pinned": pinned}) if t.id == todo_id else t
            for t in snapshot.todos
        ]
        return snapshot.model_copy(update={"todos": todos})

    def add_pinned_list(
        self, snapshot: TodoSnapshot, title: str
    ) -> tuple[TodoSnapshot, PinnedListRecord]:
        """Append a list after the last one. The first list ever is primary."""
        title = title.strip()
        if not title:
            raise InvalidOperationError("Pinned list title must not be empty")
        record = PinnedListRecord(
            id=str(uuid4()),
            title=title,
            position=_next_list_position(snapshot),
            is_primary=not snapshot.pinned_lists,
        )
        lists = [*snapshot.pinned_lists, record]
        return snapshot.model_copy(update={"pinned_lists": lists}), record

    def rename_pinned_list(self, snapshot: TodoSnapshot, list_id: str, title: str) -> TodoSnapshot:
        if snapshot.get_list(list_id) is None:
            raise NotFoundError("Pinned list", list_id)
        title = title.strip()
        if not title:
            raise InvalidOperationError("Pinned list title must not be empty")
        lists = [
            pl.model_copy(update={"title": title}) if pl.id == list_id else pl
            for pl in snapshot.pinned_lists
        ]
        return snapshot.model_copy(update={"pinned_lists": lists})

    def delete_pinned_list(self, snapshot: TodoSnapshot, list_id: str) -> TodoSnapshot:
        """Delete a non-primary list, appending its entries to the primary list.

        Entries keep their relative order after the primary list's existing
        entries. Remaining list positions are compacted.
        """
        target = snapshot.get_list(list_id)
        if target is None:
            raise NotFoundError("Pinned list", list_id)
        if target.is_primary:
            raise InvalidOperationError("The primary pinned list cannot be deleted", detail=list_id)

        snapshot, primary = self.ensure_primary_list(snapshot)
        primary_todos = {e.todo_id for e in snapshot.entries_of(primary.id)}
        next_position = len(primary_todos)

        relocated: dict[str, int] = {}
        for entry in snapshot.entries_of(list_id):
            if entry.todo_id in primary_todos:
                continue
            relocated[entry.id] = next_position
            next_position += 1

        entries = [
            e.model_copy(update={"list_id": primary.id, "position": relocated[e.id]})
            if e.id in relocated
            else e
            for e in snapshot.pinned_entries
            if e.list_id != list_id or e.id in relocated
        ]

        remaining = sorted(
            (pl for pl in snapshot.pinned_lists if pl.id != list_id),
            key=lambda pl: (pl.position, pl.id),
        )
        lists = [
            pl if pl.position == position else pl.model_copy(update={"position": position})
            for position, pl in enumerate(remaining)
        ]
        logger.debug("Deleted pinned list %s, relocated %d entries", list_id, len(relocated))
        return snapshot.model_copy(update={"pinned_lists": lists, "pinned_entries": entries})


def compose_pinned_lists(snapshot: TodoSnapshot) -> list[PinnedListView]:
    """List views in position order, each with its todo ids in entry order."""
    lists = sorted(snapshot.pinned_lists, key=lambda pl: (pl.position, pl.id))
    return [
        PinnedListView(
            id=pl.id,
            title=pl.title,
            position=pl.position,
            is_primary=pl.is_primary,
            order=[e.todo_id for e in snapshot.entries_of(pl.id)],
        )
        for pl in lists
    ]


def _next_list_position(snapshot: TodoSnapshot) -> int:
    return max((pl.position for pl in snapshot.pinned_lists), default=-1) + 1
