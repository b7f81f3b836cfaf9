"""Todo engine: validates and executes hierarchy mutations over a snapshot.

Every method is a pure function of its inputs. Preconditions are checked
in full before anything is recomputed, so a raised EngineError means the
caller's snapshot is still the current state. Successful calls return a
new snapshot; records that did not change are shared with the input.
"""

import logging
from uuid import uuid4

from nestlist.errors import (
    DepthExceededError,
    InvalidMoveError,
    InvalidOperationError,
    NotFoundError,
)
from nestlist.models import (
    MAX_DEPTH,
    MoveResult,
    PositionUpdate,
    TodoRecord,
    TodoSnapshot,
)
from nestlist.ordering import positions_from_order, splice_order
from nestlist.pinned.engine import renumber_entries
from nestlist.tree.forest import TodoForest

logger = logging.getLogger(__name__)


class TodoEngine:
    """Hierarchy mutations bounded by max_depth (root = depth 0)."""

    def __init__(self, max_depth: int = MAX_DEPTH) -> None:
        self.max_depth = max_depth

    # -- Reorder / reparent --

    def move_todo(
        self,
        snapshot: TodoSnapshot,
        todo_id: str,
        target_parent_id: str | None,
        target_index: int,
    ) -> MoveResult:
        """Move todo_id with its subtree under target_parent_id at target_index.

        target_index is the todo's final index among its new siblings and is
        clamped to the valid range. Raises NotFoundError, InvalidMoveError
        or DepthExceededError, checked in that order.
        """
        forest = TodoForest(snapshot.todos)
        todo = forest.get(todo_id)
        if todo is None:
            raise NotFoundError("Todo", todo_id)
        if target_parent_id is not None and target_parent_id not in forest:
            raise NotFoundError("Todo", target_parent_id)
        if target_parent_id == todo_id:
            raise InvalidMoveError("A todo cannot become its own parent", detail=todo_id)
        if forest.is_descendant(todo_id, target_parent_id):
            raise InvalidMoveError(
                "A todo cannot move beneath one of its descendants",
                detail=target_parent_id,
            )

        target_depth = forest.depth(target_parent_id) + 1 if target_parent_id is not None else 0
        required = target_depth + forest.subtree_height(todo_id)
        if required > self.max_depth:
            raise DepthExceededError(required, self.max_depth)

        source_parent_id = forest.parent_of(todo_id)
        source_order = [r.id for r in forest.children_of(source_parent_id)]
        if source_parent_id == target_parent_id:
            groups = [(target_parent_id, splice_order(source_order, todo_id, target_index))]
        else:
            target_order = [r.id for r in forest.children_of(target_parent_id)]
            groups = [
                (source_parent_id, [i for i in source_order if i != todo_id]),
                (target_parent_id, splice_order(target_order, todo_id, target_index)),
            ]

        positions: dict[str, int] = {}
        for _, order in groups:
            positions.update(positions_from_order(order))

        todos = [
            self._reposition(t, positions, todo_id, target_parent_id) for t in snapshot.todos
        ]
        by_id = {t.id: t for t in todos}
        updated = [
            PositionUpdate(id=i, parent_id=by_id[i].parent_id, position=by_id[i].position)
            for _, order in groups
            for i in order
        ]
        logger.debug(
            "Moved todo %s from %s to %s, %d positions reassigned",
            todo_id, source_parent_id, target_parent_id, len(updated),
        )
        return MoveResult(
            snapshot=snapshot.model_copy(update={"todos": todos}),
            updated_positions=updated,
        )

    @staticmethod
    def _reposition(
        todo: TodoRecord,
        positions: dict[str, int],
        moved_id: str,
        target_parent_id: str | None,
    ) -> TodoRecord:
        if todo.id == moved_id:
            return todo.model_copy(
                update={"parent_id": target_parent_id, "position": positions[todo.id]}
            )
        if todo.id in positions and todo.position != positions[todo.id]:
            return todo.model_copy(update={"position": positions[todo.id]})
        return todo

    # -- Lifecycle --

    def add_todo(
        self,
        snapshot: TodoSnapshot,
        title: str,
        parent_id: str | None = None,
        *,
        todo_id: str | None = None,
    ) -> tuple[TodoSnapshot, TodoRecord]:
        """Append a new todo at the end of parent_id's children."""
        title = _clean_title(title)
        forest = TodoForest(snapshot.todos)
        if parent_id is not None:
            if parent_id not in forest:
                raise NotFoundError("Todo", parent_id)
            depth = forest.depth(parent_id) + 1
            if depth > self.max_depth:
                raise DepthExceededError(depth, self.max_depth)

        record = TodoRecord(
            id=todo_id or str(uuid4()),
            title=title,
            parent_id=parent_id,
            position=len(forest.children_of(parent_id)),
        )
        return snapshot.model_copy(update={"todos": [*snapshot.todos, record]}), record

    def rename_todo(self, snapshot: TodoSnapshot, todo_id: str, title: str) -> TodoSnapshot:
        title = _clean_title(title)
        return _update_todo(snapshot, todo_id, title=title)

    def set_completed(
        self, snapshot: TodoSnapshot, todo_id: str, completed: bool
    ) -> TodoSnapshot:
        """Set one todo's completion flag. Descendants are left untouched."""
        return _update_todo(snapshot, todo_id, completed=completed)

    def toggle_completed(self, snapshot: TodoSnapshot, todo_id: str) -> TodoSnapshot:
        todo = snapshot.get_todo(todo_id)
        if todo is None:
            raise NotFoundError("Todo", todo_id)
        return self.set_completed(snapshot, todo_id, not todo.completed)

    def delete_todo(self, snapshot: TodoSnapshot, todo_id: str) -> TodoSnapshot:
        """Delete a todo, its whole subtree, and their pinned entries.

        The former sibling group and every pinned list that lost an entry
        are renumbered to stay contiguous.
        """
        forest = TodoForest(snapshot.todos)
        if todo_id not in forest:
            raise NotFoundError("Todo", todo_id)

        removed = set(forest.subtree_ids(todo_id))
        siblings = [
            r.id for r in forest.children_of(forest.parent_of(todo_id)) if r.id != todo_id
        ]
        positions = positions_from_order(siblings)
        todos = [
            t if t.id not in positions or t.position == positions[t.id]
            else t.model_copy(update={"position": positions[t.id]})
            for t in snapshot.todos
            if t.id not in removed
        ]

        touched_lists = {e.list_id for e in snapshot.pinned_entries if e.todo_id in removed}
        entries = [e for e in snapshot.pinned_entries if e.todo_id not in removed]
        entries = renumber_entries(entries, touched_lists)

        logger.debug("Deleted todo %s with %d descendants", todo_id, len(removed) - 1)
        return snapshot.model_copy(update={"todos": todos, "pinned_entries": entries})

    # -- Repair --

    def normalize_positions(self, snapshot: TodoSnapshot) -> TodoSnapshot:
        """Repair a snapshot loaded from possibly inconsistent storage.

        Orphans, self-parented todos and members of parent cycles become
        roots; every sibling group and pinned list is renumbered; dangling
        and duplicate pinned entries are dropped and pinned flags re-derived.
        """
        forest = TodoForest(snapshot.todos)
        reachable: set[str] = set()
        for root in forest.roots():
            reachable.update(forest.subtree_ids(root.id))

        todos: list[TodoRecord] = []
        for todo in snapshot.todos:
            effective_parent = forest.parent_of(todo.id)
            if todo.id not in reachable:
                logger.warning("Todo %s is part of a parent cycle, moving it to the root", todo.id)
                effective_parent = None
            if effective_parent != todo.parent_id:
                todo = todo.model_copy(update={"parent_id": effective_parent})
            todos.append(todo)

        forest = TodoForest(todos)
        positions: dict[str, int] = {}
        groups = {forest.parent_of(t.id) for t in todos}
        for parent_id in groups:
            positions.update(positions_from_order([r.id for r in forest.children_of(parent_id)]))

        list_ids = {pl.id for pl in snapshot.pinned_lists}
        todo_ids = {t.id for t in todos}
        seen_todos: set[str] = set()
        entries = []
        for entry in sorted(snapshot.pinned_entries, key=lambda e: (e.list_id, e.position, e.id)):
            if entry.list_id not in list_ids or entry.todo_id not in todo_ids:
                continue
            if entry.todo_id in seen_todos:
                continue
            seen_todos.add(entry.todo_id)
            entries.append(entry)
        entries = renumber_entries(entries, list_ids)

        todos = [
            t.model_copy(update={"position": positions[t.id], "pinned": t.id in seen_todos})
            if t.position != positions[t.id] or t.pinned != (t.id in seen_todos)
            else t
            for t in todos
        ]

        lists = sorted(snapshot.pinned_lists, key=lambda pl: (pl.position, pl.id))
        primary_seen = False
        normalized_lists = []
        for position, pinned_list in enumerate(lists):
            is_primary = pinned_list.is_primary and not primary_seen
            primary_seen = primary_seen or is_primary
            normalized_lists.append(
                pinned_list.model_copy(update={"position": position, "is_primary": is_primary})
            )

        return snapshot.model_copy(update={
            "todos": todos,
            "pinned_entries": entries,
            "pinned_lists": normalized_lists,
        })


def _clean_title(title: str) -> str:
    cleaned = title.strip()
    if not cleaned:
        raise InvalidOperationError("Title must not be empty")
    return cleaned


def _update_todo(snapshot: TodoSnapshot, todo_id: str, **changes: object) -> TodoSnapshot:
    if snapshot.get_todo(todo_id) is None:
        raise NotFoundError("Todo", todo_id)
    todos = [t.model_copy(update=changes) if t.id == todo_id else t for t in snapshot.todos]
    return snapshot.model_copy(update={"todos": todos})
