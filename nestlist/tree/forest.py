"""In-memory todo forest: an arena of records with id-indexed child lookups.

The forest is built from an unordered record list and tolerates malformed
input. Records pointing at an unknown parent (or at themselves) are
treated as roots. Every traversal is bounded by the known id set, so a
parent cycle in corrupted data terminates instead of looping.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable

from nestlist.models import PositionUpdate, TodoNode, TodoRecord

logger = logging.getLogger(__name__)


class TodoForest:
    """Read-only index over a set of TodoRecords."""

    def __init__(self, records: Iterable[TodoRecord]) -> None:
        self._nodes: dict[str, TodoRecord] = {}
        for record in records:
            if record.id in self._nodes:
                logger.warning("Duplicate todo id %r, keeping the last record", record.id)
            self._nodes[record.id] = record

        self._parents: dict[str, str | None] = {}
        self._children: dict[str | None, list[str]] = defaultdict(list)
        ordered = sorted(self._nodes.values(), key=lambda r: (r.position, r.id))
        for record in ordered:
            parent_id = record.parent_id
            if parent_id is not None and (parent_id == record.id or parent_id not in self._nodes):
                logger.warning(
                    "Todo %r has invalid parent %r, treating it as a root",
                    record.id, parent_id,
                )
                parent_id = None
            self._parents[record.id] = parent_id
            self._children[parent_id].append(record.id)

    def __contains__(self, todo_id: object) -> bool:
        return todo_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def get(self, todo_id: str | None) -> TodoRecord | None:
        if todo_id is None:
            return None
        return self._nodes.get(todo_id)

    def parent_of(self, todo_id: str) -> str | None:
        return self._parents.get(todo_id)

    def children_of(self, parent_id: str | None) -> list[TodoRecord]:
        """Children of parent_id (None for roots) in position order."""
        return [self._nodes[cid] for cid in self._children.get(parent_id, [])]

    def roots(self) -> list[TodoRecord]:
        return self.children_of(None)

    def ancestors(self, todo_id: str) -> list[str]:
        """Ids from the direct parent up to the root."""
        chain: list[str] = []
        seen = {todo_id}
        current = self._parents.get(todo_id)
        while current is not None and current not in seen:
            chain.append(current)
            seen.add(current)
            current = self._parents.get(current)
        if current is not None:
            logger.warning("Parent cycle detected above todo %r", todo_id)
        return chain

    def depth(self, todo_id: str | None) -> int:
        """Distance from the root. Roots, None and unknown ids are 0."""
        if todo_id is None or todo_id not in self._nodes:
            return 0
        return len(self.ancestors(todo_id))

    def subtree_height(self, todo_id: str) -> int:
        """Longest downward path from todo_id to a leaf (leaf = 0)."""
        if todo_id not in self._nodes:
            return 0
        height = 0
        seen = {todo_id}
        stack = [(todo_id, 0)]
        while stack:
            current, level = stack.pop()
            height = max(height, level)
            for child_id in self._children.get(current, []):
                if child_id in seen:
                    continue
                seen.add(child_id)
                stack.append((child_id, level + 1))
        return height

    def is_descendant(self, ancestor_id: str | None, todo_id: str | None) -> bool:
        """True iff todo_id sits strictly beneath ancestor_id."""
        if ancestor_id is None or todo_id is None or todo_id not in self._nodes:
            return False
        return ancestor_id in self.ancestors(todo_id)

    def subtree_ids(self, todo_id: str) -> list[str]:
        """Preorder ids of todo_id's subtree, todo_id first."""
        if todo_id not in self._nodes:
            return []
        result: list[str] = []
        seen: set[str] = set()
        stack = [todo_id]
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            result.append(current)
            stack.extend(reversed(self._children.get(current, [])))
        return result

    def is_subtree_complete(self, todo_id: str) -> bool:
        """True when the node and every descendant are completed."""
        ids = self.subtree_ids(todo_id)
        return bool(ids) and all(self._nodes[i].completed for i in ids)

    def to_nodes(self, *, hide_completed: bool = False) -> list[TodoNode]:
        """Compose nested TodoNodes, roots first, children in position order.

        With hide_completed, a node without visible children is dropped when
        it is completed or when every child's subtree is fully completed.
        """
        seen: set[str] = set()

        def compose(record: TodoRecord) -> TodoNode | None:
            seen.add(record.id)
            child_records = [c for c in self.children_of(record.id) if c.id not in seen]
            children = [
                node for node in (compose(c) for c in child_records) if node is not None
            ]
            if hide_completed and not children:
                all_children_done = bool(child_records) and all(
                    self.is_subtree_complete(c.id) for c in child_records
                )
                if record.completed or all_children_done:
                    return None
            return TodoNode(**record.model_dump(), children=children)

        return [node for node in (compose(r) for r in self.roots()) if node is not None]


def build_tree(records: Iterable[TodoRecord], *, hide_completed: bool = False) -> list[TodoNode]:
    """Build a sorted forest of TodoNodes from an unordered record list."""
    return TodoForest(records).to_nodes(hide_completed=hide_completed)


def flatten_tree(nodes: list[TodoNode]) -> list[PositionUpdate]:
    """Flatten nested nodes back into (id, parent_id, position) triples."""
    result: list[PositionUpdate] = []
    stack = list(reversed(nodes))
    while stack:
        node = stack.pop()
        result.append(
            PositionUpdate(id=node.id, parent_id=node.parent_id, position=node.position)
        )
        stack.extend(reversed(node.children))
    return result
